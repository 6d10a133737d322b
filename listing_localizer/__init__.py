"""Marketplace-aware localization of product listing files."""

__version__ = "1.0.0"
