"""Exception hierarchy for the localization pipeline.

Input problems (bad uploads, unknown marketplaces, empty listing sets) are
raised immediately and stop the job. Generation failures are absorbed per
listing by the batch orchestrator. Export errors name the missing
prerequisite.
"""


class LocalizerError(Exception):
    """Base class for all listing-localizer errors."""


# ── Ingestion ───────────────────────────────────────────────

class IngestionError(LocalizerError, ValueError):
    """The uploaded file was rejected before any listing was built."""


class UnsupportedFileError(IngestionError):
    pass


class FileTooLargeError(IngestionError):
    pass


class EmptyFileError(IngestionError):
    pass


class FileDecodeError(IngestionError):
    """Corrupt workbook or undecodable text (distinct from zero rows)."""


# ── Validation ──────────────────────────────────────────────

class LocalizationValidationError(LocalizerError, ValueError):
    """The request is well-formed but cannot be localized."""


class UnknownMarketplaceError(LocalizationValidationError):
    def __init__(self, marketplace_id: str):
        self.marketplace_id = marketplace_id
        super().__init__(f"Unknown marketplace: {marketplace_id}")


class EmptyListingSetError(LocalizationValidationError):
    pass


class TooManyListingsError(LocalizationValidationError):
    pass


class InvalidMappingError(LocalizationValidationError):
    pass


# ── Generation ──────────────────────────────────────────────

class GenerationError(LocalizerError):
    """A single generation call failed."""


# ── Export ──────────────────────────────────────────────────

class ExportError(LocalizerError, ValueError):
    pass


class MissingExportContextError(ExportError):
    def __init__(self, export_format: str, missing: str):
        self.export_format = export_format
        self.missing = missing
        super().__init__(f"{export_format} export requires {missing}")
