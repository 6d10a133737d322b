"""Localization pipeline entry point.

upload -> parse -> map columns -> normalize -> generate (batched) ->
quality check -> LocalizationJob, ready for any exporter.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from listing_localizer.batch import GenerateFn, localize_listings
from listing_localizer.config import config
from listing_localizer.errors import (
    EmptyListingSetError,
    LocalizationValidationError,
    TooManyListingsError,
)
from listing_localizer.ingestion import (
    ParsedFile,
    auto_detect_columns,
    duplicate_targets,
    parse_file,
    parse_rows,
    validate_mappings,
)
from listing_localizer.marketplaces import MarketplaceProfile, require_marketplace
from listing_localizer.models import ColumnMapping, LocalizationResultItem
from listing_localizer.normalizer import apply_column_mappings
from listing_localizer.quality import QualitySummary, attach_quality_flags, summarize_quality

logger = logging.getLogger(__name__)


@dataclass
class LocalizationUsage:
    """Totals the caller can persist against the user's plan."""
    user_id: Optional[str] = None
    listings: int = 0
    generated: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "listings": self.listings,
            "generated": self.generated,
            "failed": self.failed,
        }


@dataclass
class LocalizationJob:
    results: tuple[LocalizationResultItem, ...]
    marketplace: MarketplaceProfile
    target_language: str
    quality: QualitySummary
    usage: LocalizationUsage
    source_rows: list[dict[str, str]] = field(default_factory=list)
    mappings: list[ColumnMapping] = field(default_factory=list)
    source_headers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "marketplace": self.marketplace.id,
            "targetLanguage": self.target_language,
            "quality": self.quality.to_dict(),
            "usage": self.usage.to_dict(),
        }


def _ingest(
    file_bytes: Optional[bytes],
    filename: Optional[str],
    rows: Optional[Sequence[dict[str, str]]],
) -> ParsedFile:
    if file_bytes is not None:
        return parse_file(file_bytes, filename or "")
    if rows is not None:
        return parse_rows(list(rows))
    raise LocalizationValidationError("Provide either file bytes or pre-parsed rows")


def resolve_mappings(
    parsed: ParsedFile,
    mappings: Optional[Sequence[ColumnMapping]],
) -> list[ColumnMapping]:
    """Confirmed mappings are validated strictly; auto-detected ones may overlap.

    When auto-detection maps two columns to one field, the later column
    wins during normalization.
    """
    if mappings is not None:
        confirmed = list(mappings)
        validate_mappings(confirmed)
        return confirmed

    detected = parsed.suggested_mappings or auto_detect_columns(parsed.headers)
    validate_mappings(detected, allow_duplicates=True)
    dupes = duplicate_targets(detected)
    if dupes:
        logger.warning("Auto-detected duplicate targets %s; last column wins", ", ".join(dupes))
    return detected


def localize(
    marketplace_id: str,
    target_language: str,
    *,
    file_bytes: Optional[bytes] = None,
    filename: Optional[str] = None,
    rows: Optional[Sequence[dict[str, str]]] = None,
    mappings: Optional[Sequence[ColumnMapping]] = None,
    generate_fn: Optional[GenerateFn] = None,
    batch_size: Optional[int] = None,
    model: Optional[str] = None,
    user_id: Optional[str] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> LocalizationJob:
    """Run the whole localization pipeline for one upload.

    Args:
        marketplace_id: Target marketplace (e.g. "amazon_de").
        target_language: Output language (e.g. "German").
        file_bytes: Uploaded file content; requires ``filename``.
        filename: Declared file name (extension selects the decoder).
        rows: Pre-parsed rows, used when no file bytes are given.
        mappings: Confirmed column mappings; None auto-detects.
        generate_fn: Generation capability override (tests, other backends).
        batch_size: Concurrent calls per batch.
        model: Model hint for the generation capability.
        user_id: Optional caller identity, echoed in the usage totals.
        on_progress: Optional callback(done, total).

    Returns:
        LocalizationJob with results in upload order, quality counts and
        usage totals. Quota is the caller's concern.

    Raises:
        IngestionError: the upload was rejected.
        LocalizationValidationError: unknown marketplace, missing language,
            invalid mappings, or an empty/oversized listing set.
    """
    marketplace = require_marketplace(marketplace_id)
    if not target_language or not target_language.strip():
        raise LocalizationValidationError("Target language is required")
    target_language = target_language.strip()

    parsed = _ingest(file_bytes, filename, rows)
    if parsed.is_empty:
        raise EmptyListingSetError("No listings found in the uploaded file")

    confirmed = resolve_mappings(parsed, mappings)
    listings = apply_column_mappings(parsed.rows, confirmed)
    if not listings:
        raise EmptyListingSetError("At least one listing is required")
    if len(listings) > config.MAX_LISTINGS:
        raise TooManyListingsError(
            f"Max {config.MAX_LISTINGS} listings per request (got {len(listings)})"
        )

    logger.info(
        "Localizing %d listings for %s into %s",
        len(listings), marketplace.id, target_language,
    )
    batch = localize_listings(
        listings,
        marketplace,
        target_language,
        generate_fn=generate_fn,
        batch_size=batch_size,
        model=model,
        on_progress=on_progress,
    )
    results = tuple(attach_quality_flags(batch.items, marketplace))
    quality = summarize_quality(results)
    logger.info(quality.summary())

    return LocalizationJob(
        results=results,
        marketplace=marketplace,
        target_language=target_language,
        quality=quality,
        usage=LocalizationUsage(
            user_id=user_id,
            listings=len(results),
            generated=batch.total_generated,
            failed=batch.total_failed,
        ),
        source_rows=parsed.rows,
        mappings=confirmed,
        source_headers=parsed.source_headers,
    )
