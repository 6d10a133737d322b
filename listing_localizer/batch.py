"""Batch orchestrator.

Sends listings to the generation capability in fixed-size batches. Batches
run one after another; the members of a batch run concurrently, and the
next batch starts only when every call in the current one has finished.
At most ``batch_size`` calls are in flight at any time.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from listing_localizer import ai_engine
from listing_localizer.config import config
from listing_localizer.marketplaces import MarketplaceProfile
from listing_localizer.models import LocalizationResultItem, LocalizedListing, ParsedListing
from listing_localizer.prompts import build_prompt

logger = logging.getLogger(__name__)

# generate_fn(system_message, user_message, model_hint) -> raw response text
GenerateFn = Callable[[str, str, Optional[str]], str]


def default_generate(system_message: str, user_message: str, model: Optional[str] = None) -> str:
    return ai_engine.call_ai(user_message, system_msg=system_message, model=model)


@dataclass
class BatchResult:
    items: list[LocalizationResultItem] = field(default_factory=list)
    total_generated: int = 0
    total_failed: int = 0
    batches: int = 0
    elapsed_ms: int = 0
    failed_rows: list[int] = field(default_factory=list)

    def summary(self) -> str:
        lines = [
            "Batch localization complete",
            f"   Listings: {len(self.items)} in {self.batches} batches",
            f"   Generated: {self.total_generated}",
            f"   Failed: {self.total_failed}",
            f"   Time: {self.elapsed_ms / 1000:.1f}s",
        ]
        return "\n".join(lines)


def partition(items: Sequence, batch_size: int) -> list[Sequence]:
    """Split into contiguous chunks of ``batch_size`` (the last may be shorter)."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]


def localize_single(
    listing: ParsedListing,
    marketplace: MarketplaceProfile,
    target_language: str,
    index: int,
    generate_fn: GenerateFn,
    model: Optional[str] = None,
) -> tuple[LocalizationResultItem, bool]:
    """Localize one listing. Returns the result item and whether the call succeeded.

    A failing call degrades to an empty-field LocalizedListing; it never
    raises, so one bad listing cannot take its batch down.
    """
    source_row = listing.source_row if listing.source_row is not None else index
    prompt = build_prompt(marketplace, listing, target_language)
    ok = True
    try:
        raw = generate_fn(prompt.system_message, prompt.user_message, model)
        localized = ai_engine.parse_localized_listing(raw)
        if not localized.title and not localized.description:
            ok = False
    except Exception as e:
        logger.warning("Generation failed for row %d: %s", source_row, e)
        localized = LocalizedListing()
        ok = False
    item = LocalizationResultItem(source_row=source_row, original=listing, localized=localized)
    return item, ok


def localize_listings(
    listings: Sequence[ParsedListing],
    marketplace: MarketplaceProfile,
    target_language: str,
    generate_fn: Optional[GenerateFn] = None,
    batch_size: Optional[int] = None,
    model: Optional[str] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> BatchResult:
    """Localize listings batch by batch, preserving input order.

    Args:
        listings: Parsed listings, in upload order.
        marketplace: Target marketplace profile.
        target_language: Output language.
        generate_fn: Generation capability (defaults to the configured API).
        batch_size: Calls in flight per batch (defaults to ``config.BATCH_SIZE``).
        model: Optional model hint passed through to ``generate_fn``.
        on_progress: Optional callback(done, total) after each batch.

    Returns:
        BatchResult whose ``items`` line up index-for-index with ``listings``.
        Quality flags are not attached here.
    """
    generate_fn = generate_fn or default_generate
    size = batch_size if batch_size is not None else config.BATCH_SIZE
    batches = partition(list(listings), size)
    total = len(listings)

    result = BatchResult()
    start = time.time()
    slots: list[Optional[LocalizationResultItem]] = [None] * total

    with ThreadPoolExecutor(max_workers=size) as executor:
        offset = 0
        for batch_no, batch in enumerate(batches, 1):
            futures = {
                offset + i: executor.submit(
                    localize_single,
                    listing, marketplace, target_language, offset + i, generate_fn, model,
                )
                for i, listing in enumerate(batch)
            }
            # Wait for the whole batch before starting the next one
            for index, future in futures.items():
                item, ok = future.result()
                slots[index] = item
                if ok:
                    result.total_generated += 1
                else:
                    result.total_failed += 1
                    result.failed_rows.append(item.source_row)
            offset += len(batch)
            result.batches += 1
            logger.debug("Batch %d/%d done (%d/%d listings)", batch_no, len(batches), offset, total)
            if on_progress:
                on_progress(offset, total)

    result.items = [item for item in slots if item is not None]
    result.elapsed_ms = int((time.time() - start) * 1000)
    logger.info(
        "Localized %d listings for %s (%d failed)",
        total, marketplace.id, result.total_failed,
    )
    return result
