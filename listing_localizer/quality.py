"""Post-generation quality checks.

Validates each localized listing against its marketplace profile and the
original listing. Checks only flag; nothing is ever corrected.
"""
import math
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from listing_localizer.marketplaces import SHOPIFY_MARKETPLACE_ID, MarketplaceProfile
from listing_localizer.models import (
    LocalizationResultItem,
    LocalizedListing,
    ParsedListing,
    QualityFlag,
    QualityIssue,
)

SHORT_ORIGINAL_MIN_CHARS = 20
SHORT_RATIO = 0.10

# Shopify platform conventions, independent of the profile limits
SEO_TITLE_MAX = 60
SEO_DESCRIPTION_MAX = 160


def _check_field(
    flags: list[QualityFlag],
    field_name: str,
    value: Optional[str],
    max_chars: int,
    original_value: Optional[str] = None,
):
    """Check a single field: empty, over the limit, suspiciously short."""
    if not value or not value.strip():
        flags.append(QualityFlag(field_name, QualityIssue.EMPTY, f"{field_name} is empty"))
        return

    length = len(value)
    if max_chars > 0 and length > max_chars:
        flags.append(
            QualityFlag(
                field_name,
                QualityIssue.EXCEEDED_LIMIT,
                f"{length} chars (max {max_chars})",
            )
        )

    if original_value and len(original_value) > SHORT_ORIGINAL_MIN_CHARS:
        ratio = length / len(original_value)
        if ratio < SHORT_RATIO:
            pct = math.floor(ratio * 100 + 0.5)
            flags.append(
                QualityFlag(
                    field_name,
                    QualityIssue.SUSPICIOUSLY_SHORT,
                    f"{pct}% of original length",
                )
            )


def _check_bullets(
    flags: list[QualityFlag],
    localized: LocalizedListing,
    marketplace: MarketplaceProfile,
    original: ParsedListing,
):
    if localized.bullet_points is None:
        return
    bullets = localized.bullet_points
    original_bullets = original.bullet_points or ()
    for i, bullet in enumerate(bullets):
        _check_field(
            flags,
            f"bullet_points[{i}]",
            bullet,
            marketplace.bullet_point_max_chars,
            original_bullets[i] if i < len(original_bullets) else None,
        )

    # Only a full source set makes a shortfall suspicious
    expected = marketplace.bullet_point_count
    if len(bullets) < expected and len(original_bullets) >= expected:
        flags.append(
            QualityFlag(
                "bullet_points",
                QualityIssue.SUSPICIOUSLY_SHORT,
                f"Expected {expected} bullet points but got {len(bullets)}",
            )
        )


def check_listing_quality(
    localized: LocalizedListing,
    marketplace: MarketplaceProfile,
    original: ParsedListing,
) -> list[QualityFlag]:
    """Check a localized listing against marketplace rules.

    Args:
        localized: Generated listing.
        marketplace: Profile whose limits apply.
        original: Source listing, for length-ratio checks.

    Returns:
        Flags in field order: title, description, bullets, keywords, SEO.
    """
    flags: list[QualityFlag] = []

    _check_field(flags, "title", localized.title, marketplace.title_max_chars, original.title)
    _check_field(
        flags,
        "description",
        localized.description,
        marketplace.description_max_chars,
        original.description,
    )

    if marketplace.has_bullets:
        _check_bullets(flags, localized, marketplace, original)

    if marketplace.has_keywords and localized.keywords is not None:
        _check_field(
            flags,
            "keywords",
            localized.keywords,
            marketplace.keyword_max_chars,
            original.keywords,
        )

    if marketplace.id == SHOPIFY_MARKETPLACE_ID:
        seo_title = localized.seo_meta_title or ""
        if len(seo_title) > SEO_TITLE_MAX:
            flags.append(
                QualityFlag(
                    "seo_meta_title",
                    QualityIssue.EXCEEDED_LIMIT,
                    f"SEO title is {len(seo_title)} chars (max {SEO_TITLE_MAX})",
                )
            )
        seo_desc = localized.seo_meta_description or ""
        if len(seo_desc) > SEO_DESCRIPTION_MAX:
            flags.append(
                QualityFlag(
                    "seo_meta_description",
                    QualityIssue.EXCEEDED_LIMIT,
                    f"SEO description is {len(seo_desc)} chars (max {SEO_DESCRIPTION_MAX})",
                )
            )

    return flags


def attach_quality_flags(
    items: Iterable[LocalizationResultItem],
    marketplace: MarketplaceProfile,
) -> list[LocalizationResultItem]:
    """Return copies of the items with their quality flags filled in."""
    return [
        replace(
            item,
            quality_flags=tuple(check_listing_quality(item.localized, marketplace, item.original)),
        )
        for item in items
    ]


@dataclass
class QualitySummary:
    total_listings: int = 0
    flagged_listings: int = 0
    total_flags: int = 0
    by_issue: dict[str, int] = field(default_factory=dict)
    by_field: dict[str, int] = field(default_factory=dict)

    @property
    def clean_listings(self) -> int:
        return self.total_listings - self.flagged_listings

    def summary(self) -> str:
        issues = ", ".join(f"{k}: {v}" for k, v in sorted(self.by_issue.items())) or "none"
        return (
            f"Quality: {self.clean_listings}/{self.total_listings} clean | "
            f"{self.total_flags} flags ({issues})"
        )

    def to_dict(self) -> dict:
        return {
            "totalListings": self.total_listings,
            "flaggedListings": self.flagged_listings,
            "totalFlags": self.total_flags,
            "byIssue": dict(self.by_issue),
            "byField": dict(self.by_field),
        }


def summarize_quality(items: Iterable[LocalizationResultItem]) -> QualitySummary:
    """Aggregate flag counts across a result set."""
    items = list(items)
    issues: Counter = Counter()
    fields: Counter = Counter()
    for item in items:
        for flag in item.quality_flags:
            issues[flag.issue.value] += 1
            fields[flag.field] += 1
    return QualitySummary(
        total_listings=len(items),
        flagged_listings=sum(1 for i in items if i.quality_flags),
        total_flags=sum(issues.values()),
        by_issue=dict(issues),
        by_field=dict(fields),
    )
