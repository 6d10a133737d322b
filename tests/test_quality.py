"""Tests for post-generation quality checks."""
from listing_localizer.marketplaces import MARKETPLACES
from listing_localizer.models import (
    LocalizationResultItem,
    LocalizedListing,
    ParsedListing,
    QualityFlag,
    QualityIssue,
)
from listing_localizer.quality import (
    attach_quality_flags,
    check_listing_quality,
    summarize_quality,
)

AMAZON_DE = MARKETPLACES["amazon_de"]
ETSY = MARKETPLACES["etsy_international"]
SHOPIFY = MARKETPLACES["shopify_international"]

FIVE = tuple(f"Vorteil {i}" for i in range(5))


def _flags_for(localized, marketplace=AMAZON_DE, original=None):
    return check_listing_quality(localized, marketplace, original or ParsedListing())


def _by_field(flags):
    return {f.field: f for f in flags}


class TestFieldChecks:
    def test_clean_listing(self):
        localized = LocalizedListing(title="Lampe", description="Helle Lampe", bullet_points=FIVE)
        assert _flags_for(localized) == []

    def test_title_over_limit(self):
        localized = LocalizedListing(title="x" * 210, description="ok", bullet_points=FIVE)
        flags = _flags_for(localized)
        assert flags == [QualityFlag("title", QualityIssue.EXCEEDED_LIMIT, "210 chars (max 200)")]

    def test_title_at_limit(self):
        localized = LocalizedListing(title="x" * 200, description="ok", bullet_points=FIVE)
        assert _flags_for(localized) == []

    def test_empty_title(self):
        flags = _flags_for(LocalizedListing(title="", description="ok", bullet_points=FIVE))
        assert flags == [QualityFlag("title", QualityIssue.EMPTY, "title is empty")]

    def test_whitespace_is_empty(self):
        flags = _flags_for(LocalizedListing(title="   ", description="ok", bullet_points=FIVE))
        assert flags[0].issue == QualityIssue.EMPTY

    def test_empty_short_circuits_other_checks(self):
        original = ParsedListing(title="A long original product title here")
        flags = _flags_for(LocalizedListing(description="ok", bullet_points=FIVE), original=original)
        assert [f.issue for f in flags] == [QualityIssue.EMPTY]

    def test_suspiciously_short(self):
        original = ParsedListing(title="T", description="d" * 100)
        localized = LocalizedListing(title="T", description="d" * 8, bullet_points=FIVE)
        flags = _flags_for(localized, original=original)
        assert flags == [
            QualityFlag("description", QualityIssue.SUSPICIOUSLY_SHORT, "8% of original length")
        ]

    def test_ratio_at_threshold_not_flagged(self):
        original = ParsedListing(title="T", description="d" * 100)
        localized = LocalizedListing(title="T", description="d" * 10, bullet_points=FIVE)
        assert _flags_for(localized, original=original) == []

    def test_short_original_never_ratio_checked(self):
        original = ParsedListing(title="t" * 20)
        localized = LocalizedListing(title="t", description="ok", bullet_points=FIVE)
        assert _flags_for(localized, original=original) == []

    def test_percentage_rounded(self):
        original = ParsedListing(title="T", description="d" * 1000)
        localized = LocalizedListing(title="T", description="d" * 57, bullet_points=FIVE)
        flags = _flags_for(localized, original=original)
        assert flags[0].detail == "6% of original length"

    def test_over_limit_and_short_both_flag(self):
        profile = MARKETPLACES["etsy_international"]
        original = ParsedListing(title="T", description="d" * 200000)
        localized = LocalizedListing(title="T", description="d" * 10001)
        flags = [f for f in _flags_for(localized, profile, original) if f.field == "description"]
        assert [f.issue for f in flags] == [
            QualityIssue.EXCEEDED_LIMIT, QualityIssue.SUSPICIOUSLY_SHORT,
        ]


class TestBulletChecks:
    def test_indexed_bullet_flags(self):
        bullets = ("ok", "", "b" * 510, "ok", "ok")
        flags = _flags_for(LocalizedListing(title="T", description="D", bullet_points=bullets))
        assert flags == [
            QualityFlag("bullet_points[1]", QualityIssue.EMPTY, "bullet_points[1] is empty"),
            QualityFlag("bullet_points[2]", QualityIssue.EXCEEDED_LIMIT, "510 chars (max 500)"),
        ]

    def test_missing_bullets_flagged(self):
        original = ParsedListing(title="T", bullet_points=FIVE)
        flags = _flags_for(
            LocalizedListing(title="T", description="D", bullet_points=("a", "b")), original=original
        )
        assert flags == [
            QualityFlag(
                "bullet_points",
                QualityIssue.SUSPICIOUSLY_SHORT,
                "Expected 5 bullet points but got 2",
            )
        ]

    def test_no_bullets_returned(self):
        original = ParsedListing(title="T", bullet_points=FIVE)
        flags = _flags_for(
            LocalizedListing(title="T", description="D", bullet_points=()), original=original
        )
        assert flags[-1].detail == "Expected 5 bullet points but got 0"

    def test_short_source_set_not_flagged(self):
        original = ParsedListing(title="T", bullet_points=("only one",))
        flags = _flags_for(
            LocalizedListing(title="T", description="D", bullet_points=("a", "b")), original=original
        )
        assert "bullet_points" not in _by_field(flags)

    def test_absent_bullet_array_not_checked(self):
        original = ParsedListing(title="T", bullet_points=FIVE)
        flags = _flags_for(LocalizedListing(title="T", description="D"), original=original)
        assert flags == []

    def test_bullet_ratio_against_same_slot(self):
        original = ParsedListing(title="T", bullet_points=("x" * 100,))
        bullets = ("x" * 5, "ok", "ok", "ok", "ok")
        flags = _flags_for(
            LocalizedListing(title="T", description="D", bullet_points=bullets), original=original
        )
        assert flags == [
            QualityFlag("bullet_points[0]", QualityIssue.SUSPICIOUSLY_SHORT, "5% of original length")
        ]

    def test_marketplace_without_bullets_skips_checks(self):
        localized = LocalizedListing(title="T", description="D", bullet_points=("",))
        assert _flags_for(localized, ETSY) == []


class TestKeywordChecks:
    def test_keyword_limit(self):
        localized = LocalizedListing(title="T", description="D", keywords="k" * 25)
        assert _flags_for(localized, ETSY) == [
            QualityFlag("keywords", QualityIssue.EXCEEDED_LIMIT, "25 chars (max 20)")
        ]

    def test_absent_keywords_skipped(self):
        assert _flags_for(LocalizedListing(title="T", description="D"), ETSY) == []

    def test_marketplace_without_keywords(self):
        localized = LocalizedListing(title="T", description="D", keywords="k" * 999)
        assert _flags_for(localized, SHOPIFY) == []


class TestShopifySEO:
    def test_seo_title_over_60(self):
        localized = LocalizedListing(title="T", description="D", seo_meta_title="s" * 61)
        assert _flags_for(localized, SHOPIFY) == [
            QualityFlag("seo_meta_title", QualityIssue.EXCEEDED_LIMIT, "SEO title is 61 chars (max 60)")
        ]

    def test_seo_description_over_160(self):
        localized = LocalizedListing(title="T", description="D", seo_meta_description="s" * 170)
        flags = _flags_for(localized, SHOPIFY)
        assert flags[0].detail == "SEO description is 170 chars (max 160)"

    def test_seo_at_limits(self):
        localized = LocalizedListing(
            title="T", description="D", seo_meta_title="s" * 60, seo_meta_description="s" * 160
        )
        assert _flags_for(localized, SHOPIFY) == []

    def test_seo_not_checked_elsewhere(self):
        localized = LocalizedListing(title="T", description="D", seo_meta_title="s" * 200)
        assert _flags_for(localized, ETSY) == []


class TestAttachAndSummarize:
    def _items(self):
        return [
            LocalizationResultItem(0, ParsedListing(title="A"), LocalizedListing(title="A", description="D")),
            LocalizationResultItem(1, ParsedListing(title="B"), LocalizedListing(title="", description="")),
        ]

    def test_attach_returns_copies(self):
        items = self._items()
        checked = attach_quality_flags(items, ETSY)
        assert items[1].quality_flags == ()
        assert checked[0].quality_flags == ()
        assert [f.field for f in checked[1].quality_flags] == ["title", "description"]

    def test_summary_counts(self):
        summary = summarize_quality(attach_quality_flags(self._items(), ETSY))
        assert summary.total_listings == 2
        assert summary.flagged_listings == 1
        assert summary.clean_listings == 1
        assert summary.total_flags == 2
        assert summary.by_issue == {"empty": 2}
        assert summary.by_field == {"title": 1, "description": 1}
        assert "1/2 clean" in summary.summary()

    def test_summary_dict(self):
        data = summarize_quality([]).to_dict()
        assert data == {
            "totalListings": 0,
            "flaggedListings": 0,
            "totalFlags": 0,
            "byIssue": {},
            "byField": {},
        }
