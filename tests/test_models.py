"""Tests for listing records and the error hierarchy."""
import dataclasses

import pytest

from listing_localizer.errors import (
    FileTooLargeError,
    IngestionError,
    LocalizerError,
    MissingExportContextError,
    UnknownMarketplaceError,
)
from listing_localizer.models import (
    MAPPING_TARGETS,
    ColumnMapping,
    LocalizationResultItem,
    LocalizedListing,
    ParsedListing,
    QualityFlag,
    QualityIssue,
    bullet_slot,
)


class TestBulletSlot:
    def test_valid_slots(self):
        assert [bullet_slot(f"bulletPoints.{i}") for i in range(5)] == [0, 1, 2, 3, 4]

    def test_out_of_range(self):
        assert bullet_slot("bulletPoints.5") is None

    def test_not_a_bullet(self):
        assert bullet_slot("title") is None
        assert bullet_slot("bulletPoints.x") is None

    def test_targets_cover_all_slots(self):
        assert "bulletPoints.4" in MAPPING_TARGETS
        assert "bulletPoints.5" not in MAPPING_TARGETS


class TestColumnMapping:
    def test_dict_round_trip(self):
        mapping = ColumnMapping("item_name", "title")
        assert mapping.to_dict() == {"sourceColumn": "item_name", "targetField": "title"}
        assert ColumnMapping.from_dict(mapping.to_dict()) == mapping

    def test_from_snake_case_dict(self):
        assert ColumnMapping.from_dict({"source_column": "a", "target_field": "price"}) == \
            ColumnMapping("a", "price")

    def test_missing_target_defaults_to_ignore(self):
        assert ColumnMapping.from_dict({"sourceColumn": "a"}).target_field == "ignore"


class TestListings:
    def test_parsed_listing_immutable(self):
        listing = ParsedListing(title="Lamp")
        with pytest.raises(dataclasses.FrozenInstanceError):
            listing.title = "Mug"

    def test_parsed_listing_dict(self):
        listing = ParsedListing(
            title="Lamp", bullet_points=("a", ""), price="9.99", source_row=2,
            extra_fields={"brand": "Acme"},
        )
        assert listing.to_dict() == {
            "title": "Lamp",
            "description": "",
            "bulletPoints": ["a", ""],
            "price": "9.99",
            "sourceRow": 2,
            "extraFields": {"brand": "Acme"},
        }

    def test_localized_defaults(self):
        listing = LocalizedListing()
        assert listing.title == ""
        assert listing.description == ""
        assert listing.to_dict() == {"title": "", "description": ""}

    def test_result_item_dict(self):
        item = LocalizationResultItem(
            source_row=0,
            original=ParsedListing(title="Lamp"),
            localized=LocalizedListing(title="Lampe"),
            quality_flags=(QualityFlag("description", QualityIssue.EMPTY, "description is empty"),),
        )
        data = item.to_dict()
        assert data["sourceRow"] == 0
        assert data["localized"]["title"] == "Lampe"
        assert data["qualityFlags"] == [
            {"field": "description", "issue": "empty", "detail": "description is empty"}
        ]


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(FileTooLargeError, IngestionError)
        assert issubclass(IngestionError, LocalizerError)
        assert issubclass(IngestionError, ValueError)

    def test_unknown_marketplace_message(self):
        err = UnknownMarketplaceError("ebay_uk")
        assert err.marketplace_id == "ebay_uk"
        assert str(err) == "Unknown marketplace: ebay_uk"

    def test_missing_export_context_message(self):
        err = MissingExportContextError("Amazon flat file", "the original uploaded rows")
        assert str(err) == "Amazon flat file export requires the original uploaded rows"
