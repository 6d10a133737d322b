"""Listing records that flow through the localization pipeline."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

MAX_BULLET_SLOTS = 5

TITLE = "title"
DESCRIPTION = "description"
KEYWORDS = "keywords"
PRICE = "price"
CATEGORY = "category"
DO_NOT_TRANSLATE = "doNotTranslate"
IGNORE = "ignore"
BULLET_PREFIX = "bulletPoints."

MAPPING_TARGETS = (
    TITLE,
    DESCRIPTION,
    *(f"{BULLET_PREFIX}{i}" for i in range(MAX_BULLET_SLOTS)),
    KEYWORDS,
    PRICE,
    CATEGORY,
    DO_NOT_TRANSLATE,
    IGNORE,
)

# Targets that only preserve the raw value for re-export
PASSTHROUGH_TARGETS = (DO_NOT_TRANSLATE, IGNORE)


def bullet_slot(target_field: str) -> Optional[int]:
    """Return the slot index of a ``bulletPoints.N`` target, else None."""
    if not target_field.startswith(BULLET_PREFIX):
        return None
    suffix = target_field[len(BULLET_PREFIX):]
    if not suffix.isdigit():
        return None
    idx = int(suffix)
    return idx if idx < MAX_BULLET_SLOTS else None


@dataclass(frozen=True)
class ColumnMapping:
    source_column: str
    target_field: str

    def to_dict(self) -> dict:
        return {"sourceColumn": self.source_column, "targetField": self.target_field}

    @classmethod
    def from_dict(cls, data: dict) -> "ColumnMapping":
        return cls(
            source_column=str(data.get("sourceColumn", data.get("source_column", ""))),
            target_field=str(data.get("targetField", data.get("target_field", IGNORE))),
        )


@dataclass(frozen=True)
class ParsedListing:
    title: str = ""
    description: str = ""
    bullet_points: Optional[tuple[str, ...]] = None
    keywords: Optional[str] = None
    price: Optional[str] = None
    category: Optional[str] = None
    source_row: Optional[int] = None
    extra_fields: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {"title": self.title, "description": self.description}
        if self.bullet_points is not None:
            data["bulletPoints"] = list(self.bullet_points)
        for key in ("keywords", "price", "category"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.source_row is not None:
            data["sourceRow"] = self.source_row
        data["extraFields"] = dict(self.extra_fields)
        return data


@dataclass(frozen=True)
class LocalizedListing:
    title: str = ""
    description: str = ""
    bullet_points: Optional[tuple[str, ...]] = None
    keywords: Optional[str] = None
    seo_meta_title: Optional[str] = None
    seo_meta_description: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"title": self.title, "description": self.description}
        if self.bullet_points is not None:
            data["bullet_points"] = list(self.bullet_points)
        for key in ("keywords", "seo_meta_title", "seo_meta_description"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


class QualityIssue(str, Enum):
    EMPTY = "empty"
    EXCEEDED_LIMIT = "exceeded_limit"
    SUSPICIOUSLY_SHORT = "suspiciously_short"


@dataclass(frozen=True)
class QualityFlag:
    field: str
    issue: QualityIssue
    detail: str

    def to_dict(self) -> dict:
        return {"field": self.field, "issue": self.issue.value, "detail": self.detail}


@dataclass(frozen=True)
class LocalizationResultItem:
    source_row: int
    original: ParsedListing
    localized: LocalizedListing
    quality_flags: tuple[QualityFlag, ...] = ()

    def to_dict(self) -> dict:
        return {
            "sourceRow": self.source_row,
            "original": self.original.to_dict(),
            "localized": self.localized.to_dict(),
            "qualityFlags": [f.to_dict() for f in self.quality_flags],
        }
