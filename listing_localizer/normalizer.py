"""Apply confirmed column mappings to raw rows."""
from listing_localizer.errors import InvalidMappingError
from listing_localizer.models import (
    CATEGORY,
    DESCRIPTION,
    KEYWORDS,
    PASSTHROUGH_TARGETS,
    PRICE,
    TITLE,
    ColumnMapping,
    ParsedListing,
    bullet_slot,
)

_SCALAR_TARGETS = (TITLE, DESCRIPTION, KEYWORDS, PRICE, CATEGORY)


def normalize_row(row: dict[str, str], mappings: list[ColumnMapping], row_index: int) -> ParsedListing:
    """Build one ParsedListing from one raw row.

    Mappings are applied in order, so when two columns feed the same field
    the later one wins. Bullet slots keep their positions; unset slots
    below the highest mapped one are filled with "".
    """
    fields: dict[str, str] = {}
    bullets: dict[int, str] = {}
    extra: dict[str, str] = {}

    for mapping in mappings:
        value = row.get(mapping.source_column) or ""
        target = mapping.target_field

        if target in PASSTHROUGH_TARGETS:
            if value:
                extra[mapping.source_column] = value
            continue

        if target in _SCALAR_TARGETS:
            fields[target] = value
            continue

        slot = bullet_slot(target)
        if slot is None:
            raise InvalidMappingError(
                f"Unknown mapping target '{target}' for column '{mapping.source_column}'"
            )
        bullets[slot] = value

    bullet_points = None
    if bullets:
        bullet_points = tuple(bullets.get(i, "") for i in range(max(bullets) + 1))

    return ParsedListing(
        title=fields.get(TITLE, ""),
        description=fields.get(DESCRIPTION, ""),
        bullet_points=bullet_points,
        keywords=fields.get(KEYWORDS),
        price=fields.get(PRICE),
        category=fields.get(CATEGORY),
        source_row=row_index,
        extra_fields=extra,
    )


def apply_column_mappings(
    rows: list[dict[str, str]],
    mappings: list[ColumnMapping],
) -> list[ParsedListing]:
    """Convert flat rows into ParsedListing records, one per row."""
    return [normalize_row(row, mappings, i) for i, row in enumerate(rows)]
