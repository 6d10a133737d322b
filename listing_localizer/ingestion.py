"""Tabular ingestion and column mapping.

Turns an uploaded CSV/TSV/XLSX/XLS file into headers + rows of strings, and
suggests which source column feeds which canonical listing field.

Column detection normalizes each header (lowercase, whitespace/hyphen runs
to ``_``) and tests pattern families in a fixed priority order:
title, description, bullet point, keyword, price, category. The first
family that matches wins; anything else is ignored.
"""
import csv
import io
import logging
import re
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import PurePath
from typing import Iterable, Iterator, Optional

import xlrd
from xlrd.compdoc import CompDocError
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from listing_localizer.config import config
from listing_localizer.errors import (
    EmptyFileError,
    FileDecodeError,
    FileTooLargeError,
    InvalidMappingError,
    UnsupportedFileError,
)
from listing_localizer.models import (
    BULLET_PREFIX,
    CATEGORY,
    DESCRIPTION,
    IGNORE,
    KEYWORDS,
    MAPPING_TARGETS,
    MAX_BULLET_SLOTS,
    PASSTHROUGH_TARGETS,
    PRICE,
    TITLE,
    ColumnMapping,
)

logger = logging.getLogger(__name__)

DELIMITED_EXTENSIONS = (".csv", ".tsv", ".txt")
WORKBOOK_EXTENSIONS = (".xlsx",)
LEGACY_WORKBOOK_EXTENSIONS = (".xls",)
SUPPORTED_EXTENSIONS = DELIMITED_EXTENSIONS + WORKBOOK_EXTENSIONS + LEGACY_WORKBOOK_EXTENSIONS

SUPPORTED_MIME_TYPES = (
    "text/csv",
    "text/tab-separated-values",
    "text/plain",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
)


# ── Header patterns ────────────────────────────────────────

TITLE_PATTERNS = [
    "title", "product_title", "name", "product_name", "item_name", "listing_title",
]
DESCRIPTION_PATTERNS = [
    "description", "product_description", "body_html", "body", "listing_description",
    "product_description_html",
]
BULLET_PATTERNS = [
    "bullet_point", "bullet_point1", "bullet_point2", "bullet_point3",
    "bullet_point4", "bullet_point5",
    "bulletpoint", "bulletpoint1", "bulletpoint2", "bulletpoint3",
    "bulletpoint4", "bulletpoint5",
    "bullet", "bullet1", "bullet2", "bullet3", "bullet4", "bullet5",
    "key_product_features", "key_product_feature",
    "feature_bullet", "product_bullet",
]
KEYWORD_PATTERNS = [
    "search_terms", "keywords", "tags", "generic_keyword", "generic_keywords",
    "search_keywords",
]
PRICE_PATTERNS = ["price", "standard_price", "list_price", "sale_price"]
CATEGORY_PATTERNS = [
    "category", "product_type", "item_type", "recommended_browse_nodes",
]

_BULLETS = "bullets"

# Checked in order; the first family that matches wins.
PATTERN_FAMILIES = (
    (TITLE, TITLE_PATTERNS),
    (DESCRIPTION, DESCRIPTION_PATTERNS),
    (_BULLETS, BULLET_PATTERNS),
    (KEYWORDS, KEYWORD_PATTERNS),
    (PRICE, PRICE_PATTERNS),
    (CATEGORY, CATEGORY_PATTERNS),
)


@dataclass
class ParsedFile:
    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)
    detected_format: str = "csv"  # csv | tsv | xlsx | rows
    suggested_mappings: list[ColumnMapping] = field(default_factory=list)
    # Header cells as uploaded, aligned with ``headers`` (which are made unique)
    source_headers: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def summary(self) -> str:
        return (
            f"{self.detected_format.upper()} | {len(self.headers)} columns | "
            f"{len(self.rows)} rows"
        )


# ── Column detection ───────────────────────────────────────

def normalize_header(header: str) -> str:
    """Lowercase a header and collapse whitespace/hyphen runs to underscores."""
    return re.sub(r"[\s\-]+", "_", header.lower()).strip()


def _matches(normalized: str, patterns: list[str]) -> bool:
    for p in patterns:
        if normalized == p or normalized.startswith(p + "_") or normalized.endswith("_" + p):
            return True
        # "bullet_1" / "bullet1" against the "bullet" base pattern
        if not re.search(r"\d", p) and re.fullmatch(re.escape(p) + r"_?\d+", normalized):
            return True
    return False


def auto_detect_columns(headers: Iterable[str]) -> list[ColumnMapping]:
    """Suggest a mapping for every header.

    Bullet-point headers get sequential slots ``bulletPoints.0..4`` in the
    order they appear; a sixth matching header also lands on slot 4.
    """
    mappings = []
    bullet_index = 0
    for header in headers:
        norm = normalize_header(header)
        target = IGNORE
        for family, patterns in PATTERN_FAMILIES:
            if not _matches(norm, patterns):
                continue
            if family == _BULLETS:
                target = f"{BULLET_PREFIX}{min(bullet_index, MAX_BULLET_SLOTS - 1)}"
                bullet_index += 1
            else:
                target = family
            break
        mappings.append(ColumnMapping(header, target))
    return mappings


def header_fingerprint(headers: Iterable[str]) -> str:
    """Key for structurally identical files: sorted header names joined by '|'."""
    return "|".join(sorted(headers))


def duplicate_targets(mappings: Iterable[ColumnMapping]) -> list[str]:
    """Canonical targets claimed by more than one column, in first-seen order."""
    counts: dict[str, int] = {}
    for m in mappings:
        if m.target_field in PASSTHROUGH_TARGETS:
            continue
        counts[m.target_field] = counts.get(m.target_field, 0) + 1
    return [target for target, count in counts.items() if count > 1]


def validate_mappings(mappings: list[ColumnMapping], allow_duplicates: bool = False):
    """Reject a mapping set that cannot drive localization.

    Raises:
        InvalidMappingError: no title column, an unknown target, or (unless
            ``allow_duplicates``) two columns feeding the same field.
    """
    unknown = [m.target_field for m in mappings if m.target_field not in MAPPING_TARGETS]
    if unknown:
        raise InvalidMappingError(f"Unknown mapping target(s): {', '.join(unknown)}")
    if not any(m.target_field == TITLE for m in mappings):
        raise InvalidMappingError("At least one column must be mapped to title")
    if not allow_duplicates:
        dupes = duplicate_targets(mappings)
        if dupes:
            raise InvalidMappingError(f"Duplicate mapping: {', '.join(dupes)}")


# ── Parsing ────────────────────────────────────────────────

def _unique_headers(raw_headers: Iterable[object]) -> list[str]:
    headers = []
    seen: dict[str, int] = {}
    for i, raw in enumerate(raw_headers):
        name = _cell_text(raw).strip() or f"column_{i + 1}"
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        seen.setdefault(name, 0)
        headers.append(name)
    return headers


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def _build_rows(headers: list[str], records: Iterable[Iterable[object]]) -> list[dict[str, str]]:
    rows = []
    for record in records:
        cells = [_cell_text(v) for v in record]
        if not any(c.strip() for c in cells):
            continue
        cells = cells[:len(headers)] + [""] * (len(headers) - len(cells))
        rows.append(dict(zip(headers, cells)))
    return rows


def detect_delimiter(text: str) -> str:
    """Tab if the first line has strictly more tabs than commas, else comma."""
    first_line = text.split("\n", 1)[0]
    return "\t" if first_line.count("\t") > first_line.count(",") else ","


def parse_delimited(text: str) -> ParsedFile:
    """Parse CSV or TSV text into headers + rows."""
    delimiter = detect_delimiter(text)
    detected = "tsv" if delimiter == "\t" else "csv"
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    try:
        header_row = next(reader, None)
        if header_row is None:
            return ParsedFile(detected_format=detected)
        headers = _unique_headers(header_row)
        rows = _build_rows(headers, reader)
    except csv.Error as e:
        raise FileDecodeError(f"Could not read delimited file: {e}") from e
    return ParsedFile(
        headers=headers,
        rows=rows,
        detected_format=detected,
        source_headers=list(header_row),
    )


def _sheet_to_parsed(records: Iterator[Iterable[object]]) -> ParsedFile:
    header_row = next(records, None)
    if header_row is None:
        return ParsedFile(detected_format="xlsx")
    # Trailing empty header cells are sheet padding, not columns
    header_cells = list(header_row)
    while header_cells and _cell_text(header_cells[-1]).strip() == "":
        header_cells.pop()
    headers = _unique_headers(header_cells)
    return ParsedFile(
        headers=headers,
        rows=_build_rows(headers, records),
        detected_format="xlsx",
        source_headers=[_cell_text(h) for h in header_cells],
    )


def parse_workbook(data: bytes) -> ParsedFile:
    """Parse the first worksheet of an .xlsx workbook."""
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise FileDecodeError(f"Could not read spreadsheet: {e}") from e

    try:
        if not wb.worksheets:
            return ParsedFile(detected_format="xlsx")
        return _sheet_to_parsed(wb.worksheets[0].iter_rows(values_only=True))
    finally:
        wb.close()


def _xls_value(cell, datemode: int) -> object:
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype in (xlrd.XL_CELL_ERROR, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_EMPTY):
        return None
    return cell.value


def parse_legacy_workbook(data: bytes) -> ParsedFile:
    """Parse the first worksheet of a legacy .xls workbook."""
    try:
        book = xlrd.open_workbook(file_contents=data)
    except (xlrd.XLRDError, CompDocError, OSError, ValueError, AssertionError) as e:
        raise FileDecodeError(f"Could not read spreadsheet: {e}") from e

    try:
        if book.nsheets == 0:
            return ParsedFile(detected_format="xlsx")
        sheet = book.sheet_by_index(0)
        records = (
            [_xls_value(cell, book.datemode) for cell in sheet.row(r)]
            for r in range(sheet.nrows)
        )
        return _sheet_to_parsed(records)
    finally:
        book.release_resources()


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileDecodeError(
            "File is not valid UTF-8 text. Re-save it as UTF-8 CSV and upload again."
        ) from e


def parse_file(data: bytes, filename: str, max_bytes: Optional[int] = None) -> ParsedFile:
    """Parse an uploaded file (CSV, TSV, XLSX or legacy XLS).

    Args:
        data: Raw file bytes.
        filename: Declared file name; its extension selects the decoder.
        max_bytes: Size ceiling (defaults to ``config.MAX_FILE_BYTES``).

    Returns:
        ParsedFile with suggested mappings. A file with headers but no data
        rows yields an empty ``rows`` list rather than an error.

    Raises:
        UnsupportedFileError, EmptyFileError, FileTooLargeError,
        FileDecodeError.
    """
    extension = PurePath(filename or "").suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileError(
            f"Unsupported file type '{extension or filename}'. "
            f"Upload one of: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    if not data:
        raise EmptyFileError("File is empty.")
    limit = max_bytes if max_bytes is not None else config.MAX_FILE_BYTES
    if len(data) > limit:
        raise FileTooLargeError(
            f"File is too large ({len(data) / (1024 * 1024):.1f} MB, "
            f"max {limit / (1024 * 1024):.1f} MB)."
        )

    if extension in WORKBOOK_EXTENSIONS:
        parsed = parse_workbook(data)
    elif extension in LEGACY_WORKBOOK_EXTENSIONS:
        parsed = parse_legacy_workbook(data)
    else:
        parsed = parse_delimited(_decode_text(data))

    parsed.suggested_mappings = auto_detect_columns(parsed.headers)
    logger.info("Parsed %s: %s", filename, parsed.summary())
    return parsed


def parse_rows(rows: list[dict[str, str]]) -> ParsedFile:
    """Wrap already-parsed rows (column -> value) in a ParsedFile."""
    headers: list[str] = []
    for row in rows:
        for key in row:
            if key not in headers:
                headers.append(key)
    clean = [
        {h: "" if row.get(h) is None else str(row.get(h)) for h in headers}
        for row in rows
    ]
    return ParsedFile(
        headers=headers,
        rows=clean,
        detected_format="rows",
        suggested_mappings=auto_detect_columns(headers),
        source_headers=list(headers),
    )
