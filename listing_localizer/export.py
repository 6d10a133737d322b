"""Export localized listings (generic CSV, Amazon flat file, Shopify, Etsy, XLSX).

Every exporter is a pure function of the result set plus whatever context
its format needs. ``export_results`` picks the exporter from the request
type and wraps the output with a file name and MIME type.
"""
import csv
import io
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from listing_localizer.errors import ExportError, MissingExportContextError
from listing_localizer.marketplaces import MarketplaceProfile
from listing_localizer.models import LocalizationResultItem

# Canonical field -> Amazon flat file column
AMAZON_FLAT_FILE_COLUMNS = {
    "title": "item_name",
    "description": "product_description",
    "bullet_points.0": "bullet_point1",
    "bullet_points.1": "bullet_point2",
    "bullet_points.2": "bullet_point3",
    "bullet_points.3": "bullet_point4",
    "bullet_points.4": "bullet_point5",
    "keywords": "generic_keyword",
}

SHOPIFY_HEADERS = ["Handle", "Title", "Body (HTML)", "Tags", "SEO Title", "SEO Description"]
ETSY_HEADERS = ["Title", "Description", "Tags"]
QUALITY_REPORT_HEADERS = ["Row", "Title", "Field", "Issue", "Detail"]

MAIN_SHEET_TITLE = "Localized Listings"
QUALITY_SHEET_TITLE = "Quality Report"

CSV_MIME = "text/csv;charset=utf-8"
TSV_MIME = "text/tab-separated-values"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ── Helpers ────────────────────────────────────────────────

def _write_rows(rows: list[list], delimiter: str = ",") -> str:
    """Serialize rows; values with a delimiter, quote or newline get quoted."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue().rstrip("\n")


def slugify(text: str) -> str:
    """URL handle: lowercase, word chars and hyphens only, at most 100 chars."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = slug.strip("-")
    return slug[:100]


def flags_summary(item: LocalizationResultItem) -> str:
    if not item.quality_flags:
        return "OK"
    return "; ".join(f"{f.field}: {f.detail}" for f in item.quality_flags)


def _sheet_value(value):
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def _bullet(bullets: Optional[tuple[str, ...]], i: int) -> str:
    if bullets and i < len(bullets):
        return bullets[i] or ""
    return ""


def _main_headers(target_language: str, bullet_count: int) -> list[str]:
    headers = [
        "Row",
        "Original Title",
        f"{target_language} Title",
        "Original Description",
        f"{target_language} Description",
    ]
    for i in range(1, bullet_count + 1):
        headers += [f"Original Bullet {i}", f"{target_language} Bullet {i}"]
    headers += ["Original Keywords", f"{target_language} Keywords"]
    return headers


def _main_row(r: LocalizationResultItem, bullet_count: int) -> list:
    row = [
        r.source_row,
        r.original.title,
        r.localized.title,
        r.original.description,
        r.localized.description,
    ]
    for i in range(bullet_count):
        row += [_bullet(r.original.bullet_points, i), _bullet(r.localized.bullet_points, i)]
    row += [r.original.keywords or "", r.localized.keywords or ""]
    return row


# ── Exporters ──────────────────────────────────────────────

def export_generic_csv(results: Sequence[LocalizationResultItem], target_language: str) -> str:
    """Side-by-side CSV of original and localized fields plus a flag summary.

    Bullet columns are sized to the most bullets seen in any result, so
    partial data still round-trips.
    """
    max_bullets = max(
        (
            max(len(r.original.bullet_points or ()), len(r.localized.bullet_points or ()))
            for r in results
        ),
        default=0,
    )
    rows = [_main_headers(target_language, max_bullets) + ["Quality Flags"]]
    for r in results:
        rows.append(_main_row(r, max_bullets) + [flags_summary(r)])
    return _write_rows(rows)


def export_amazon_flat_file(
    results: Sequence[LocalizationResultItem],
    original_rows: Sequence[dict[str, str]],
    source_headers: Optional[Sequence[str]] = None,
) -> str:
    """Amazon Seller Central flat file (tab-delimited).

    Each output row is a full copy of the uploaded row; only the
    translatable columns are overwritten. Brand, SKU, ASIN and any other
    column keep their original values. ``source_headers`` (the header cells
    as uploaded, one per row key) replaces the parsed names in the header
    line, so blank or repeated header cells are written back unchanged.

    Raises:
        MissingExportContextError: no original rows, or a result whose
            source row is not among them.
    """
    if not original_rows:
        raise MissingExportContextError("Amazon flat file", "the original uploaded rows")

    headers = list(original_rows[0].keys())
    if source_headers is not None and len(source_headers) == len(headers):
        rows = [list(source_headers)]
    else:
        rows = [headers]
    for r in results:
        if not 0 <= r.source_row < len(original_rows):
            raise MissingExportContextError(
                "Amazon flat file", f"the original row {r.source_row}"
            )
        row = dict(original_rows[r.source_row])
        localized = r.localized
        for field_name, column in AMAZON_FLAT_FILE_COLUMNS.items():
            if column not in row:
                continue
            if field_name == "title":
                row[column] = localized.title
            elif field_name == "description":
                row[column] = localized.description
            elif field_name == "keywords":
                row[column] = localized.keywords or ""
            else:
                idx = int(field_name.split(".")[1])
                row[column] = _bullet(localized.bullet_points, idx)
        rows.append([row.get(h) or "" for h in headers])
    return _write_rows(rows, delimiter="\t")


def export_shopify_csv(results: Sequence[LocalizationResultItem]) -> str:
    """Shopify product import CSV with a slugified handle."""
    rows = [SHOPIFY_HEADERS]
    for r in results:
        rows.append([
            slugify(r.localized.title or r.original.title),
            r.localized.title,
            r.localized.description,
            r.localized.keywords or "",
            r.localized.seo_meta_title or "",
            r.localized.seo_meta_description or "",
        ])
    return _write_rows(rows)


def export_etsy_csv(results: Sequence[LocalizationResultItem]) -> str:
    """Etsy listing CSV (tags stay comma-separated inside one quoted cell)."""
    rows = [ETSY_HEADERS]
    for r in results:
        rows.append([r.localized.title, r.localized.description, r.localized.keywords or ""])
    return _write_rows(rows)


def export_xlsx(
    results: Sequence[LocalizationResultItem],
    target_language: str,
    marketplace: MarketplaceProfile,
) -> bytes:
    """Workbook with the listings sheet and, if anything was flagged, a quality report.

    Bullet columns follow the marketplace's nominal bullet count.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = MAIN_SHEET_TITLE
    bullet_count = marketplace.bullet_point_count
    ws.append(_main_headers(target_language, bullet_count))
    for r in results:
        ws.append([_sheet_value(v) for v in _main_row(r, bullet_count)])

    report = [
        [r.source_row, r.original.title, f.field, f.issue.value, f.detail]
        for r in results
        for f in r.quality_flags
    ]
    if report:
        qws = wb.create_sheet(QUALITY_SHEET_TITLE)
        qws.append(QUALITY_REPORT_HEADERS)
        for row in report:
            qws.append([_sheet_value(v) for v in row])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ── Format selection ───────────────────────────────────────

@dataclass(frozen=True)
class GenericCsvExport:
    target_language: str


@dataclass(frozen=True)
class AmazonFlatFileExport:
    original_rows: Sequence[dict[str, str]]
    target_language: str = ""
    source_headers: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class ShopifyCsvExport:
    target_language: str = ""


@dataclass(frozen=True)
class EtsyCsvExport:
    target_language: str = ""


@dataclass(frozen=True)
class WorkbookExport:
    target_language: str
    marketplace: MarketplaceProfile


ExportRequest = Union[
    GenericCsvExport, AmazonFlatFileExport, ShopifyCsvExport, EtsyCsvExport, WorkbookExport
]


@dataclass(frozen=True)
class ExportPayload:
    content: Union[str, bytes]
    filename: str
    mime_type: str

    def as_bytes(self) -> bytes:
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode("utf-8")


def _lang_slug(language: str) -> str:
    return slugify(language).replace("-", "_") or "localized"


def _export_generic(results, req: GenericCsvExport) -> ExportPayload:
    return ExportPayload(
        export_generic_csv(results, req.target_language),
        f"localized_{_lang_slug(req.target_language)}.csv",
        CSV_MIME,
    )


def _export_amazon(results, req: AmazonFlatFileExport) -> ExportPayload:
    return ExportPayload(
        export_amazon_flat_file(results, req.original_rows, req.source_headers),
        f"amazon_flat_file_{_lang_slug(req.target_language)}.tsv",
        TSV_MIME,
    )


def _export_shopify(results, req: ShopifyCsvExport) -> ExportPayload:
    return ExportPayload(
        export_shopify_csv(results),
        f"shopify_{_lang_slug(req.target_language)}.csv",
        CSV_MIME,
    )


def _export_etsy(results, req: EtsyCsvExport) -> ExportPayload:
    return ExportPayload(
        export_etsy_csv(results),
        f"etsy_{_lang_slug(req.target_language)}.csv",
        CSV_MIME,
    )


def _export_workbook(results, req: WorkbookExport) -> ExportPayload:
    return ExportPayload(
        export_xlsx(results, req.target_language, req.marketplace),
        f"{req.marketplace.id}_{_lang_slug(req.target_language)}.xlsx",
        XLSX_MIME,
    )


EXPORTERS = {
    GenericCsvExport: _export_generic,
    AmazonFlatFileExport: _export_amazon,
    ShopifyCsvExport: _export_shopify,
    EtsyCsvExport: _export_etsy,
    WorkbookExport: _export_workbook,
}

FORMATS = ("csv", "amazon", "shopify", "etsy", "xlsx")


def export_results(results: Sequence[LocalizationResultItem], request: ExportRequest) -> ExportPayload:
    """Serialize a result set in the format the request names."""
    fn = EXPORTERS.get(type(request))
    if fn is None:
        raise ExportError(f"Unknown export request: {type(request).__name__}")
    return fn(results, request)


def export_request_for(
    fmt: str,
    target_language: str,
    marketplace: Optional[MarketplaceProfile] = None,
    original_rows: Optional[Sequence[dict[str, str]]] = None,
    source_headers: Optional[Sequence[str]] = None,
) -> ExportRequest:
    """Build the export request for a format name (csv, amazon, shopify, etsy, xlsx)."""
    fmt = fmt.lower()
    if fmt == "csv":
        return GenericCsvExport(target_language)
    if fmt == "amazon":
        if not original_rows:
            raise MissingExportContextError("Amazon flat file", "the original uploaded rows")
        return AmazonFlatFileExport(original_rows, target_language, source_headers)
    if fmt == "shopify":
        return ShopifyCsvExport(target_language)
    if fmt == "etsy":
        return EtsyCsvExport(target_language)
    if fmt == "xlsx":
        if marketplace is None:
            raise MissingExportContextError("Workbook", "a marketplace profile")
        return WorkbookExport(target_language, marketplace)
    raise ExportError(f"Unknown export format '{fmt}'. Use one of: {', '.join(FORMATS)}")
