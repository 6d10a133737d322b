"""Marketplace profiles: limits, locale, and copy guidance per sales channel."""
from dataclasses import dataclass
from typing import Optional

from listing_localizer.errors import UnknownMarketplaceError


@dataclass(frozen=True)
class MarketplaceProfile:
    id: str
    name: str
    title_max_chars: int
    description_max_chars: int
    bullet_point_max_chars: int
    bullet_point_count: int  # 0 = marketplace has no bullet points
    keyword_max_chars: int  # 0 = no keyword field
    locale: str
    search_behavior_notes: str
    formatting_rules: tuple[str, ...] = ()

    def __post_init__(self):
        for name in (
            "title_max_chars",
            "description_max_chars",
            "bullet_point_max_chars",
            "bullet_point_count",
            "keyword_max_chars",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{self.id}: {name} must be non-negative")

    @property
    def has_bullets(self) -> bool:
        return self.bullet_point_count > 0

    @property
    def has_keywords(self) -> bool:
        return self.keyword_max_chars > 0


_AMAZON_EU_LIMITS = dict(
    title_max_chars=200,
    description_max_chars=2000,
    bullet_point_max_chars=500,
    bullet_point_count=5,
    keyword_max_chars=250,
)

MARKETPLACES: dict[str, MarketplaceProfile] = {
    "amazon_de": MarketplaceProfile(
        id="amazon_de",
        name="Amazon Germany",
        locale="de-DE",
        search_behavior_notes=(
            "German shoppers search with compound words (e.g., 'Kaffeemaschine' not "
            "'Kaffee Maschine'). Include umlauts in keywords. Germans value detailed "
            "technical specifications and certifications (TÜV, CE). Price sensitivity "
            "is high, so emphasize value."
        ),
        formatting_rules=(
            "Use formal 'Sie' address, never informal 'du'",
            "Include metric measurements (cm, kg), never imperial",
            "Reference EU/German certifications where applicable",
            "Compound nouns should be single words per German grammar",
        ),
        **_AMAZON_EU_LIMITS,
    ),
    "amazon_fr": MarketplaceProfile(
        id="amazon_fr",
        name="Amazon France",
        locale="fr-FR",
        search_behavior_notes=(
            "French shoppers often search with accented characters. Include both "
            "accented and non-accented keyword variants. Brand prestige and aesthetics "
            "matter: descriptions should feel elegant, not purely functional."
        ),
        formatting_rules=(
            "Use 'vous' (formal) address",
            "Include accented characters properly (é, è, ê, ë, à, ç)",
            "Metric measurements only",
            "French-style number formatting (1.000,00 not 1,000.00)",
        ),
        **_AMAZON_EU_LIMITS,
    ),
    "amazon_es": MarketplaceProfile(
        id="amazon_es",
        name="Amazon Spain",
        locale="es-ES",
        search_behavior_notes=(
            "Use European Spanish, not Latin American. Include ñ in keywords. Spanish "
            "shoppers respond well to emotional, benefit-driven copy rather than pure specs."
        ),
        formatting_rules=(
            "European Spanish (not Latin American variants)",
            "Use 'usted' form for formal product copy",
            "Metric measurements",
            "Spanish number formatting (1.000,00)",
        ),
        **_AMAZON_EU_LIMITS,
    ),
    "amazon_it": MarketplaceProfile(
        id="amazon_it",
        name="Amazon Italy",
        locale="it-IT",
        search_behavior_notes=(
            "Italian shoppers appreciate lifestyle-oriented descriptions. 'Made in Italy' "
            "carries weight if applicable. Design and aesthetics are major purchase drivers."
        ),
        formatting_rules=(
            "Use 'Lei' (formal) address in product copy",
            "Metric measurements",
            "Italian number formatting (1.000,00)",
            "Emphasize design, craftsmanship, and quality of materials",
        ),
        **_AMAZON_EU_LIMITS,
    ),
    "amazon_jp": MarketplaceProfile(
        id="amazon_jp",
        name="Amazon Japan",
        title_max_chars=500,
        description_max_chars=5000,
        bullet_point_max_chars=500,
        bullet_point_count=5,
        keyword_max_chars=500,
        locale="ja-JP",
        search_behavior_notes=(
            "Japanese listings tend to be MUCH more detailed than Western ones. Include "
            "katakana for foreign brand names. Shoppers expect exhaustive specifications "
            "and usage scenarios. Polite, humble tone is essential."
        ),
        formatting_rules=(
            "Use keigo (polite/formal Japanese)",
            "Brand names in katakana",
            "Detailed specifications are expected (more is more)",
            "Include size in cm, weight in g/kg",
            "Add usage scenarios so shoppers can visualize using the product",
        ),
    ),
    "shopify_international": MarketplaceProfile(
        id="shopify_international",
        name="Shopify (Multi-market)",
        title_max_chars=255,
        description_max_chars=5000,
        bullet_point_max_chars=0,
        bullet_point_count=0,
        keyword_max_chars=0,
        locale="varies",
        search_behavior_notes=(
            "Shopify SEO is Google-driven, not marketplace-driven. Optimize for Google "
            "search in each target language. Meta descriptions should be 150-160 chars. "
            "Include natural-language long-tail keywords."
        ),
        formatting_rules=(
            "HTML formatting allowed in descriptions",
            "SEO meta title: 50-60 chars",
            "SEO meta description: 150-160 chars",
            "Include structured data-friendly content",
        ),
    ),
    "etsy_international": MarketplaceProfile(
        id="etsy_international",
        name="Etsy (International)",
        title_max_chars=140,
        description_max_chars=10000,
        bullet_point_max_chars=0,
        bullet_point_count=0,
        keyword_max_chars=20,
        locale="varies",
        search_behavior_notes=(
            "Etsy search is tag-driven. Generate 13 tags per listing in the target "
            "language. Tags should be multi-word phrases, not single words. Etsy "
            "descriptions should tell a story with a handmade/artisan feel."
        ),
        formatting_rules=(
            "13 tags maximum, each under 20 characters",
            "Tags should be multi-word phrases",
            "Description tone: warm, personal, artisan",
            "Include materials, dimensions, care instructions in target language",
        ),
    ),
}

MARKETPLACE_IDS = tuple(MARKETPLACES)

SHOPIFY_MARKETPLACE_ID = "shopify_international"

# Amazon flat file columns that must never be translated
DO_NOT_TRANSLATE_FIELDS = (
    "brand",
    "manufacturer",
    "sku",
    "asin",
    "upc",
    "ean",
    "recommended_browse_nodes",
    "item_type",
    "parent_sku",
    "parent_child",
    "variation_theme",
)

# Marketplace column name -> canonical listing field
AMAZON_COLUMN_MAP = {
    "item_name": "title",
    "product_description": "description",
    "bullet_point1": "bulletPoints.0",
    "bullet_point2": "bulletPoints.1",
    "bullet_point3": "bulletPoints.2",
    "bullet_point4": "bulletPoints.3",
    "bullet_point5": "bulletPoints.4",
    "generic_keyword": "keywords",
}

SHOPIFY_COLUMN_MAP = {
    "Title": "title",
    "Body (HTML)": "description",
    "Tags": "keywords",
    "SEO Title": "seoMetaTitle",
    "SEO Description": "seoMetaDescription",
}

ETSY_COLUMN_MAP = {
    "Title": "title",
    "Description": "description",
    "Tags": "keywords",
}


def get_marketplace(key: str) -> Optional[MarketplaceProfile]:
    """Get marketplace by id (case-insensitive)."""
    return MARKETPLACES.get(key.strip().lower())


def require_marketplace(key: str) -> MarketplaceProfile:
    """Like get_marketplace, but unknown ids raise UnknownMarketplaceError."""
    profile = get_marketplace(key)
    if profile is None:
        raise UnknownMarketplaceError(key)
    return profile


def list_marketplaces() -> str:
    """Format marketplace list for display."""
    lines = []
    for key, p in MARKETPLACES.items():
        bullets = f"{p.bullet_point_count} bullets" if p.has_bullets else "no bullets"
        lines.append(
            f"  {key:<22} {p.name} ({p.locale}) title {p.title_max_chars}, {bullets}"
        )
    return "\n".join(lines)
