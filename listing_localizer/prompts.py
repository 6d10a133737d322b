"""Marketplace-aware localization prompts.

This is NOT a generic translator prompt: it asks for copy that sells on
the target marketplace, inside that marketplace's character limits, and
returns a single JSON object the pipeline can parse.

Prompts are pure string construction. The same profile, listing and
language always produce the same text.
"""
from dataclasses import dataclass

from listing_localizer.marketplaces import MarketplaceProfile
from listing_localizer.models import ParsedListing

# Kept as-is in every language
UNIVERSAL_TERMS = (
    "USB", "USB-C", "HDMI", "LED", "LCD", "OLED", "Wi-Fi", "Bluetooth",
    "GPS", "NFC", "SSD", "RAM", "CPU", "4K", "HD", "mAh", "iPhone", "iPad",
    "Android", "iOS",
)

# Left in English by naive translators, but must be localized
ALWAYS_TRANSLATE_TERMS = (
    "Premium", "Professional", "Smart", "Design", "Comfort", "Outdoor",
    "Set", "Kit", "Bundle", "Travel", "Home", "Office", "Sport", "Style",
    "Easy", "Quick", "Power", "Portable",
)

EMPTY_BULLET_NOTE = "(empty: generate a relevant bullet point from the title and description)"


@dataclass(frozen=True)
class LocalizationPrompt:
    system_message: str
    user_message: str


def build_system_message(marketplace: MarketplaceProfile, target_language: str = "") -> str:
    """System message for the localization chat completion."""
    language = f" into {target_language}" if target_language else ""
    return (
        f"You are an expert e-commerce product listing localizer specializing in "
        f"{marketplace.name}. You understand the marketplace's search algorithm, cultural "
        f"buying patterns, and listing best practices. You produce localized listings"
        f"{language} that maximize conversions, not literal translations. Always respect "
        f"character limits strictly. Respond only with valid JSON."
    )


def _limit_lines(marketplace: MarketplaceProfile) -> list[str]:
    lines = [
        f"   - Title: max {marketplace.title_max_chars} characters",
        f"   - Description: max {marketplace.description_max_chars} characters",
    ]
    if marketplace.has_bullets:
        lines.append(
            f"   - Bullet points: exactly {marketplace.bullet_point_count} bullets, "
            f"max {marketplace.bullet_point_max_chars} chars each"
        )
    if marketplace.has_keywords:
        lines.append(f"   - Keywords/Tags: max {marketplace.keyword_max_chars} characters")
    return lines


def _bullet_rule(marketplace: MarketplaceProfile) -> str:
    n = marketplace.bullet_point_count
    return (
        f"BULLET POINTS (mandatory): \"bullet_points\" MUST contain exactly {n} strings. "
        f"If the original has fewer than {n} bullet points, or some are empty, write the "
        f"missing ones from the title and description. Never return fewer than {n}, "
        f"never return an empty array."
    )


def _translation_rules(target_language: str) -> list[str]:
    return [
        f"   - Every word must be in {target_language}. Do not leave English words or "
        f"phrases untranslated.",
        f"   - Only these universal technical/brand terms may stay unchanged: "
        f"{', '.join(UNIVERSAL_TERMS)}, plus the product's own brand and model names.",
        f"   - These terms must ALWAYS be translated, never copied: "
        f"{', '.join(ALWAYS_TRANSLATE_TERMS)}.",
        "   - For languages that form compound words (German, Dutch, Swedish, Finnish, "
        "etc.), include both the compounded and the separated form of multi-word "
        "technical terms among the keywords.",
    ]


def padded_bullets(listing: ParsedListing, count: int) -> list[str]:
    """Source bullets padded (or cut) to ``count`` slots; "" marks a slot to generate."""
    bullets = list(listing.bullet_points or ())[:count]
    return bullets + [""] * (count - len(bullets))


def _original_section(marketplace: MarketplaceProfile, listing: ParsedListing) -> list[str]:
    lines = [
        "ORIGINAL LISTING:",
        f"Title: {listing.title}",
        f"Description: {listing.description}",
    ]
    if marketplace.has_bullets:
        lines.append("Bullet Points:")
        for i, bullet in enumerate(padded_bullets(listing, marketplace.bullet_point_count), 1):
            lines.append(f"{i}. {bullet}" if bullet.strip() else f"{i}. {EMPTY_BULLET_NOTE}")
    else:
        details = [b for b in (listing.bullet_points or ()) if b.strip()]
        if details:
            lines.append("Additional product details:")
            lines.extend(f"- {d}" for d in details)
    if listing.keywords:
        lines.append(f"Keywords: {listing.keywords}")
    return lines


def _output_schema(marketplace: MarketplaceProfile) -> list[str]:
    lines = [
        "{",
        '  "title": "localized title",',
        '  "description": "localized description",',
    ]
    if marketplace.has_bullets:
        examples = ", ".join(f'"point{i}"' for i in range(1, marketplace.bullet_point_count + 1))
        lines.append(f'  "bullet_points": [{examples}],')
    lines.extend([
        '  "keywords": "localized keywords",',
        '  "seo_meta_title": "localized SEO title",',
        '  "seo_meta_description": "localized SEO description"',
        "}",
    ])
    return lines


def build_localization_prompt(
    marketplace: MarketplaceProfile,
    listing: ParsedListing,
    target_language: str,
) -> str:
    """Build the user prompt for localizing one listing.

    Args:
        marketplace: Target marketplace profile (limits, guidance, rules).
        listing: Source listing. Price and category are never included.
        target_language: Output language, e.g. "German".

    Returns:
        Prompt text asking for a single JSON object.
    """
    parts = [
        f"You are an expert e-commerce listing localizer. Your task is to localize a "
        f"product listing for {marketplace.name} in {target_language}.",
        "",
        f"IMPORTANT: You are NOT just translating. You are creating a listing that will "
        f"SELL on {marketplace.name}. This means:",
        "",
        f"1. KEYWORD OPTIMIZATION: {marketplace.search_behavior_notes}",
        "",
        "2. CHARACTER LIMITS (strictly enforced):",
        *_limit_lines(marketplace),
        "",
        "3. FORMATTING RULES:",
        *(f"   - {rule}" for rule in marketplace.formatting_rules),
        "",
        "4. TRANSLATION COMPLETENESS:",
        *_translation_rules(target_language),
        "",
        "5. CULTURAL LOCALIZATION:",
        "   - Adapt benefits to resonate with local shoppers",
        "   - Use locally relevant social proof language",
        "   - Convert any measurements to local standards",
        "   - Adapt tone to local shopping culture",
        "",
    ]
    if marketplace.has_bullets:
        parts.extend([f"6. {_bullet_rule(marketplace)}", ""])

    parts.extend(_original_section(marketplace, listing))
    parts.extend(["", "Respond ONLY with a JSON object:"])
    parts.extend(_output_schema(marketplace))
    return "\n".join(parts)


def build_prompt(
    marketplace: MarketplaceProfile,
    listing: ParsedListing,
    target_language: str,
) -> LocalizationPrompt:
    """System + user messages for one generation call."""
    return LocalizationPrompt(
        system_message=build_system_message(marketplace, target_language),
        user_message=build_localization_prompt(marketplace, listing, target_language),
    )
