"""AI generation engine: chat completions and tolerant response parsing."""
import json
import logging
import re
from typing import Optional

import requests

from listing_localizer.config import config
from listing_localizer.errors import GenerationError
from listing_localizer.models import LocalizedListing

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def call_ai(
    prompt: str,
    system_msg: str = "You are an expert e-commerce product listing localizer.",
    model: Optional[str] = None,
    json_mode: bool = True,
) -> str:
    """Call an OpenAI-compatible chat completion endpoint once.

    Raises:
        GenerationError: timeout, HTTP error, or a response without content.
            Failed calls are not retried.
    """
    headers = {
        "Authorization": f"Bearer {config.OPENAI_KEY}",
        "Content-Type": "application/json",
    }
    data = {
        "model": model or config.OPENAI_MODEL,
        "messages": [
            {"role": "system", "content": system_msg},
            {"role": "user", "content": prompt},
        ],
        "temperature": config.AI_TEMPERATURE,
        "max_tokens": config.AI_MAX_TOKENS,
    }
    if json_mode:
        data["response_format"] = {"type": "json_object"}

    try:
        r = requests.post(
            f"{config.OPENAI_BASE}/chat/completions",
            headers=headers,
            json=data,
            timeout=config.AI_TIMEOUT,
        )
        r.raise_for_status()
        content = r.json()["choices"][0]["message"]["content"]
    except requests.exceptions.Timeout as e:
        raise GenerationError("Request timed out") from e
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else 0
        if status == 429:
            raise GenerationError("API rate limit reached (429)") from e
        if status >= 500:
            raise GenerationError(f"API server error ({status})") from e
        raise GenerationError(f"AI generation failed: HTTP {status}") from e
    except requests.exceptions.RequestException as e:
        raise GenerationError(f"AI request failed: {e}") from e
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise GenerationError(f"Unexpected API response shape: {e}") from e

    if not content:
        raise GenerationError("API returned an empty completion")
    return content


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, list):
        return ", ".join(str(v).strip() for v in value if v is not None and str(v).strip())
    return str(value)


def parse_localized_listing(raw: str) -> LocalizedListing:
    """Parse a generation response into a LocalizedListing.

    Anything that is not a JSON object yields an empty-field listing instead
    of an error; the quality checker then flags the empty fields.
    """
    text = raw or ""
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except ValueError:
        logger.warning("Generation response is not valid JSON (%d chars)", len(text))
        return LocalizedListing()
    if not isinstance(data, dict):
        logger.warning("Generation response is JSON but not an object")
        return LocalizedListing()

    bullets = data.get("bullet_points")
    if isinstance(bullets, list):
        bullet_points = tuple("" if b is None else str(b) for b in bullets)
    elif isinstance(bullets, str) and bullets.strip():
        bullet_points = (bullets,)
    else:
        bullet_points = None

    return LocalizedListing(
        title=_as_text(data.get("title")) or "",
        description=_as_text(data.get("description")) or "",
        bullet_points=bullet_points,
        keywords=_as_text(data.get("keywords")),
        seo_meta_title=_as_text(data.get("seo_meta_title")),
        seo_meta_description=_as_text(data.get("seo_meta_description")),
    )
