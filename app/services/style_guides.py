"""
Style guide loading.

Guides are plain-text files named ``<name>.txt`` under STYLE_GUIDES_DIR. A
missing or unreadable file is an empty guide. Reads are cached briefly so
editors can change a guide without restarting the service.
"""

import logging
from pathlib import Path

from cachetools import TTLCache

from app.config import get_settings
from app.constants import CacheConfig, StyleGuides

logger = logging.getLogger(__name__)

_guide_cache: TTLCache = TTLCache(
    maxsize=CacheConfig.STYLE_GUIDE_MAX_ENTRIES,
    ttl=CacheConfig.STYLE_GUIDE_TTL_SECONDS,
)


def invalidate_style_guide_cache():
    """Clear cached guides (tests, or after editing files on disk)."""
    _guide_cache.clear()


def load_style_guide(name: str, directory: str | None = None) -> str:
    directory = directory or get_settings().STYLE_GUIDES_DIR
    cache_key = f"{directory}:{name}"
    cached = _guide_cache.get(cache_key)
    if cached is not None:
        return cached

    path = Path(directory) / f"{name}.txt"
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        content = ""
    except OSError as e:
        logger.warning(f"Could not read style guide {path}: {e}")
        content = ""

    _guide_cache[cache_key] = content
    return content


def load_all_style_guides(directory: str | None = None) -> dict[str, str]:
    """All guides keyed by the field name the browser uses."""
    return {field: load_style_guide(name, directory) for field, name in StyleGuides.FILES.items()}
