"""Locale-bound translators backed by packaged JSON catalogs.

Catalogs live under ``locales/<locale>/<namespace>.json``. Missing locales
fall back to English; missing keys fall back to the English string and then
to the key itself.
"""

import asyncio
import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

LOCALES_DIR = Path(__file__).parent / "locales"
FALLBACK_LOCALE = "en"


@lru_cache(maxsize=64)
def load_catalog(locale: str, namespace: str) -> dict[str, str]:
    """Load one catalog file, returning an empty mapping if absent."""
    path = LOCALES_DIR / locale / f"{namespace}.json"
    if not path.is_file():
        logger.debug("translation catalog missing", locale=locale, namespace=namespace)
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


class Translator:
    """Callable translating keys for one locale.

    Placeholders use ``{name}`` syntax and are filled from keyword arguments.
    Unknown placeholders are left untouched.
    """

    def __init__(
        self,
        locale: str,
        catalog: dict[str, str],
        fallback: dict[str, str] | None = None,
    ):
        self.locale = locale
        self._catalog = catalog
        self._fallback = fallback or {}

    def __call__(self, key: str, **values: Any) -> str:
        template = self._catalog.get(key) or self._fallback.get(key) or key
        return _interpolate(template, values)

    def __repr__(self) -> str:
        return f"Translator(locale={self.locale!r})"


class _Missing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def _interpolate(template: str, values: dict[str, Any]) -> str:
    return template.format_map(_Missing({k: str(v) for k, v in values.items()}))


def _build_translator(locale: str, namespace: str) -> Translator:
    fallback = load_catalog(FALLBACK_LOCALE, namespace)
    if locale == FALLBACK_LOCALE:
        return Translator(locale, fallback)
    catalog = load_catalog(locale, namespace)
    if not catalog:
        base = locale.split("-")[0]
        catalog = load_catalog(base, namespace) if base != locale else {}
    return Translator(locale, catalog, fallback)


async def get_translation(locale: str | None, namespace: str = "common") -> Translator:
    """Get a translator for ``locale``.

    Catalog files are read off the event loop; results are cached.

    Args:
        locale: Locale code (en, nl, pt-BR, ...). None means English.
        namespace: Catalog namespace

    Returns:
        Translator bound to the locale
    """
    return await asyncio.to_thread(
        _build_translator, locale or FALLBACK_LOCALE, namespace
    )
