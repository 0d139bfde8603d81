"""Translation lookup for notification and title rendering."""

from roundrobin.i18n.translation import Translator, get_translation, load_catalog

__all__ = ["Translator", "get_translation", "load_catalog"]
