from app.i18n.core import DEFAULT_LANG, load_lang, t, translate

__all__ = ["DEFAULT_LANG", "load_lang", "t", "translate"]
