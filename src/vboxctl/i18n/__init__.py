"""
Message translation for vboxctl.

Messages are looked up in ``locales/<language>/LC_MESSAGES/messages.mo`` next
to this file; a missing catalog falls back to the untranslated text.
"""

import gettext
import os
from typing import Optional

# Default language
DEFAULT_LANGUAGE = "en"

# Current language (can be changed at runtime)
CURRENT_LANGUAGE = DEFAULT_LANGUAGE

# Cache for loaded translation objects
TRANSLATIONS = {}


def set_language(language: str) -> None:
    """Set the current language for translations."""
    global CURRENT_LANGUAGE  # pylint: disable=global-statement
    CURRENT_LANGUAGE = language


def get_language() -> str:
    """Get the current language."""
    return CURRENT_LANGUAGE


def get_translation(language: Optional[str] = None) -> gettext.NullTranslations:
    """Get translation object for the specified language."""
    if language is None:
        language = CURRENT_LANGUAGE

    if language not in TRANSLATIONS:
        try:
            localedir = os.path.join(os.path.dirname(__file__), "locales")
            TRANSLATIONS[language] = gettext.translation(
                "messages", localedir, [language]
            )
        except FileNotFoundError:
            # No catalog shipped for this language
            TRANSLATIONS[language] = gettext.NullTranslations()

    return TRANSLATIONS[language]


def _(message: str, language: Optional[str] = None) -> str:
    """Translate a message."""
    return get_translation(language).gettext(message)
