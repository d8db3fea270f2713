"""
Message composer service - loads guest-facing copy from YAML.

Copy lives in app/copy/<locale>.yml. A key maps to a string or a list of
variants; a seed (the session key) picks the same variant for the whole
conversation.
"""

import hashlib
import logging
from pathlib import Path
from typing import Any, cast

import yaml

from app.core.config import settings

logger = logging.getLogger(__name__)

# app/copy
COPY_DIR = Path(__file__).resolve().parent.parent.parent / "copy"


class MessageComposer:
    """Guest-facing copy for one locale."""

    def __init__(self, locale: str):
        self.locale = locale
        self.copy_file = COPY_DIR / f"{locale}.yml"
        self._copy_data: dict[str, Any] = self._read_copy_file()

    def _read_copy_file(self) -> dict[str, Any]:
        if not self.copy_file.exists():
            logger.warning(f"No copy for locale {self.locale!r} at {self.copy_file}; replies will show [MISSING: ...]")
            return {}
        data = yaml.safe_load(self.copy_file.read_text(encoding="utf-8")) or {}
        logger.info(f"Loaded {len(data)} copy keys for locale {self.locale!r}")
        return data

    def _select_variant(self, key: str, seed: str | None = None) -> str:
        """Pick the template for key; seeded picks are stable per conversation."""
        entry = self._copy_data.get(key)
        if entry is None:
            logger.warning(f"Copy key {key!r} missing for locale {self.locale!r}")
            return f"[MISSING: {key}]"
        if not isinstance(entry, list):
            return str(entry)
        if not entry:
            return ""

        index = 0
        if seed is not None:
            digest = hashlib.md5(f"{key}:{seed}".encode()).hexdigest()
            index = int(digest, 16) % len(entry)
        return cast(str, entry[index])

    def render(self, key: str, seed: str | None = None, **kwargs: Any) -> str:
        """
        Fill the template for key with kwargs.

        Example:
            composer.render("welcome", seed="1:whatsapp:+15551234567", hotel_name="Sea View")
        """
        template = self._select_variant(key, seed)
        try:
            return template.format(**kwargs)
        except KeyError as e:
            logger.warning(f"Copy key {key!r} needs placeholder {e}; sending unfilled template")
            return template


# Global instance (reset in tests so a temp COPY_DIR doesn't leak)
_composer: MessageComposer | None = None


def reset_cache() -> None:
    """Clear the global composer so copy is reloaded from COPY_DIR."""
    global _composer
    _composer = None


def get_composer(locale: str | None = None) -> MessageComposer:
    global _composer
    locale = locale or settings.copy_locale
    if _composer is None or _composer.locale != locale:
        _composer = MessageComposer(locale=locale)
    return _composer


def render_message(key: str, seed: str | None = None, **kwargs: Any) -> str:
    """Render a message with the configured locale."""
    return get_composer().render(key, seed=seed, **kwargs)
