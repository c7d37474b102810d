"""
Light/dark theme preference.

The preference is read once when created and written back on every change
through a small store interface, so the same object works with an in-memory
store, a JSON file, or anything else that can load and save a string.
"""

import json
from pathlib import Path
from typing import Optional, Protocol, Union

from portfolio_api.core.logging import get_logger

logger = get_logger(__name__)

LIGHT = "light"
DARK = "dark"
THEMES = (LIGHT, DARK)
DEFAULT_THEME = LIGHT


class ThemeStore(Protocol):
    def load(self) -> Optional[str]: ...

    def save(self, theme: str) -> None: ...


class MemoryThemeStore:
    def __init__(self, theme: Optional[str] = None):
        self.theme = theme

    def load(self) -> Optional[str]:
        return self.theme

    def save(self, theme: str) -> None:
        self.theme = theme


class JsonFileThemeStore:
    """Keeps the preference under the "theme" key of a JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable theme file {self.path}: {e}")
            return None
        if isinstance(data, dict):
            theme = data.get("theme")
            return theme if isinstance(theme, str) else None
        return None

    def save(self, theme: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"theme": theme}), encoding="utf-8")


class ThemePreference:
    """Current theme, persisted through the given store."""

    def __init__(self, store: ThemeStore):
        self.store = store
        stored = store.load()
        self._theme = stored if stored in THEMES else DEFAULT_THEME

    @property
    def theme(self) -> str:
        return self._theme

    @property
    def is_dark(self) -> bool:
        return self._theme == DARK

    def set(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme '{theme}', expected one of {THEMES}")
        self._theme = theme
        self.store.save(theme)

    def toggle(self) -> str:
        self.set(LIGHT if self.is_dark else DARK)
        return self._theme
