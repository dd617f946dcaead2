from __future__ import annotations

import json
import logging
from typing import Protocol

logger = logging.getLogger(__name__)

BAG_TYPES_KEY = "CornholeBagTypes"
DEFAULT_BAG_TYPE_KEY = "DefaultBagType"
THROWING_STYLES_KEY = "ThrowingStyles"
DEFAULT_THROWING_STYLE_KEY = "DefaultThrowingStyle"

DEFAULT_BAG_TYPE = "Default"


class SettingsBackend(Protocol):
    def get_setting(self, key: str) -> str | None: ...

    def set_setting(self, key: str, value: str | None) -> None: ...


class PracticeSettings:
    """Bag-type and throwing-style labels kept in a flat string key/value backend.

    The ``"Default"`` bag type always exists and cannot be removed. Throwing
    styles have no mandatory entry and the default style may be unset.
    """

    def __init__(self, backend: SettingsBackend) -> None:
        self.backend = backend

    def _load_list(self, key: str) -> list[str]:
        raw = self.backend.get_setting(key)
        if not raw:
            return []
        try:
            values = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("ignoring malformed setting %s", key)
            return []
        return [str(v) for v in values] if isinstance(values, list) else []

    def _save_list(self, key: str, values: list[str]) -> None:
        self.backend.set_setting(key, json.dumps(values))

    @staticmethod
    def _clean(name: str) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("label must not be empty")
        return cleaned

    # Bag types

    def bag_types(self) -> list[str]:
        loaded = self._load_list(BAG_TYPES_KEY)
        if DEFAULT_BAG_TYPE not in loaded:
            loaded.insert(0, DEFAULT_BAG_TYPE)
        return loaded

    def default_bag_type(self) -> str:
        return self.backend.get_setting(DEFAULT_BAG_TYPE_KEY) or DEFAULT_BAG_TYPE

    def add_bag_type(self, name: str) -> list[str]:
        cleaned = self._clean(name)
        bag_types = self.bag_types()
        if cleaned in bag_types:
            raise ValueError(f"bag type already exists: {cleaned}")
        bag_types.append(cleaned)
        self._save_list(BAG_TYPES_KEY, bag_types)
        logger.info("added bag type %s", cleaned)
        return bag_types

    def remove_bag_type(self, name: str) -> list[str]:
        name = self._clean(name)
        if name == DEFAULT_BAG_TYPE:
            raise ValueError("the Default bag type cannot be removed")
        bag_types = self.bag_types()
        if name not in bag_types:
            raise KeyError(name)
        bag_types.remove(name)
        self._save_list(BAG_TYPES_KEY, bag_types)
        if self.default_bag_type() == name:
            self.backend.set_setting(DEFAULT_BAG_TYPE_KEY, DEFAULT_BAG_TYPE)
        logger.info("removed bag type %s", name)
        return bag_types

    def set_default_bag_type(self, name: str) -> str:
        if name not in self.bag_types():
            raise ValueError(f"unknown bag type: {name}")
        self.backend.set_setting(DEFAULT_BAG_TYPE_KEY, name)
        return name

    # Throwing styles

    def throwing_styles(self) -> list[str]:
        return self._load_list(THROWING_STYLES_KEY)

    def default_throwing_style(self) -> str | None:
        return self.backend.get_setting(DEFAULT_THROWING_STYLE_KEY)

    def add_throwing_style(self, name: str) -> list[str]:
        cleaned = self._clean(name)
        styles = self.throwing_styles()
        if cleaned in styles:
            raise ValueError(f"throwing style already exists: {cleaned}")
        styles.append(cleaned)
        self._save_list(THROWING_STYLES_KEY, styles)
        logger.info("added throwing style %s", cleaned)
        return styles

    def remove_throwing_style(self, name: str) -> list[str]:
        name = self._clean(name)
        styles = self.throwing_styles()
        if name not in styles:
            raise KeyError(name)
        styles.remove(name)
        self._save_list(THROWING_STYLES_KEY, styles)
        if self.default_throwing_style() == name:
            self.backend.set_setting(DEFAULT_THROWING_STYLE_KEY, None)
        logger.info("removed throwing style %s", name)
        return styles

    def set_default_throwing_style(self, name: str | None) -> str | None:
        if name is not None and name not in self.throwing_styles():
            raise ValueError(f"unknown throwing style: {name}")
        self.backend.set_setting(DEFAULT_THROWING_STYLE_KEY, name)
        return name
