"""
Settings for the running environment.

``MODE`` (falling back to ``APP_ENV``, then ``local``) picks the class;
unknown modes use the local settings.
"""
from __future__ import annotations

import os

from .base import SharedSettings
from .dev import DevSettings
from .local import LocalSettings
from .prod import ProdSettings
from .stage import StageSettings
from .test import TestSettings

SETTINGS_BY_MODE: dict[str, type[SharedSettings]] = {
    "local": LocalSettings,
    "dev": DevSettings,
    "test": TestSettings,
    "stage": StageSettings,
    "staging": StageSettings,
    "prod": ProdSettings,
    "production": ProdSettings,
}


def settings_class_for(mode: str) -> type[SharedSettings]:
    return SETTINGS_BY_MODE.get(mode.lower(), LocalSettings)


MODE = (os.environ.get("MODE") or os.environ.get("APP_ENV") or "local").lower()
SettingsClass = settings_class_for(MODE)
settings = SettingsClass()

__all__ = ["settings", "SettingsClass", "MODE", "settings_class_for"]
