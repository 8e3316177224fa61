"""HabitFlow streak engine and habit tracking services."""

from __future__ import annotations

from .config import BaseConfig, DevConfig, TestConfig
from .context import create_app_context

__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app_context"]
