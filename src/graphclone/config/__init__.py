"""Configuration module using Pydantic Settings.

Usage:
    from graphclone.config import EngineSettings

    settings = EngineSettings(deep_reflect=True)
    structural_equals(a, b, settings.equals_config())
"""

from graphclone.config.settings import EngineSettings

__all__ = [
    "EngineSettings",
]
