"""Exceptions raised by the dungeon core."""


class DungeonCoreError(Exception):
    """Base class for all dungeon core errors."""


class ConfigurationError(DungeonCoreError):
    """Raised when a build step is given settings it cannot work with."""


class LevelBuildError(DungeonCoreError):
    """Raised when a level cannot be brought up (generation, linking or grid build failed)."""
