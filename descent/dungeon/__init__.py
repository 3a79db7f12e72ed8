"""Public level generation interface."""

from .config import DesignerConfig
from .designer import DEFAULT_SEEDS, CellMetrics, LevelDesigner, SeedSource, design_level, select_best
from .errors import (
    ConstraintError,
    GenerationError,
    GenerationInvariantError,
    LevelGenerationError,
    TemplateError,
)
from .level import GameSession, Level, LevelType
from .levels import LEVEL_TYPES, get_level_type, level_type_names
from .markers import Marker, MarkerGrid, Symmetry  # noqa: F401

__all__ = [
    "DesignerConfig",
    "DEFAULT_SEEDS",
    "CellMetrics",
    "LevelDesigner",
    "SeedSource",
    "design_level",
    "select_best",
    "GenerationError",
    "ConstraintError",
    "GenerationInvariantError",
    "LevelGenerationError",
    "TemplateError",
    "GameSession",
    "Level",
    "LevelType",
    "LEVEL_TYPES",
    "get_level_type",
    "level_type_names",
    "Marker",
    "MarkerGrid",
    "Symmetry",
]
