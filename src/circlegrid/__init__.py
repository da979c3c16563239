from circlegrid.config import CircleGridConfig, ConfigValidationError, load_config, parse_config
from circlegrid.core.canonical import (
    AsymmetricGridCanonicalizer,
    GridCanonicalizer,
    RegularGridCanonicalizer,
    closest_corner4,
    create_canonicalizer,
    is_clockwise,
)
from circlegrid.core.ellipse import Ellipse
from circlegrid.core.grid import Grid, GridTransforms
from circlegrid.core.shape_filters import prune_incorrect_shape, prune_incorrect_size, total_ellipses
from circlegrid.detector import DetectCircleGrid, create_circle_grid_detector

__all__ = [
    "AsymmetricGridCanonicalizer",
    "CircleGridConfig",
    "ConfigValidationError",
    "DetectCircleGrid",
    "Ellipse",
    "Grid",
    "GridCanonicalizer",
    "GridTransforms",
    "RegularGridCanonicalizer",
    "closest_corner4",
    "create_canonicalizer",
    "create_circle_grid_detector",
    "is_clockwise",
    "load_config",
    "parse_config",
    "prune_incorrect_shape",
    "prune_incorrect_size",
    "total_ellipses",
]
