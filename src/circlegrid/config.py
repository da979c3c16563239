from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from circlegrid.core.canonical import Pattern


SCHEMA_VERSION = "circlegrid.config.v0"
PATTERNS: tuple[str, ...] = ("asymmetric", "regular")


class ConfigValidationError(ValueError):
    pass


@dataclass(frozen=True)
class ThresholdConfig:
    # None selects Otsu's threshold
    threshold: float | None = None
    # True when the dots are darker than the background
    down: bool = True


@dataclass(frozen=True)
class EllipseDetectorConfig:
    min_area_px: float = 20.0
    max_area_px: float | None = None
    min_contour_points: int = 5
    # relative difference between the contour area and the fitted ellipse area
    max_fit_error: float = 0.2


@dataclass(frozen=True)
class ClusterConfig:
    # link radius in units of the larger semi-major axis
    max_distance_ratio: float = 4.0
    # minimum ratio between the smaller and larger semi-major axes
    size_similarity: float = 0.5


@dataclass(frozen=True)
class GridFitConfig:
    # max distance from an integer lattice step, in lattice units
    lattice_tolerance: float = 0.3


@dataclass(frozen=True)
class CircleGridConfig:
    num_rows: int
    num_cols: int
    pattern: Pattern = "asymmetric"
    threshold: ThresholdConfig = field(default_factory=ThresholdConfig)
    ellipse: EllipseDetectorConfig = field(default_factory=EllipseDetectorConfig)
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    grid: GridFitConfig = field(default_factory=GridFitConfig)


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigValidationError(msg)


def load_config(path: Path) -> CircleGridConfig:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return parse_config(data)


def parse_config(data: dict[str, Any]) -> CircleGridConfig:
    schema_version = data.get("schema_version", SCHEMA_VERSION)
    _require(schema_version == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")

    target = data.get("target", {})
    rows_raw = target.get("num_rows")
    cols_raw = target.get("num_cols")
    _require(rows_raw is not None and cols_raw is not None, "target.num_rows and target.num_cols are required")
    num_rows = int(rows_raw)
    num_cols = int(cols_raw)
    _require(num_rows >= 1 and num_cols >= 1, "target.num_rows and target.num_cols must be >= 1")

    pattern = str(target.get("pattern", "asymmetric"))
    _require(pattern in PATTERNS, f"target.pattern must be one of {PATTERNS}")

    th = data.get("threshold", {})
    th_raw = th.get("threshold")
    threshold = None if th_raw is None else float(th_raw)
    _require(threshold is None or 0.0 <= threshold <= 255.0, "threshold.threshold must be in [0,255] or null")
    threshold_cfg = ThresholdConfig(threshold=threshold, down=bool(th.get("down", True)))

    el = data.get("ellipse", {})
    min_area = float(el.get("min_area_px", EllipseDetectorConfig.min_area_px))
    _require(min_area > 0.0, "ellipse.min_area_px must be > 0")
    max_area_raw = el.get("max_area_px")
    max_area = None if max_area_raw is None else float(max_area_raw)
    _require(max_area is None or max_area > min_area, "ellipse.max_area_px must be > ellipse.min_area_px")
    min_points = int(el.get("min_contour_points", EllipseDetectorConfig.min_contour_points))
    _require(min_points >= 5, "ellipse.min_contour_points must be >= 5 (cv2.fitEllipse requirement)")
    max_fit_error = float(el.get("max_fit_error", EllipseDetectorConfig.max_fit_error))
    _require(max_fit_error > 0.0, "ellipse.max_fit_error must be > 0")

    cl = data.get("cluster", {})
    ratio = float(cl.get("max_distance_ratio", ClusterConfig.max_distance_ratio))
    _require(ratio > 0.0, "cluster.max_distance_ratio must be > 0")
    similarity = float(cl.get("size_similarity", ClusterConfig.size_similarity))
    _require(0.0 < similarity <= 1.0, "cluster.size_similarity must be in (0,1]")

    gr = data.get("grid", {})
    tol = float(gr.get("lattice_tolerance", GridFitConfig.lattice_tolerance))
    _require(0.0 < tol < 0.5, "grid.lattice_tolerance must be in (0,0.5)")

    return CircleGridConfig(
        num_rows=num_rows,
        num_cols=num_cols,
        pattern=pattern,  # type: ignore[arg-type]
        threshold=threshold_cfg,
        ellipse=EllipseDetectorConfig(
            min_area_px=min_area,
            max_area_px=max_area,
            min_contour_points=min_points,
            max_fit_error=max_fit_error,
        ),
        cluster=ClusterConfig(max_distance_ratio=ratio, size_similarity=similarity),
        grid=GridFitConfig(lattice_tolerance=tol),
    )
