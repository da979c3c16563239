from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from circlegrid.core.grid import Grid


SCHEMA_VERSION = "circlegrid.grids.v0"


def grid_to_dict(g: Grid) -> dict[str, Any]:
    """JSON-friendly grid: shape plus one entry per cell (None for empty cells)."""
    cells: list[dict[str, float] | None] = []
    for e in g.cells:
        if e is None:
            cells.append(None)
        else:
            cells.append({"x": e.center_x, "y": e.center_y, "a": e.a, "b": e.b, "phi": e.phi})
    return {"rows": int(g.rows), "columns": int(g.columns), "cells": cells}


def grids_to_dict(grids: list[Grid], *, image: str | None = None, pattern: str | None = None) -> dict[str, Any]:
    out: dict[str, Any] = {"schema_version": SCHEMA_VERSION, "grids": [grid_to_dict(g) for g in grids]}
    if image is not None:
        out["image"] = image
    if pattern is not None:
        out["pattern"] = pattern
    return out


def save_grids_json(path: Path, grids: list[Grid], *, image: str | None = None, pattern: str | None = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = grids_to_dict(grids, image=image, pattern=pattern)
    path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    return path
