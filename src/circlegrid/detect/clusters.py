from __future__ import annotations

from collections import deque

import numpy as np
from scipy.spatial import cKDTree as KDTree

from circlegrid.config import ClusterConfig
from circlegrid.core.ellipse import Ellipse, centers_array


class EllipsesIntoClusters:
    """
    Groups ellipses into connected clusters.

    Two ellipses are linked when their centres are within `max_distance_ratio`
    times the larger semi-major axis and their semi-major axes have a similar
    size. Clusters are the connected components of that graph.
    """

    def __init__(self, config: ClusterConfig | None = None) -> None:
        self.config = config or ClusterConfig()

    def _neighbors(self, ellipses: list[Ellipse]) -> list[list[int]]:
        cfg = self.config
        n = len(ellipses)
        pts = centers_array(ellipses)
        major = np.asarray([e.a for e in ellipses], dtype=np.float64)

        tree = KDTree(pts)
        search = cfg.max_distance_ratio * float(major.max())
        candidates = tree.query_ball_point(pts, r=search)

        edges: list[list[int]] = [[] for _ in range(n)]
        for i in range(n):
            for j in candidates[i]:
                if j <= i:
                    continue
                a_max = max(major[i], major[j])
                a_min = min(major[i], major[j])
                if a_max <= 0.0 or a_min / a_max < cfg.size_similarity:
                    continue
                if np.linalg.norm(pts[i] - pts[j]) > cfg.max_distance_ratio * a_max:
                    continue
                edges[i].append(j)
                edges[j].append(i)
        return edges

    def process(self, ellipses: list[Ellipse], out_clusters: list[list[int]]) -> None:
        if not ellipses:
            return
        edges = self._neighbors(ellipses)

        visited = np.zeros(len(ellipses), dtype=bool)
        for seed in range(len(ellipses)):
            if visited[seed]:
                continue
            visited[seed] = True
            members = [seed]
            frontier = deque([seed])
            while frontier:
                i = frontier.popleft()
                for j in edges[i]:
                    if not visited[j]:
                        visited[j] = True
                        members.append(j)
                        frontier.append(j)
            out_clusters.append(sorted(members))
