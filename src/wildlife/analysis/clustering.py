"""
Habitat zone detection with k-means.

Positions are clustered as flat (longitude, latitude) pairs with no geodesic
correction. scikit-learn's Lloyd k-means does the iterations:
  1. Initialise centroids (k-means++ or random fixes)
  2. Assign every point to its nearest centroid (squared Euclidean)
  3. Move each centroid to the mean of its points
  4. Repeat until assignments stop changing (tol=0) or max_iter

Several restarts are run and the one with the lowest within-cluster sum of
squares wins. A fixed seed makes the result reproducible.

Asking for more clusters than there are distinct positions is an error
(InsufficientDataError) rather than a silently smaller clustering.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Sequence, Tuple

import numpy as np
from sklearn.cluster import KMeans

from wildlife.analysis.fixes import Fix
from wildlife.errors import InsufficientDataError

CLUSTER_COUNT_DEFAULT = 3
RESTARTS_DEFAULT = 10
SEED_DEFAULT = 42
MAX_ITER_DEFAULT = 300


@dataclass(frozen=True)
class ClusterAssignment:
    fix_index: int
    cluster_id: int


@dataclass
class ClusterResult:
    """Assignment per fix plus centroids as (longitude, latitude)."""
    assignments: List[ClusterAssignment]
    centroids: Dict[int, Tuple[float, float]]
    inertia: float                       # total within-cluster sum of squares
    iterations: int
    animal_id: str = ""
    sizes: Dict[int, int] = field(default_factory=dict)
    points: List[Tuple[float, float]] = field(default_factory=list)  # (lon, lat) per fix
    timestamps: List[datetime] = field(default_factory=list)

    @property
    def k(self) -> int:
        return len(self.centroids)

    def labels(self) -> List[int]:
        return [a.cluster_id for a in self.assignments]


def cluster_positions(
    points: Sequence[Tuple[float, float]],
    k: int = CLUSTER_COUNT_DEFAULT,
    restarts: int = RESTARTS_DEFAULT,
    seed: int = SEED_DEFAULT,
    max_iter: int = MAX_ITER_DEFAULT,
    init: str = "k-means++",
) -> ClusterResult:
    """
    Cluster (longitude, latitude) pairs into k zones.

    Args:
        points: (longitude, latitude) per fix; the list index is the fix_index.
        k: Number of clusters.
        restarts: Independent initialisations; lowest inertia wins.
        seed: Random seed for reproducibility.
        max_iter: Iteration cap per restart.
        init: "k-means++" or "random" (random distinct fixes).

    Returns:
        ClusterResult with centroids recomputed as the exact mean of their points.

    Raises:
        ValueError: k < 1 or unknown init.
        InsufficientDataError: fewer distinct points than k.
    """
    if k < 1:
        raise ValueError(f"cluster count must be >= 1, got {k}")
    if init not in ("k-means++", "random"):
        raise ValueError(f"unknown init {init!r}")

    X = np.asarray(points, dtype=float).reshape(-1, 2)
    distinct = len(np.unique(X, axis=0)) if len(X) else 0
    if distinct < k:
        raise InsufficientDataError(
            f"{distinct} distinct positions cannot form {k} clusters"
        )

    km = KMeans(
        n_clusters=k,
        init=init,
        n_init=restarts,
        max_iter=max_iter,
        tol=0.0,
        random_state=seed,
        algorithm="lloyd",
    )
    labels = km.fit_predict(X)

    centroids: Dict[int, Tuple[float, float]] = {}
    sizes: Dict[int, int] = {}
    inertia = 0.0
    for cid in range(k):
        members = X[labels == cid]
        sizes[cid] = len(members)
        if not len(members):
            # empty cluster: keep the fitted centre
            cx, cy = km.cluster_centers_[cid]
        else:
            cx, cy = members.mean(axis=0)
            inertia += float(((members - (cx, cy)) ** 2).sum())
        centroids[cid] = (float(cx), float(cy))

    return ClusterResult(
        assignments=[ClusterAssignment(i, int(c)) for i, c in enumerate(labels)],
        centroids=centroids,
        inertia=inertia,
        iterations=int(km.n_iter_),
        sizes=sizes,
        points=[(float(x), float(y)) for x, y in X],
    )


def cluster_track(
    track: Sequence[Fix],
    k: int = CLUSTER_COUNT_DEFAULT,
    restarts: int = RESTARTS_DEFAULT,
    seed: int = SEED_DEFAULT,
    max_iter: int = MAX_ITER_DEFAULT,
    init: str = "k-means++",
) -> ClusterResult:
    """Cluster one animal's fixes; fix_index refers to the position in track."""
    result = cluster_positions(
        [(f.longitude, f.latitude) for f in track],
        k=k,
        restarts=restarts,
        seed=seed,
        max_iter=max_iter,
        init=init,
    )
    result.animal_id = track[0].animal_id if track else ""
    result.timestamps = [f.timestamp for f in track]
    return result
