# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.downsample",
#   "purpose": "Largest-Triangle-Three-Buckets point reduction",
#   "sections": [
#     {"id": "lttb-indices", "name": "lttb_indices", "anchor": "function-lttb-indices", "kind": "function"},
#     {"id": "downsample", "name": "downsample", "anchor": "function-downsample", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Largest-Triangle-Three-Buckets (LTTB) downsampling.

LTTB keeps the first and last point and splits the remaining points into
``target - 2`` equal-width buckets.  From each bucket it keeps the point that
spans the largest triangle with the previously kept point and the mean of the
following bucket, which preserves peaks and edges far better than striding.

The parser only needs the *indices* LTTB selects on a reference series so it
can apply the same subset to the X axis and every other series; hence
:func:`lttb_indices` is the primitive and :func:`downsample` a thin wrapper
for point sequences.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple, TypeVar, Union

import numpy as np

__all__ = ["lttb_indices", "downsample"]

PointT = TypeVar("PointT")


def _mean_ignoring_nan(values: np.ndarray) -> float:
    finite = values[~np.isnan(values)]
    if finite.size == 0:
        return 0.0
    return float(finite.mean())


def lttb_indices(
    x_values: Union[Sequence[float], np.ndarray],
    y_values: Union[Sequence[float], np.ndarray],
    target: int,
) -> np.ndarray:
    """Return the sorted indices LTTB keeps when reducing to ``target`` points.

    Args:
        x_values: X coordinates, assumed sorted.
        y_values: Y coordinates aligned with ``x_values``; ``nan`` entries are
            never preferred over finite candidates.
        target: Desired number of points (at least 2).

    Returns:
        ``np.ndarray`` of ``int`` indices.  When ``target`` is not smaller than
        the input length every index is returned.

    Raises:
        ValueError: If the inputs differ in length or ``target`` is below 2.
    """

    xs = np.asarray(x_values, dtype=float)
    ys = np.asarray(y_values, dtype=float)
    n = xs.shape[0]
    if ys.shape[0] != n:
        raise ValueError(f"x/y length mismatch: {n} != {ys.shape[0]}")
    if n <= target:
        return np.arange(n)
    if target < 2:
        raise ValueError(f"target must be at least 2, got {target}")
    if target == 2:
        return np.array([0, n - 1])

    bucket_size = (n - 2) / (target - 2)
    selected = np.empty(target, dtype=np.int64)
    selected[0] = 0
    selected[-1] = n - 1
    last = 0

    for bucket in range(target - 2):
        start = math.floor(bucket * bucket_size) + 1
        end = min(math.floor((bucket + 1) * bucket_size) + 1, n - 1)
        next_start = end
        next_end = min(math.floor((bucket + 2) * bucket_size) + 1, n)

        if next_end > next_start:
            avg_x = _mean_ignoring_nan(xs[next_start:next_end])
            avg_y = _mean_ignoring_nan(ys[next_start:next_end])
        else:
            avg_x = avg_y = 0.0

        if end <= start:
            chosen = start
        else:
            ax, ay = xs[last], ys[last]
            bx, by = xs[start:end], ys[start:end]
            areas = 0.5 * np.abs((ax - avg_x) * (by - ay) - (ax - bx) * (avg_y - ay))
            areas = np.where(np.isnan(areas), -np.inf, areas)
            # argmax returns the first maximum, so ties keep the earliest point.
            chosen = start + int(np.argmax(areas))

        selected[bucket + 1] = chosen
        last = chosen

    return selected


def downsample(points: Sequence[PointT], target: int) -> Sequence[PointT]:
    """Reduce ``points`` to ``target`` entries with LTTB.

    ``points`` may hold ``(x, y)`` tuples or objects exposing ``x``/``y``
    attributes.  The input is returned unchanged when it already fits.
    """

    if len(points) <= target:
        return points
    coords = [_coords(point) for point in points]
    xs = [x for x, _ in coords]
    ys = [y for _, y in coords]
    return [points[int(i)] for i in lttb_indices(xs, ys, target)]


def _coords(point: object) -> Tuple[float, float]:
    if hasattr(point, "x") and hasattr(point, "y"):
        return float(point.x), float(point.y)  # type: ignore[attr-defined]
    x, y = point  # type: ignore[misc]
    return float(x), float(y)
