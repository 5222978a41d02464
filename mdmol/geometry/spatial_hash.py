"""Uniform spatial hash grid for radius-bounded neighbor queries.

Points are binned into cubic (or box-shaped) cells by sorting on their cell
index. Only occupied cells are kept, and a query only touches the cells
overlapping the query sphere's bounding box. Queries over-approximate:
callers re-check the exact distance of every candidate.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Tuple, Union

import numpy as np

from ..errors import InvariantError


@dataclass(frozen=True)
class SpatialHashFrame:
    """Immutable cell index over a point set.

    Only occupied cells are stored, so memory grows with the number of
    points rather than with the volume of their bounding box.

    Attributes:
        points: (N, 3) float32 point positions.
        cell_ext: (3,) cell extent per axis.
        cell_min: (3,) lower corner of cell (0, 0, 0).
        cell_dims: (3,) number of cells per axis.
        cell_keys: (C,) sorted linear indices of the occupied cells.
        cell_offsets: (C + 1,) start offset of each occupied cell in ``point_order``.
        point_order: (N,) point indices sorted by cell, stable in index order.
    """
    points: np.ndarray
    cell_ext: np.ndarray
    cell_min: np.ndarray
    cell_dims: np.ndarray
    cell_keys: np.ndarray
    cell_offsets: np.ndarray
    point_order: np.ndarray

    @property
    def num_points(self) -> int:
        return int(self.points.shape[0])

    @property
    def num_cells(self) -> int:
        """Number of occupied cells."""
        return int(self.cell_keys.shape[0])


def _cell_coords(p, cell_min, cell_ext) -> np.ndarray:
    p = np.asarray(p, dtype=np.float64)
    return np.floor((p - cell_min.astype(np.float64)) / cell_ext.astype(np.float64)).astype(np.int64)


def _linear_index(coords: np.ndarray, dims: np.ndarray) -> np.ndarray:
    return coords[..., 0] + dims[0] * (coords[..., 1] + dims[1] * coords[..., 2])


def compute_frame(points, cell_ext: Union[float, np.ndarray]) -> SpatialHashFrame:
    """Bin points into a uniform grid.

    Args:
        points: (N, 3) point positions.
        cell_ext: Cell edge length, scalar or per-axis (3,). Must be > 0.

    Returns:
        SpatialHashFrame over the points.
    """
    ext = np.broadcast_to(np.asarray(cell_ext, dtype=np.float32), (3,)).copy()
    if not np.all(ext > 0):
        raise InvariantError(f"Spatial hash cell extent must be positive, got {ext.tolist()}")

    pts = np.ascontiguousarray(points, dtype=np.float32).reshape(-1, 3)
    if pts.shape[0] == 0:
        return SpatialHashFrame(
            points=pts,
            cell_ext=ext,
            cell_min=np.zeros(3, dtype=np.float32),
            cell_dims=np.zeros(3, dtype=np.int64),
            cell_keys=np.zeros(0, dtype=np.int64),
            cell_offsets=np.zeros(1, dtype=np.int64),
            point_order=np.zeros(0, dtype=np.int64),
        )

    cell_min = pts.min(axis=0)
    coords = _cell_coords(pts, cell_min, ext)
    dims = coords.max(axis=0) + 1
    cell_index = _linear_index(coords, dims)

    keys, compact, counts = np.unique(cell_index, return_inverse=True, return_counts=True)
    offsets = np.zeros(keys.shape[0] + 1, dtype=np.int64)
    np.cumsum(counts, out=offsets[1:])
    order = np.argsort(compact.reshape(-1), kind="stable")

    return SpatialHashFrame(
        points=pts,
        cell_ext=ext,
        cell_min=cell_min,
        cell_dims=dims,
        cell_keys=keys,
        cell_offsets=offsets,
        point_order=order,
    )


def _cell_ranges(frame: SpatialHashFrame, center, radius: float) -> Iterator[Tuple[int, int]]:
    """Yield (begin, end) slices of ``point_order`` for cells touched by the query."""
    if frame.num_points == 0:
        return
    c = np.asarray(center, dtype=np.float64)
    lo = _cell_coords(c - radius, frame.cell_min, frame.cell_ext)
    hi = _cell_coords(c + radius, frame.cell_min, frame.cell_ext)
    if np.any(hi < 0) or np.any(lo >= frame.cell_dims):
        return
    lo = np.maximum(lo, 0)
    hi = np.minimum(hi, frame.cell_dims - 1)

    # Candidate cells in x-fastest order, matched against the occupied ones
    zz, yy, xx = np.meshgrid(
        np.arange(lo[2], hi[2] + 1),
        np.arange(lo[1], hi[1] + 1),
        np.arange(lo[0], hi[0] + 1),
        indexing="ij",
    )
    wanted = _linear_index(np.stack([xx, yy, zz], axis=-1).reshape(-1, 3), frame.cell_dims)
    slots = np.searchsorted(frame.cell_keys, wanted)
    hit = slots < frame.num_cells
    hit[hit] = frame.cell_keys[slots[hit]] == wanted[hit]
    for slot in slots[hit]:
        yield int(frame.cell_offsets[slot]), int(frame.cell_offsets[slot + 1])


def iter_within(frame: SpatialHashFrame, center, radius: float) -> Iterator[Tuple[int, np.ndarray]]:
    """Lazily yield (point_index, point_position) for candidate neighbors of ``center``."""
    for beg, end in _cell_ranges(frame, center, radius):
        for idx in frame.point_order[beg:end]:
            yield int(idx), frame.points[idx]


def query_indices(frame: SpatialHashFrame, center, radius: float) -> np.ndarray:
    """Candidate neighbor indices of ``center``, same order as :func:`iter_within`."""
    chunks = [frame.point_order[beg:end] for beg, end in _cell_ranges(frame, center, radius)]
    if not chunks:
        return np.zeros(0, dtype=np.int64)
    return np.concatenate(chunks)


def for_each_within(
    frame: SpatialHashFrame,
    center,
    radius: float,
    visit_fn: Callable[[int, np.ndarray], None],
) -> None:
    """Callback form of :func:`iter_within`."""
    for idx, pos in iter_within(frame, center, radius):
        visit_fn(idx, pos)
