"""Backbone spline reconstruction for ribbon/cartoon rendering.

The CA trace is padded with two extrapolated control points at each end and
evaluated as a cardinal (tension-parameterized) cubic spline. The O and C
traces are evaluated with the same parameters and only serve to orient the
ribbon: the O-C direction spans the ribbon plane at every sample.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..constants import (
    SPLINE_DEFAULT_SUBDIVISIONS,
    SPLINE_DEFAULT_TENSION,
    SPLINE_MIN_SEGMENTS,
    SPLINE_TANGENT_EPSILON,
)
from ..errors import InvariantError
from ..structure import BackboneSegment, Chain

logger = logging.getLogger(__name__)


@dataclass
class SplineSegment:
    """One subdivision sample along the backbone."""
    position: np.ndarray
    tangent: np.ndarray
    normal: np.ndarray
    binormal: np.ndarray
    atom_index: int
    color: int


def cubic_spline(p0, p1, p2, p3, t, tension: float = SPLINE_DEFAULT_TENSION):
    """Cardinal cubic spline between p1 and p2.

    ``tension = 0.5`` gives the Catmull-Rom spline. ``t`` may be a scalar or an
    array broadcastable against the control points.
    """
    v0 = (p2 - p0) * tension
    v1 = (p3 - p1) * tension
    a = 2.0 * (p1 - p2) + v0 + v1
    b = 3.0 * (p2 - p1) - 2.0 * v0 - v1
    return a * t ** 3 + b * t ** 2 + v0 * t + p1


def _normalize(v: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    norm = np.linalg.norm(v, axis=-1, keepdims=True)
    return v / np.maximum(norm, eps)


def _pad_control_points(points: np.ndarray) -> np.ndarray:
    """Extend (n, 3) control points by two linearly extrapolated points per end."""
    d_beg = points[1] - points[0]
    d_end = points[-1] - points[-2]
    head = np.stack([points[0] - 2.0 * d_beg, points[0] - d_beg])
    tail = np.stack([points[-1] + d_end, points[-1] + 2.0 * d_end])
    return np.concatenate([head, points, tail])


def _fix_orientation_flips(o_pts: np.ndarray, c_pts: np.ndarray) -> None:
    """Mirror O about C wherever the O-C direction turns by more than 90 degrees."""
    for i in range(1, o_pts.shape[0]):
        v0 = o_pts[i - 1] - c_pts[i - 1]
        v1 = o_pts[i] - c_pts[i]
        if np.dot(v0, v1) < 0:
            o_pts[i] = c_pts[i] - v1


def compute_spline(
    atom_positions: np.ndarray,
    atom_colors: np.ndarray,
    backbone: Sequence[BackboneSegment],
    num_subdivisions: int = SPLINE_DEFAULT_SUBDIVISIONS,
    tension: float = SPLINE_DEFAULT_TENSION,
) -> List[SplineSegment]:
    """Subdivided backbone spline with per-sample orientation frames.

    Args:
        atom_positions: (N, 3) atom positions.
        atom_colors: (N,) packed RGBA colors.
        backbone: Consecutive valid backbone segments of one chain.
        num_subdivisions: Samples per span between two CA atoms.
        tension: Spline tension.

    Returns:
        ``(len(backbone) - 1) * num_subdivisions + 1`` samples, or an empty
        list when fewer than 4 segments are given.
    """
    if len(backbone) < SPLINE_MIN_SEGMENTS:
        return []
    if num_subdivisions < 1:
        raise InvariantError(f"num_subdivisions must be >= 1, got {num_subdivisions}")

    pos = np.asarray(atom_positions, dtype=np.float32)
    ca_idx = np.array([seg.ca_idx for seg in backbone], dtype=np.int64)
    o_idx = np.array([seg.o_idx for seg in backbone], dtype=np.int64)
    c_idx = np.array([seg.c_idx for seg in backbone], dtype=np.int64)
    if min(ca_idx.min(), o_idx.min(), c_idx.min()) < 0:
        raise InvariantError("Spline construction requires valid backbone segments")

    p_pts = _pad_control_points(pos[ca_idx])
    o_pts = _pad_control_points(pos[o_idx])
    c_pts = _pad_control_points(pos[c_idx])
    _fix_orientation_flips(o_pts, c_pts)

    eps = SPLINE_TANGENT_EPSILON
    num_spans = len(backbone) - 1
    segments: List[SplineSegment] = []

    for span in range(num_spans):
        # Control window p[i-1..i+2] around the span ca[span] -> ca[span + 1]
        i = span + 2
        count = num_subdivisions + 1 if span == num_spans - 1 else num_subdivisions
        t = (np.arange(count, dtype=np.float32) / np.float32(num_subdivisions))[:, None]

        p_win = p_pts[i - 1:i + 3]
        o_win = o_pts[i - 1:i + 3]
        c_win = c_pts[i - 1:i + 3]

        p = cubic_spline(*p_win, t, tension)
        o = cubic_spline(*o_win, t, tension)
        c = cubic_spline(*c_win, t, tension)

        v_dir = _normalize(o - c)
        t_beg = np.maximum(0.0, t - eps)
        t_end = np.minimum(t + eps, 1.0)
        tangent = _normalize(cubic_spline(*p_win, t_end, tension) - cubic_spline(*p_win, t_beg, tension))
        normal = _normalize(np.cross(v_dir, tangent))
        binormal = _normalize(np.cross(tangent, normal))

        atom_index = int(ca_idx[span])
        color = int(atom_colors[atom_index])
        for n in range(count):
            segments.append(
                SplineSegment(
                    position=p[n].astype(np.float32),
                    tangent=tangent[n].astype(np.float32),
                    normal=normal[n].astype(np.float32),
                    binormal=binormal[n].astype(np.float32),
                    atom_index=atom_index,
                    color=color,
                )
            )

    return segments


def _valid_runs(segments: Sequence[BackboneSegment]) -> List[List[BackboneSegment]]:
    runs: List[List[BackboneSegment]] = [[]]
    for seg in segments:
        if seg.is_valid:
            runs[-1].append(seg)
        elif runs[-1]:
            runs.append([])
    return [run for run in runs if run]


def compute_backbone_splines(
    atom_positions: np.ndarray,
    atom_colors: np.ndarray,
    backbone_segments: Sequence[BackboneSegment],
    chains: Optional[Sequence[Chain]] = None,
    num_subdivisions: int = SPLINE_DEFAULT_SUBDIVISIONS,
    tension: float = SPLINE_DEFAULT_TENSION,
) -> List[List[SplineSegment]]:
    """One spline run per chain (split further at residues without a backbone)."""
    if not backbone_segments:
        return []
    if chains:
        groups = [backbone_segments[c.beg_res_idx:c.end_res_idx] for c in chains]
    else:
        groups = [backbone_segments]

    splines = []
    for group in groups:
        for run in _valid_runs(group):
            spline = compute_spline(atom_positions, atom_colors, run, num_subdivisions, tension)
            if spline:
                splines.append(spline)
    logger.debug(f"Computed {len(splines)} spline runs from {len(groups)} chains")
    return splines
