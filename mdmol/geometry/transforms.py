"""Rigid/linear transforms and bulk descriptors of point sets."""

from typing import Optional, Tuple

import numpy as np
from scipy.linalg import polar

from ..errors import InvariantError


def transform_positions(positions: np.ndarray, transformation: np.ndarray) -> np.ndarray:
    """Apply a 4x4 affine transform to (N, 3) positions in place and return them."""
    m = np.asarray(transformation, dtype=np.float32)
    positions[:] = positions @ m[:3, :3].T + m[:3, 3]
    return positions


def compute_bounding_box(
    positions: np.ndarray,
    radii: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Axis-aligned bounding box (min, max), optionally inflated by per-atom radii."""
    pos = np.asarray(positions, dtype=np.float32)
    if pos.shape[0] == 0:
        zero = np.zeros(3, dtype=np.float32)
        return zero, zero.copy()
    if radii is None or len(radii) == 0:
        return pos.min(axis=0), pos.max(axis=0)
    r = np.asarray(radii, dtype=np.float32)
    if r.shape[0] != pos.shape[0]:
        raise InvariantError(f"Got {r.shape[0]} radii for {pos.shape[0]} positions")
    r = r[:, None]
    return (pos - r).min(axis=0), (pos + r).max(axis=0)


def compute_com(positions: np.ndarray, masses: Optional[np.ndarray] = None) -> np.ndarray:
    """Center of mass; unweighted centroid when no masses are given."""
    pos = np.asarray(positions, dtype=np.float32)
    if pos.shape[0] == 0:
        return np.zeros(3, dtype=np.float32)
    if masses is None or len(masses) == 0:
        return pos.mean(axis=0)
    m = np.asarray(masses, dtype=np.float32)
    if m.shape[0] != pos.shape[0]:
        raise InvariantError(f"Got {m.shape[0]} masses for {pos.shape[0]} positions")
    return (pos * m[:, None]).sum(axis=0) / m.sum()


def _covariances(x0, x, masses):
    x0 = np.asarray(x0, dtype=np.float64)
    x = np.asarray(x, dtype=np.float64)
    if x0.shape != x.shape:
        raise InvariantError(f"Position sets differ in shape: {x0.shape} vs {x.shape}")
    w = np.ones(x0.shape[0]) if masses is None or len(masses) == 0 else np.asarray(masses, dtype=np.float64)
    if w.shape[0] != x0.shape[0]:
        raise InvariantError(f"Got {w.shape[0]} masses for {x0.shape[0]} positions")
    com_x0 = compute_com(x0, masses).astype(np.float64)
    com_x = compute_com(x, masses).astype(np.float64)
    q = x0 - com_x0
    p = x - com_x
    apq = np.einsum("n,ni,nj->ij", w, p, q)
    aqq = np.einsum("n,ni,nj->ij", w, q, q)
    return apq, aqq, com_x


def compute_linear_transform(
    pos_frame_a: np.ndarray,
    pos_frame_b: np.ndarray,
    masses: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Best-fit linear map from centered frame a onto frame b.

    Returns a 4x4 matrix ``[Apq @ inv(Aqq) | com_b]`` that maps positions of
    frame a, relative to their center of mass, onto frame b.
    """
    apq, aqq, com_b = _covariances(pos_frame_a, pos_frame_b, masses)
    result = np.eye(4, dtype=np.float32)
    result[:3, :3] = apq @ np.linalg.pinv(aqq)
    result[:3, 3] = com_b
    return result


def decompose(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Polar decomposition ``M = R @ S`` into rotation R and symmetric stretch S."""
    r, s = polar(np.asarray(matrix, dtype=np.float64), side="right")
    return r.astype(np.float32), s.astype(np.float32)


def compute_rotation_stretch(
    x0: np.ndarray,
    x: np.ndarray,
    masses: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Rotation and stretch of the deformation taking rest positions x0 to x."""
    apq, aqq, _ = _covariances(x0, x, masses)
    return decompose(apq @ np.linalg.pinv(aqq))
