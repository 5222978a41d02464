"""Position interpolation between trajectory frames.

All blending is done in float32. Periodic variants undo the wrap-around of
atoms that crossed a box face between two keyframes before blending: per
axis, a neighbor keyframe that is more than half a box length away from the
reference keyframe is shifted by one box length towards it. Only the box
diagonal is used, so triclinic boxes are treated as their orthogonal hull.
"""

from enum import Enum
from typing import Optional, Sequence

import numpy as np

from ..errors import InvariantError, TrajectoryError
from ..geometry.spline import cubic_spline
from ..structure import Trajectory


class InterpolationMode(str, Enum):
    NEAREST = "nearest"
    LINEAR = "linear"
    LINEAR_PERIODIC = "linear_periodic"
    CUBIC = "cubic"
    CUBIC_PERIODIC = "cubic_periodic"

    @property
    def is_cubic(self) -> bool:
        return self in (InterpolationMode.CUBIC, InterpolationMode.CUBIC_PERIODIC)


def box_extent(box) -> np.ndarray:
    """Full box extent per axis from a (3, 3) box matrix or (3,) diagonal."""
    box = np.asarray(box, dtype=np.float32)
    if box.shape == (3, 3):
        return np.diagonal(box).astype(np.float32)
    if box.shape == (3,):
        return box
    raise InvariantError(f"Box must be (3, 3) or (3,), got {box.shape}")


def de_periodize(reference: np.ndarray, positions: np.ndarray, full_ext: np.ndarray) -> np.ndarray:
    """Shift ``positions`` by whole box lengths to the image closest to ``reference``.

    Args:
        reference: (N, 3) reference positions.
        positions: (N, 3) positions to unwrap.
        full_ext: (3,) full box extent.

    Returns:
        Unwrapped copy of ``positions``.
    """
    full_ext = np.asarray(full_ext, dtype=np.float32)
    half_ext = full_ext * np.float32(0.5)
    delta = positions - reference
    signed_mask = np.sign(delta) * (np.abs(delta) > half_ext)
    return (positions - full_ext * signed_mask).astype(np.float32)


def _check_counts(out: Optional[np.ndarray], *arrays: np.ndarray) -> np.ndarray:
    n = arrays[0].shape[0]
    for arr in arrays[1:]:
        if arr.shape[0] != n:
            raise InvariantError(f"Frame size mismatch: {arr.shape[0]} vs {n} positions")
    if out is None:
        return np.empty((n, 3), dtype=np.float32)
    if out.shape[0] != n:
        raise InvariantError(f"Destination has {out.shape[0]} positions, expected {n}")
    return out


def _mix(x: np.ndarray, y: np.ndarray, t: np.float32) -> np.ndarray:
    return x * (np.float32(1.0) - t) + y * t


def linear_interpolation(prev_pos, next_pos, t: float, out: Optional[np.ndarray] = None) -> np.ndarray:
    prev_pos = np.asarray(prev_pos, dtype=np.float32)
    next_pos = np.asarray(next_pos, dtype=np.float32)
    out = _check_counts(out, prev_pos, next_pos)
    out[:] = _mix(prev_pos, next_pos, np.float32(t))
    return out


def linear_interpolation_periodic(
    prev_pos,
    next_pos,
    t: float,
    box,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    prev_pos = np.asarray(prev_pos, dtype=np.float32)
    next_pos = np.asarray(next_pos, dtype=np.float32)
    out = _check_counts(out, prev_pos, next_pos)
    next_pos = de_periodize(prev_pos, next_pos, box_extent(box))
    out[:] = _mix(prev_pos, next_pos, np.float32(t))
    return out


def cubic_interpolation(pos0, pos1, pos2, pos3, t: float, out: Optional[np.ndarray] = None) -> np.ndarray:
    p = [np.asarray(x, dtype=np.float32) for x in (pos0, pos1, pos2, pos3)]
    out = _check_counts(out, *p)
    out[:] = cubic_spline(*p, np.float32(t))
    return out


def cubic_interpolation_periodic(
    pos0,
    pos1,
    pos2,
    pos3,
    t: float,
    box,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    p0, p1, p2, p3 = [np.asarray(x, dtype=np.float32) for x in (pos0, pos1, pos2, pos3)]
    out = _check_counts(out, p0, p1, p2, p3)
    full_ext = box_extent(box)
    # p1 is the reference all other keyframes are unwrapped against
    p0 = de_periodize(p1, p0, full_ext)
    p2 = de_periodize(p1, p2, full_ext)
    p3 = de_periodize(p1, p3, full_ext)
    out[:] = cubic_spline(p0, p1, p2, p3, np.float32(t))
    return out


def interpolate(
    dst: Optional[np.ndarray],
    mode: InterpolationMode,
    frames: Sequence[np.ndarray],
    box,
    t: float,
) -> np.ndarray:
    """Interpolate keyframes at fraction ``t`` between the two central frames.

    Args:
        dst: (N, 3) destination, allocated when None.
        mode: Interpolation mode.
        frames: ``(prev, next)`` or ``(prev_2, prev, next, next_2)``. Cubic
            modes require all four.
        box: Simulation box of the ``prev`` keyframe.
        t: Fraction in [0, 1]; values outside are clamped. The keyframes are
            copied verbatim at t = 0 and t = 1.

    Returns:
        The interpolated positions.
    """
    mode = InterpolationMode(mode)
    if len(frames) == 2:
        prev_2, prev, nxt, next_2 = frames[0], frames[0], frames[1], frames[1]
    elif len(frames) == 4:
        prev_2, prev, nxt, next_2 = frames
    else:
        raise InvariantError(f"Expected 2 or 4 keyframes, got {len(frames)}")
    if mode.is_cubic and len(frames) != 4:
        raise InvariantError(f"{mode.value} interpolation requires 4 keyframes")

    t = min(max(float(t), 0.0), 1.0)
    if mode == InterpolationMode.NEAREST:
        t = 1.0 if t >= 0.5 else 0.0

    if t == 0.0 or t == 1.0:
        src = np.asarray(prev if t == 0.0 else nxt, dtype=np.float32)
        dst = _check_counts(dst, src)
        dst[:] = src
        return dst

    if mode == InterpolationMode.LINEAR:
        return linear_interpolation(prev, nxt, t, out=dst)
    if mode == InterpolationMode.LINEAR_PERIODIC:
        return linear_interpolation_periodic(prev, nxt, t, box, out=dst)
    if mode == InterpolationMode.CUBIC:
        return cubic_interpolation(prev_2, prev, nxt, next_2, t, out=dst)
    return cubic_interpolation_periodic(prev_2, prev, nxt, next_2, t, box, out=dst)


def interpolate_atomic_positions(
    trajectory: Trajectory,
    time: float,
    mode: InterpolationMode,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Atom positions at a (fractional) playback time.

    ``time`` is a frame-index time kept in double precision; it is clamped to
    [0, last_frame] and neighbor frames are clamped to the loaded range.
    """
    num_frames = trajectory.num_frames
    if num_frames == 0:
        raise TrajectoryError("Cannot interpolate a trajectory without frames")

    last_frame = num_frames - 1
    time = min(max(float(time), 0.0), float(last_frame))

    frame = int(time)
    prev_frame_2 = max(0, frame - 1)
    prev_frame_1 = frame
    next_frame_1 = min(frame + 1, last_frame)
    next_frame_2 = min(frame + 2, last_frame)
    box = trajectory.get_box(prev_frame_1)

    if out is None:
        out = np.empty((trajectory.num_atoms, 3), dtype=np.float32)

    if prev_frame_1 == next_frame_1:
        out[:] = trajectory.get_positions(prev_frame_1)
        return out

    mode = InterpolationMode(mode)
    t = time - frame
    if mode == InterpolationMode.NEAREST:
        nearest = min(max(int(time + 0.5), 0), last_frame)
        out[:] = trajectory.get_positions(nearest)
        return out

    frames = [
        trajectory.get_positions(i)
        for i in (prev_frame_2, prev_frame_1, next_frame_1, next_frame_2)
    ]
    return interpolate(out, mode, frames, box, t)
