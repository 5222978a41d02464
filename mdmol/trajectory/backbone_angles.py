"""
Backbone Angle Engine

Per-residue [omega, phi, psi] backbone dihedrals for single frames and an
append-only per-frame table that is filled incrementally while a trajectory
is still loading.

Terminus policy (per chain): the first residue has omega = phi = 0, the last
residue has psi = 0. Angles that depend on a residue without a valid backbone
are 0.
"""

import logging
from typing import Callable, Optional, Sequence

import numpy as np
import torch

from ..errors import InvariantError, TrajectoryError
from ..geometry.dihedrals import calculate_dihedral_angles
from ..structure import BackboneSegment, Chain, MoleculeDynamic

logger = logging.getLogger(__name__)


def _segment_indices(segments: Sequence[BackboneSegment]):
    ca = np.array([s.ca_idx for s in segments], dtype=np.int64)
    n = np.array([s.n_idx for s in segments], dtype=np.int64)
    c = np.array([s.c_idx for s in segments], dtype=np.int64)
    o = np.array([s.o_idx for s in segments], dtype=np.int64)
    valid = (ca >= 0) & (n >= 0) & (c >= 0) & (o >= 0)
    return ca, n, c, valid


def compute_backbone_angles(
    positions: np.ndarray,
    segments: Sequence[BackboneSegment],
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Backbone dihedrals of one chain.

    Args:
        positions: (N, 3) atom positions.
        segments: Backbone segments of consecutive residues of one chain.
        out: Optional (R, 3) destination.

    Returns:
        (R, 3) float32 array of [omega, phi, psi] in radians.
    """
    num_res = len(segments)
    if out is None:
        out = np.zeros((num_res, 3), dtype=np.float32)
    elif out.shape != (num_res, 3):
        raise InvariantError(f"Angle destination has shape {out.shape}, expected ({num_res}, 3)")
    else:
        out[:] = 0.0

    if num_res < 2:
        return out

    ca, n, c, valid = _segment_indices(segments)
    pos = torch.as_tensor(np.asarray(positions, dtype=np.float32))
    num_atoms = pos.shape[0]
    if num_atoms and max(ca.max(), n.max(), c.max()) >= num_atoms:
        raise InvariantError(f"Backbone segment index out of range for {num_atoms} atoms")

    # Invalid segments gather atom 0 and are masked out below
    ca_pos = pos[torch.as_tensor(np.where(valid, ca, 0))]
    n_pos = pos[torch.as_tensor(np.where(valid, n, 0))]
    c_pos = pos[torch.as_tensor(np.where(valid, c, 0))]

    omega = calculate_dihedral_angles(ca_pos[:-1], c_pos[:-1], n_pos[1:], ca_pos[1:])
    phi = calculate_dihedral_angles(c_pos[:-1], n_pos[1:], ca_pos[1:], c_pos[1:])
    psi = calculate_dihedral_angles(n_pos[:-1], ca_pos[:-1], c_pos[:-1], n_pos[1:])

    pair_valid = torch.as_tensor(valid[:-1] & valid[1:])
    zero = torch.zeros_like(omega)
    out[1:, 0] = torch.where(pair_valid, omega, zero).numpy()
    out[1:, 1] = torch.where(pair_valid, phi, zero).numpy()
    out[:-1, 2] = torch.where(pair_valid, psi, zero).numpy()
    return out


def compute_molecule_backbone_angles(
    positions: np.ndarray,
    segments: Sequence[BackboneSegment],
    chains: Sequence[Chain],
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Backbone dihedrals of every chain; residues outside chains stay 0."""
    num_res = len(segments)
    if out is None:
        out = np.zeros((num_res, 3), dtype=np.float32)
    else:
        out[:] = 0.0
    if num_res == 0:
        return out
    for chain in chains:
        if chain.end_res_idx > num_res:
            raise InvariantError(
                f"Chain {chain.label} spans residues up to {chain.end_res_idx}, "
                f"only {num_res} backbone segments"
            )
        compute_backbone_angles(
            positions,
            segments[chain.beg_res_idx:chain.end_res_idx],
            out=out[chain.beg_res_idx:chain.end_res_idx],
        )
    return out


class BackboneAnglesTrajectory:
    """Append-only (frames, segments, 3) angle table.

    Written by a single worker; ``num_frames`` is only advanced after a
    frame's angles are fully written, so readers never see partial rows.
    """

    def __init__(self, num_segments: int, capacity: int):
        self.num_segments = int(num_segments)
        self.capacity = int(capacity)
        self.angle_data = np.zeros((self.capacity, self.num_segments, 3), dtype=np.float32)
        self._num_frames = 0

    @property
    def num_frames(self) -> int:
        return self._num_frames

    def __repr__(self) -> str:
        return (
            f"BackboneAnglesTrajectory(num_segments={self.num_segments}, "
            f"num_frames={self._num_frames}, capacity={self.capacity})"
        )


def init_backbone_angles_trajectory(dynamic: MoleculeDynamic) -> BackboneAnglesTrajectory:
    """Allocate an empty angle table sized for the dynamic's trajectory."""
    capacity = dynamic.trajectory.capacity if dynamic.trajectory is not None else 0
    return BackboneAnglesTrajectory(len(dynamic.molecule.backbone_segments), capacity)


def compute_backbone_angles_trajectory(
    data: BackboneAnglesTrajectory,
    dynamic: MoleculeDynamic,
    should_stop: Optional[Callable[[], bool]] = None,
) -> int:
    """
    Extend the angle table to cover every frame loaded so far.

    The trajectory frame count is read once on entry; frames published after
    that are picked up by the next call. Calling again with no new frames is
    a no-op.

    Args:
        data: Angle table to extend.
        dynamic: Molecule and trajectory the table belongs to.
        should_stop: Polled after each frame; returning True ends the pass.

    Returns:
        Number of frames computed by this call.
    """
    trajectory = dynamic.trajectory
    molecule = dynamic.molecule
    if trajectory is None or not molecule.backbone_segments:
        return 0
    if data.num_segments != len(molecule.backbone_segments):
        raise InvariantError(
            f"Angle table has {data.num_segments} segments, "
            f"molecule has {len(molecule.backbone_segments)}"
        )

    traj_num_frames = trajectory.num_frames
    if traj_num_frames > data.capacity:
        raise InvariantError(
            f"Trajectory has {traj_num_frames} frames, angle table holds {data.capacity}"
        )

    start = data.num_frames
    for frame_idx in range(start, traj_num_frames):
        compute_molecule_backbone_angles(
            trajectory.get_positions(frame_idx),
            molecule.backbone_segments,
            molecule.chains,
            out=data.angle_data[frame_idx],
        )
        data._num_frames = frame_idx + 1
        if should_stop is not None and should_stop():
            logger.info(f"Backbone angle pass stopped after frame {frame_idx}")
            break

    computed = data.num_frames - start
    if computed:
        logger.debug(f"Computed backbone angles for frames [{start}, {data.num_frames})")
    return computed


def get_backbone_angles(
    data: BackboneAnglesTrajectory,
    frame_idx: int,
    num_frames: int = 1,
) -> np.ndarray:
    """(num_frames, R, 3) view of completed frames starting at ``frame_idx``."""
    end = frame_idx + num_frames
    if frame_idx < 0 or num_frames < 0 or end > data.num_frames:
        raise TrajectoryError(
            f"Backbone angles for frames [{frame_idx}, {end}) are not available "
            f"({data.num_frames} frames computed)"
        )
    return data.angle_data[frame_idx:end]
