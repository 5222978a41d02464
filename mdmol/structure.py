"""
Molecular Dynamics Data Model

Parallel atom arrays, residues, chains, backbone segments and the
trajectory frame buffer shared between the loader worker and the main loop.

Usage:
    from mdmol.structure import MoleculeStructure, Residue, Trajectory

    mol = MoleculeStructure.from_arrays(positions, elements, labels, residues)
    traj = Trajectory(num_atoms=mol.num_atoms, capacity=100)
    traj.append_frame(frame_positions, box)
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np

from .constants import element_from_symbol
from .errors import InvariantError, TrajectoryError


# ============================================================================
# Topology Records
# ============================================================================

@dataclass(frozen=True)
class Bond:
    """Covalent bond between two atoms, idx_a < idx_b."""
    idx_a: int
    idx_b: int


@dataclass
class Residue:
    """Contiguous atom range [beg_atom_idx, end_atom_idx)."""
    name: str
    id: int
    beg_atom_idx: int
    end_atom_idx: int
    chain_idx: int = -1

    @property
    def num_atoms(self) -> int:
        return self.end_atom_idx - self.beg_atom_idx


@dataclass
class Chain:
    """Contiguous residue range [beg_res_idx, end_res_idx)."""
    label: str
    beg_res_idx: int
    end_res_idx: int

    @property
    def num_residues(self) -> int:
        return self.end_res_idx - self.beg_res_idx


@dataclass(frozen=True)
class BackboneSegment:
    """Backbone atom indices of one residue; all -1 when not identified."""
    ca_idx: int = -1
    n_idx: int = -1
    c_idx: int = -1
    o_idx: int = -1

    @property
    def is_valid(self) -> bool:
        return min(self.ca_idx, self.n_idx, self.c_idx, self.o_idx) >= 0


INVALID_SEGMENT = BackboneSegment()


# ============================================================================
# Molecule
# ============================================================================

def _as_positions(positions) -> np.ndarray:
    arr = np.ascontiguousarray(positions, dtype=np.float32)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise InvariantError(f"Positions must have shape (N, 3), got {arr.shape}")
    return arr


def _as_elements(elements) -> np.ndarray:
    elements = list(elements) if not isinstance(elements, np.ndarray) else elements
    if len(elements) and isinstance(elements[0], str):
        return np.array([element_from_symbol(e) for e in elements], dtype=np.uint8)
    return np.asarray(elements, dtype=np.uint8)


@dataclass
class MoleculeStructure:
    """
    Atom-level structure: parallel arrays plus derived topology.

    Topology arrays (elements, labels, residue indices) are fixed for the
    lifetime of a load; positions are overwritten every frame. Derived data
    (bonds, chains, backbone segments) are replaced wholesale by
    :func:`mdmol.topology.build_topology`.
    """
    atom_positions: np.ndarray
    atom_elements: np.ndarray
    atom_labels: List[str]
    atom_residue_indices: np.ndarray
    residues: List[Residue] = field(default_factory=list)
    chains: List[Chain] = field(default_factory=list)
    backbone_segments: List[BackboneSegment] = field(default_factory=list)
    covalent_bonds: List[Bond] = field(default_factory=list)

    def __post_init__(self):
        n = self.atom_positions.shape[0]
        if self.atom_elements.shape[0] != n or len(self.atom_labels) != n:
            raise InvariantError(
                f"Atom array length mismatch: positions={n}, "
                f"elements={self.atom_elements.shape[0]}, labels={len(self.atom_labels)}"
            )
        if self.atom_residue_indices.shape[0] not in (0, n):
            raise InvariantError(
                f"Residue index array has {self.atom_residue_indices.shape[0]} entries, expected {n}"
            )

    @classmethod
    def from_arrays(
        cls,
        positions,
        elements: Sequence[Union[int, str]],
        labels: Sequence[str],
        residues: Optional[List[Residue]] = None,
    ) -> "MoleculeStructure":
        """Build a structure; per-atom residue indices are derived from residue ranges."""
        pos = _as_positions(positions)
        residues = list(residues) if residues else []
        res_idx = np.full(pos.shape[0], -1, dtype=np.int32) if residues else np.zeros(0, dtype=np.int32)
        for i, res in enumerate(residues):
            if not (0 <= res.beg_atom_idx <= res.end_atom_idx <= pos.shape[0]):
                raise InvariantError(
                    f"Residue {res.name}{res.id} atom range [{res.beg_atom_idx}, {res.end_atom_idx}) "
                    f"out of bounds for {pos.shape[0]} atoms"
                )
            res_idx[res.beg_atom_idx:res.end_atom_idx] = i
        return cls(
            atom_positions=pos,
            atom_elements=_as_elements(elements),
            atom_labels=[str(lbl).strip() for lbl in labels],
            atom_residue_indices=res_idx,
            residues=residues,
        )

    @property
    def num_atoms(self) -> int:
        return int(self.atom_positions.shape[0])

    @property
    def num_residues(self) -> int:
        return len(self.residues)

    @property
    def has_backbone(self) -> bool:
        return len(self.backbone_segments) > 0


# ============================================================================
# Trajectory
# ============================================================================

class Trajectory:
    """
    Preallocated frame buffer filled incrementally by a loader.

    ``num_frames`` is the published count: a frame becomes visible to readers
    only after its positions and box have been fully written.
    """

    def __init__(self, num_atoms: int, capacity: int, total_simulation_time: float = 0.0):
        if num_atoms < 0 or capacity < 0:
            raise InvariantError(f"Invalid trajectory dimensions: atoms={num_atoms}, capacity={capacity}")
        self.num_atoms = int(num_atoms)
        self.capacity = int(capacity)
        self.total_simulation_time = float(total_simulation_time)
        self.positions = np.zeros((self.capacity, self.num_atoms, 3), dtype=np.float32)
        self.boxes = np.zeros((self.capacity, 3, 3), dtype=np.float32)
        self.times = np.zeros(self.capacity, dtype=np.float64)
        self._num_frames = 0

    @classmethod
    def from_frames(cls, frames, boxes=None) -> "Trajectory":
        """Build a fully loaded trajectory from a (F, N, 3) array."""
        frames = np.asarray(frames, dtype=np.float32)
        if frames.ndim != 3 or frames.shape[2] != 3:
            raise InvariantError(f"Frames must have shape (F, N, 3), got {frames.shape}")
        traj = cls(num_atoms=frames.shape[1], capacity=frames.shape[0])
        for i in range(frames.shape[0]):
            box = None if boxes is None else boxes[i]
            traj.append_frame(frames[i], box)
        return traj

    @property
    def num_frames(self) -> int:
        return self._num_frames

    @property
    def last_frame(self) -> int:
        return self._num_frames - 1

    @property
    def is_complete(self) -> bool:
        return self._num_frames == self.capacity

    def append_frame(self, positions, box=None, time: Optional[float] = None) -> int:
        """Write the next frame and publish it. Returns the new frame index."""
        idx = self._num_frames
        if idx >= self.capacity:
            raise TrajectoryError(f"Trajectory is full ({self.capacity} frames)")
        pos = np.asarray(positions, dtype=np.float32)
        if pos.shape != (self.num_atoms, 3):
            raise InvariantError(f"Frame has shape {pos.shape}, expected ({self.num_atoms}, 3)")
        self.positions[idx] = pos
        if box is not None:
            box = np.asarray(box, dtype=np.float32)
            self.boxes[idx] = np.diag(box) if box.shape == (3,) else box
        self.times[idx] = float(idx) if time is None else float(time)
        self._num_frames = idx + 1
        return idx

    def _check_frame(self, frame_idx: int) -> None:
        if not (0 <= frame_idx < self._num_frames):
            raise TrajectoryError(
                f"Frame {frame_idx} is not available ({self._num_frames} frames loaded)"
            )

    def get_positions(self, frame_idx: int) -> np.ndarray:
        self._check_frame(frame_idx)
        return self.positions[frame_idx]

    def get_box(self, frame_idx: int) -> np.ndarray:
        self._check_frame(frame_idx)
        return self.boxes[frame_idx]


@dataclass
class MoleculeDynamic:
    """A structure and its trajectory, loaded together."""
    molecule: MoleculeStructure
    trajectory: Optional[Trajectory] = None

    def __post_init__(self):
        if self.trajectory is not None and self.trajectory.num_atoms != self.molecule.num_atoms:
            raise InvariantError(
                f"Trajectory has {self.trajectory.num_atoms} atoms, "
                f"molecule has {self.molecule.num_atoms}"
            )
