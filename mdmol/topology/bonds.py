"""Covalent bond inference from atom positions and elements.

Two atoms are bonded when their distance falls inside a window around the
sum of their covalent radii. Candidate pairs come from a spatial hash with
3.5 A cells, so the search is linear in the number of atoms. The approach
follows the one used by NGL.
"""

import logging
from typing import List, Optional

import numpy as np

from ..constants import (
    COVALENT_BOND_LOWER_TOLERANCE,
    COVALENT_BOND_UPPER_TOLERANCE,
    COVALENT_RADIUS,
    DEFAULT_COVALENT_RADIUS,
    MAX_COVALENT_BOND_LENGTH,
)
from ..errors import InvariantError
from ..geometry.spatial_hash import compute_frame, query_indices
from ..structure import Bond

logger = logging.getLogger(__name__)

_COVALENT_RADIUS_TABLE = np.full(256, DEFAULT_COVALENT_RADIUS, dtype=np.float32)
for _anum, _radius in COVALENT_RADIUS.items():
    _COVALENT_RADIUS_TABLE[_anum] = _radius


def covalent_radius(element: int) -> float:
    return float(_COVALENT_RADIUS_TABLE[int(element)])


def covalent_bond_heuristic(pos_a, elem_a: int, pos_b, elem_b: int) -> bool:
    """Distance-window test for a single atom pair."""
    d = covalent_radius(elem_a) + covalent_radius(elem_b)
    d_high = d + COVALENT_BOND_UPPER_TOLERANCE
    d_low = d - COVALENT_BOND_LOWER_TOLERANCE
    v = np.asarray(pos_a, dtype=np.float32) - np.asarray(pos_b, dtype=np.float32)
    dist2 = float(np.dot(v, v))
    return d_low * d_low < dist2 < d_high * d_high


def compute_covalent_bonds(
    atom_positions: np.ndarray,
    atom_elements: np.ndarray,
    atom_residue_indices: Optional[np.ndarray] = None,
) -> List[Bond]:
    """Infer covalent bonds.

    Args:
        atom_positions: (N, 3) positions in Angstrom.
        atom_elements: (N,) atomic numbers.
        atom_residue_indices: Optional (N,) residue index per atom. When given,
            only atoms of the same or adjacent residues are considered.

    Returns:
        Bonds with idx_a < idx_b, ordered by idx_a then by neighbor discovery.
    """
    pos = np.ascontiguousarray(atom_positions, dtype=np.float32)
    elem = np.asarray(atom_elements, dtype=np.int64)
    if elem.shape[0] != pos.shape[0]:
        raise InvariantError(f"Got {elem.shape[0]} elements for {pos.shape[0]} atoms")

    res_idx = None
    if atom_residue_indices is not None and len(atom_residue_indices) > 0:
        res_idx = np.asarray(atom_residue_indices, dtype=np.int64)
        if res_idx.shape[0] != pos.shape[0]:
            raise InvariantError(f"Got {res_idx.shape[0]} residue indices for {pos.shape[0]} atoms")

    radii = _COVALENT_RADIUS_TABLE[elem]
    frame = compute_frame(pos, MAX_COVALENT_BOND_LENGTH)
    bonds: List[Bond] = []

    for i in range(pos.shape[0]):
        cand = query_indices(frame, pos[i], MAX_COVALENT_BOND_LENGTH)
        cand = cand[cand > i]
        if res_idx is not None:
            # Bonds are either within a residue or between consecutive residues
            cand = cand[np.abs(res_idx[cand] - res_idx[i]) < 2]
        if cand.shape[0] == 0:
            continue

        d = radii[i] + radii[cand]
        d_high = d + COVALENT_BOND_UPPER_TOLERANCE
        d_low = d - COVALENT_BOND_LOWER_TOLERANCE
        v = pos[cand] - pos[i]
        dist2 = (v * v).sum(axis=1)
        hits = cand[(dist2 < d_high * d_high) & (dist2 > d_low * d_low)]
        bonds.extend(Bond(i, int(j)) for j in hits)

    logger.debug(f"Found {len(bonds)} covalent bonds among {pos.shape[0]} atoms")
    return bonds


def bonds_to_array(bonds: List[Bond]) -> np.ndarray:
    """Bond list -> (M, 2) int32 index array."""
    if not bonds:
        return np.zeros((0, 2), dtype=np.int32)
    return np.array([(b.idx_a, b.idx_b) for b in bonds], dtype=np.int32)
