"""Chain derivation from residue-to-residue bonds."""

from typing import List, Sequence

import numpy as np

from ..errors import InvariantError
from ..structure import Bond, Chain, Residue


def compute_residue_bonds(bonds: Sequence[Bond], atom_residue_indices: np.ndarray) -> List[Bond]:
    """Map atom bonds to residue pairs, dropping intra-residue bonds."""
    res_bonds = []
    for bond in bonds:
        res_a = int(atom_residue_indices[bond.idx_a])
        res_b = int(atom_residue_indices[bond.idx_b])
        if res_a != res_b and res_a >= 0 and res_b >= 0:
            res_bonds.append(Bond(res_a, res_b))
    return res_bonds


def compute_chains(
    residues: Sequence[Residue],
    bonds: Sequence[Bond],
    atom_residue_indices: np.ndarray,
) -> List[Chain]:
    """Group residues into chains of consecutive, bonded residues.

    Residues are swept left to right; a residue without a chain opens a new
    one and hands its chain id to every residue it bonds to with a larger
    index. Chains are the maximal runs of equal chain id.

    Args:
        residues: Residues in atom order.
        bonds: Atom bonds, sorted by first atom index.
        atom_residue_indices: (N,) residue index per atom.

    Returns:
        Chains labelled "C<id>", or an empty list if no residues are bonded.
    """
    if atom_residue_indices is None or len(atom_residue_indices) == 0:
        raise InvariantError("Chain derivation requires per-atom residue indices")

    residue_bonds = compute_residue_bonds(bonds, atom_residue_indices)
    if not residue_bonds:
        return []

    firsts = np.array([b.idx_a for b in residue_bonds])
    if np.any(np.diff(firsts) < 0):
        raise InvariantError("Residue bonds must be sorted by first residue index")

    residue_chains = np.full(len(residues), -1, dtype=np.int64)
    curr_chain_idx = 0
    res_bond_idx = 0
    for i in range(len(residues)):
        if residue_chains[i] == -1:
            residue_chains[i] = curr_chain_idx
            curr_chain_idx += 1
        while res_bond_idx < len(residue_bonds):
            res_bond = residue_bonds[res_bond_idx]
            if res_bond.idx_a > i:
                break
            if res_bond.idx_a == i:
                residue_chains[res_bond.idx_b] = residue_chains[i]
            res_bond_idx += 1

    chains: List[Chain] = []
    curr = -1
    for i, chain_id in enumerate(residue_chains):
        if chain_id != curr:
            curr = int(chain_id)
            chains.append(Chain(label=f"C{curr}", beg_res_idx=i, end_res_idx=i))
        chains[-1].end_res_idx += 1

    return chains


def assign_residue_chains(residues: Sequence[Residue], chains: Sequence[Chain]) -> None:
    """Write each residue's owning chain index (-1 if not in any chain)."""
    for res in residues:
        res.chain_idx = -1
    for chain_idx, chain in enumerate(chains):
        for res in residues[chain.beg_res_idx:chain.end_res_idx]:
            res.chain_idx = chain_idx
