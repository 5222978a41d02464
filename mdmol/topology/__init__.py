"""Topology derivation: covalent bonds, chains and backbone segments."""

import logging

from .bonds import bonds_to_array, compute_covalent_bonds, covalent_bond_heuristic, covalent_radius
from .chains import assign_residue_chains, compute_chains, compute_residue_bonds
from .backbone import compute_backbone_segments, find_backbone_segment, get_backbone
from ..structure import MoleculeStructure

logger = logging.getLogger(__name__)


def build_topology(molecule: MoleculeStructure) -> MoleculeStructure:
    """Recompute bonds, chains and backbone segments of ``molecule`` in place."""
    molecule.covalent_bonds = compute_covalent_bonds(
        molecule.atom_positions, molecule.atom_elements, molecule.atom_residue_indices
    )
    if molecule.residues:
        molecule.chains = compute_chains(
            molecule.residues, molecule.covalent_bonds, molecule.atom_residue_indices
        )
        assign_residue_chains(molecule.residues, molecule.chains)
        molecule.backbone_segments = compute_backbone_segments(molecule.residues, molecule.atom_labels)
    else:
        molecule.chains = []
        molecule.backbone_segments = []

    logger.info(
        f"Topology: {molecule.num_atoms} atoms, {len(molecule.covalent_bonds)} bonds, "
        f"{len(molecule.chains)} chains, "
        f"{sum(seg.is_valid for seg in molecule.backbone_segments)} backbone segments"
    )
    return molecule


__all__ = [
    "build_topology",
    "compute_covalent_bonds",
    "covalent_bond_heuristic",
    "covalent_radius",
    "bonds_to_array",
    "compute_chains",
    "compute_residue_bonds",
    "assign_residue_chains",
    "compute_backbone_segments",
    "find_backbone_segment",
    "get_backbone",
]
