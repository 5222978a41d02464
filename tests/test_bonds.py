"""Tests for mdmol/topology/bonds.py: covalent bond inference."""

import numpy as np
import pytest

from mdmol.errors import InvariantError
from mdmol.topology.bonds import (
    bonds_to_array,
    compute_covalent_bonds,
    covalent_bond_heuristic,
    covalent_radius,
)

CARBON = 6
OXYGEN = 8
HYDROGEN = 1


def _pair(distance: float) -> np.ndarray:
    return np.array([[0.0, 0.0, 0.0], [distance, 0.0, 0.0]], dtype=np.float32)


class TestCovalentHeuristic:
    def test_radius_lookup(self):
        assert covalent_radius(CARBON) == pytest.approx(0.76)
        assert covalent_radius(OXYGEN) == pytest.approx(0.66)

    @pytest.mark.parametrize("distance, expected", [
        (1.54, True),    # C-C single bond
        (1.20, True),    # C=C triple bond length still inside the window
        (0.50, False),   # closer than d - 0.5
        (2.00, False),   # farther than d + 0.3
    ])
    def test_carbon_pair_window(self, distance, expected):
        assert covalent_bond_heuristic([0, 0, 0], CARBON, [distance, 0, 0], CARBON) is expected

    def test_symmetric(self):
        a, b = [0.1, 0.2, 0.3], [1.2, 0.4, 0.1]
        assert covalent_bond_heuristic(a, CARBON, b, OXYGEN) == covalent_bond_heuristic(b, OXYGEN, a, CARBON)


class TestComputeCovalentBonds:
    def test_two_bonded_atoms(self):
        bonds = compute_covalent_bonds(_pair(1.54), [CARBON, CARBON])
        assert len(bonds) == 1
        assert (bonds[0].idx_a, bonds[0].idx_b) == (0, 1)

    @pytest.mark.parametrize("distance", [0.3, 2.5, 10.0])
    def test_two_unbonded_atoms(self, distance):
        assert compute_covalent_bonds(_pair(distance), [CARBON, CARBON]) == []

    def test_ch_bond(self):
        bonds = compute_covalent_bonds(_pair(1.09), [CARBON, HYDROGEN])
        assert len(bonds) == 1

    def test_residue_filter(self):
        pos = _pair(1.54)
        assert len(compute_covalent_bonds(pos, [CARBON, CARBON], np.array([0, 1]))) == 1
        assert compute_covalent_bonds(pos, [CARBON, CARBON], np.array([0, 2])) == []

    def test_empty(self):
        assert compute_covalent_bonds(np.zeros((0, 3)), np.zeros(0, dtype=np.uint8)) == []

    def test_length_mismatch(self):
        with pytest.raises(InvariantError):
            compute_covalent_bonds(_pair(1.5), [CARBON])

    def test_polypeptide_bond_count(self, helix_molecule):
        """Poly-alanine: 4 bonds per residue (N-CA, CA-C, C-O, CA-CB) + peptide bonds."""
        mol = helix_molecule
        bonds = compute_covalent_bonds(mol.atom_positions, mol.atom_elements, mol.atom_residue_indices)
        assert len(bonds) == 4 * 10 + 9

    def test_ordering_and_uniqueness(self, helix_molecule):
        mol = helix_molecule
        bonds = compute_covalent_bonds(mol.atom_positions, mol.atom_elements)
        arr = bonds_to_array(bonds)
        assert np.all(arr[:, 0] < arr[:, 1])
        assert np.all(np.diff(arr[:, 0]) >= 0)
        assert len({tuple(row) for row in arr.tolist()}) == len(bonds)

    def test_matches_brute_force(self, helix_molecule):
        mol = helix_molecule
        n = mol.num_atoms
        expected = {
            (i, j)
            for i in range(n)
            for j in range(i + 1, n)
            if covalent_bond_heuristic(
                mol.atom_positions[i], mol.atom_elements[i], mol.atom_positions[j], mol.atom_elements[j]
            )
        }
        found = {(b.idx_a, b.idx_b) for b in compute_covalent_bonds(mol.atom_positions, mol.atom_elements)}
        assert found == expected

    def test_bonds_to_array_empty(self):
        assert bonds_to_array([]).shape == (0, 2)
