"""Tests for mdmol/coloring.py."""

import numpy as np
import pytest

from mdmol.coloring import (
    ColorMapping,
    color_from_index,
    color_from_string,
    compute_atom_colors,
    compute_atom_radii,
    normalize_color_mapping,
    pack_rgba,
    unpack_rgba,
)
from mdmol.constants import DEFAULT_STATIC_COLOR
from mdmol.errors import InputError
from mdmol.topology import build_topology


class TestPacking:
    def test_red_in_low_byte(self):
        assert pack_rgba(255, 0, 0, 0) == 0x000000FF
        assert pack_rgba(0, 0, 0, 255) == 0xFF000000

    def test_unpack(self):
        assert unpack_rgba(pack_rgba(10, 20, 30, 40)) == (10, 20, 30, 40)

    def test_byte_order(self):
        colors = np.array([pack_rgba(1, 2, 3, 4)], dtype=np.uint32)
        assert colors.astype("<u4").view(np.uint8).tolist() == [1, 2, 3, 4]


class TestColorHelpers:
    def test_string_color_stable(self):
        assert color_from_string("ALA") == color_from_string("ALA")

    def test_index_colors_opaque(self):
        for i in range(30):
            assert unpack_rgba(color_from_index(i))[3] == 255

    def test_index_cycle(self):
        assert color_from_index(0) == color_from_index(21)
        assert color_from_index(0) != color_from_index(1)

    def test_normalize(self):
        assert normalize_color_mapping("CPK") == ColorMapping.CPK
        assert normalize_color_mapping(ColorMapping.RES_ID) == ColorMapping.RES_ID
        with pytest.raises(InputError):
            normalize_color_mapping("rainbow")


class TestComputeAtomColors:
    def test_static(self, helix_molecule):
        colors = compute_atom_colors(helix_molecule, ColorMapping.STATIC_COLOR, 0xFF00FF00)
        assert colors.dtype == np.uint32
        assert np.all(colors == 0xFF00FF00)

    def test_cpk(self, helix_molecule):
        colors = compute_atom_colors(helix_molecule, "cpk")
        # Atom 0 is N, atom 3 is O
        assert unpack_rgba(colors[0])[:3] == (48, 80, 248)
        assert unpack_rgba(colors[3])[:3] == (255, 13, 13)

    def test_res_id_same_name_same_color(self, helix_molecule):
        colors = compute_atom_colors(helix_molecule, ColorMapping.RES_ID)
        assert len(set(colors.tolist())) == 1

    def test_res_index_per_residue(self, helix_molecule):
        colors = compute_atom_colors(helix_molecule, ColorMapping.RES_INDEX)
        assert colors[0] == colors[4]
        assert colors[0] != colors[5]

    def test_chain_index(self, two_chain_molecule):
        mol = build_topology(two_chain_molecule)
        colors = compute_atom_colors(mol, ColorMapping.CHAIN_INDEX)
        first, second = mol.residues[0], mol.residues[-1]
        assert colors[first.beg_atom_idx] != colors[second.beg_atom_idx]
        assert colors[0] == colors[mol.residues[5].beg_atom_idx]

    def test_chain_mapping_without_chains(self, helix_molecule):
        colors = compute_atom_colors(helix_molecule, ColorMapping.CHAIN_ID)
        assert np.all(colors == DEFAULT_STATIC_COLOR)


class TestAtomRadii:
    def test_known_and_unknown(self):
        radii = compute_atom_radii([6, 8, 0])
        assert radii.dtype == np.float32
        assert radii[0] == pytest.approx(1.70)
        assert radii[1] == pytest.approx(1.52)
        assert radii[2] == pytest.approx(1.70)
