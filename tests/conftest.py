"""Shared test fixtures for mdmol."""

import math
from typing import List, Optional, Sequence

import numpy as np
import pytest

from mdmol.structure import MoleculeDynamic, MoleculeStructure, Residue, Trajectory

# Ideal peptide geometry (Angstrom / degrees)
N_CA = 1.458
CA_C = 1.525
C_N = 1.329
C_O = 1.231
CA_CB = 1.530
ANGLE_N_CA_C = 111.2
ANGLE_CA_C_N = 116.2
ANGLE_C_N_CA = 121.7
ANGLE_CA_C_O = 120.5
ANGLE_N_CA_CB = 110.5


def place_atom(a, b, c, bond_length: float, bond_angle_deg: float, torsion_deg: float) -> np.ndarray:
    """NeRF: place d so that |cd| = bond_length, angle bcd and dihedral abcd are as given."""
    a, b, c = (np.asarray(p, dtype=np.float64) for p in (a, b, c))
    theta = math.radians(bond_angle_deg)
    chi = math.radians(torsion_deg)
    bc = (c - b) / np.linalg.norm(c - b)
    n = np.cross(b - a, bc)
    n /= np.linalg.norm(n)
    m = np.stack([bc, np.cross(n, bc), n], axis=1)
    d2 = bond_length * np.array(
        [-math.cos(theta), math.sin(theta) * math.cos(chi), math.sin(theta) * math.sin(chi)]
    )
    return c + m @ d2


def build_polypeptide(
    num_residues: int,
    phi: float = -57.0,
    psi: float = -47.0,
    omega: float = 180.0,
    origin: Sequence[float] = (0.0, 0.0, 0.0),
    atom_offset: int = 0,
    first_res_id: int = 1,
):
    """Poly-alanine with ideal geometry; atoms per residue are N, CA, C, O, CB.

    Returns:
        positions (num_residues * 5, 3), element symbols, labels, residues.
    """
    origin = np.asarray(origin, dtype=np.float64)
    n_pos = [origin]
    ca_pos = [origin + np.array([N_CA, 0.0, 0.0])]
    theta = math.radians(ANGLE_N_CA_C)
    c_pos = [ca_pos[0] + CA_C * np.array([-math.cos(theta), math.sin(theta), 0.0])]

    for i in range(1, num_residues):
        n_pos.append(place_atom(n_pos[i - 1], ca_pos[i - 1], c_pos[i - 1], C_N, ANGLE_CA_C_N, psi))
        ca_pos.append(place_atom(ca_pos[i - 1], c_pos[i - 1], n_pos[i], N_CA, ANGLE_C_N_CA, omega))
        c_pos.append(place_atom(c_pos[i - 1], n_pos[i], ca_pos[i], CA_C, ANGLE_N_CA_C, phi))

    positions, elements, labels, residues = [], [], [], []
    for i in range(num_residues):
        o = place_atom(n_pos[i], ca_pos[i], c_pos[i], C_O, ANGLE_CA_C_O, psi + 180.0)
        cb = place_atom(c_pos[i], n_pos[i], ca_pos[i], CA_CB, ANGLE_N_CA_CB, -122.5)
        beg = atom_offset + len(positions)
        positions.extend([n_pos[i], ca_pos[i], c_pos[i], o, cb])
        elements.extend(["N", "C", "C", "O", "C"])
        labels.extend(["N", "CA", "C", "O", "CB"])
        residues.append(Residue(name="ALA", id=first_res_id + i, beg_atom_idx=beg, end_atom_idx=beg + 5))

    return np.array(positions, dtype=np.float32), elements, labels, residues


def build_molecule(chain_lengths: Sequence[int] = (10,), spacing: float = 60.0, **kwargs) -> MoleculeStructure:
    """Molecule with one poly-alanine per entry of ``chain_lengths``, far apart on x."""
    positions: List[np.ndarray] = []
    elements: List[str] = []
    labels: List[str] = []
    residues: List[Residue] = []
    offset = 0
    for k, length in enumerate(chain_lengths):
        pos, elem, lbl, res = build_polypeptide(
            length, origin=(k * spacing, 0.0, 0.0), atom_offset=offset, **kwargs
        )
        positions.append(pos)
        elements.extend(elem)
        labels.extend(lbl)
        residues.extend(res)
        offset += pos.shape[0]
    return MoleculeStructure.from_arrays(np.concatenate(positions), elements, labels, residues)


def build_dynamic(
    molecule: MoleculeStructure,
    num_frames: int,
    shift: Optional[np.ndarray] = None,
    box: Sequence[float] = (100.0, 100.0, 100.0),
    capacity: Optional[int] = None,
    preload: bool = True,
) -> MoleculeDynamic:
    """Trajectory of rigidly shifted copies of ``molecule`` (frame k shifted by k * shift)."""
    shift = np.zeros(3, dtype=np.float32) if shift is None else np.asarray(shift, dtype=np.float32)
    trajectory = Trajectory(molecule.num_atoms, capacity or num_frames)
    if preload:
        for k in range(num_frames):
            trajectory.append_frame(molecule.atom_positions + k * shift, np.asarray(box))
    return MoleculeDynamic(molecule, trajectory)


@pytest.fixture
def helix_molecule() -> MoleculeStructure:
    """Single 10-residue alpha-helical poly-alanine (topology not yet derived)."""
    return build_molecule((10,))


@pytest.fixture
def two_chain_molecule() -> MoleculeStructure:
    """Two 6-residue poly-alanines 60 A apart."""
    return build_molecule((6, 6))


@pytest.fixture
def polypeptide_factory():
    return build_polypeptide


@pytest.fixture
def molecule_factory():
    return build_molecule


@pytest.fixture
def dynamic_factory():
    return build_dynamic
