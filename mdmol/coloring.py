"""
Per-atom colors and radii for visualization.

Colors are packed RGBA uint32 values with red in the low byte, so the array
reinterpreted as uint8 reads R, G, B, A per atom on little-endian hosts.
"""

import colorsys
import zlib
from enum import Enum
from typing import Tuple

import numpy as np

from .constants import (
    CPK_COLORS,
    DEFAULT_CPK_COLOR,
    DEFAULT_STATIC_COLOR,
    DEFAULT_VDW_RADIUS,
    RESIDUE_COLOR_LIGHTNESS,
    RESIDUE_COLOR_MOD,
    RESIDUE_COLOR_SATURATION,
    VDW_RADIUS,
)
from .errors import InputError
from .structure import MoleculeStructure


class ColorMapping(str, Enum):
    STATIC_COLOR = "static_color"
    CPK = "cpk"
    RES_ID = "res_id"
    RES_INDEX = "res_index"
    CHAIN_ID = "chain_id"
    CHAIN_INDEX = "chain_index"


def pack_rgba(r: int, g: int, b: int, a: int = 255) -> int:
    return (int(r) & 0xFF) | (int(g) & 0xFF) << 8 | (int(b) & 0xFF) << 16 | (int(a) & 0xFF) << 24


def unpack_rgba(color: int) -> Tuple[int, int, int, int]:
    color = int(color)
    return color & 0xFF, (color >> 8) & 0xFF, (color >> 16) & 0xFF, (color >> 24) & 0xFF


def color_from_index(index: int) -> int:
    """Distinct hue per index, repeating every RESIDUE_COLOR_MOD indices."""
    hue = (int(index) % RESIDUE_COLOR_MOD) / RESIDUE_COLOR_MOD
    r, g, b = colorsys.hls_to_rgb(hue, RESIDUE_COLOR_LIGHTNESS, RESIDUE_COLOR_SATURATION)
    return pack_rgba(round(r * 255), round(g * 255), round(b * 255))


def color_from_string(text: str) -> int:
    """Stable color for a name, equal names map to equal colors."""
    return color_from_index(zlib.crc32(text.encode("utf-8")))


def normalize_color_mapping(mapping) -> ColorMapping:
    try:
        return ColorMapping(str(getattr(mapping, "value", mapping)).lower())
    except ValueError:
        raise InputError(
            f"Unsupported color mapping: {mapping!r}. Allowed: {[m.value for m in ColorMapping]}"
        ) from None


def compute_atom_colors(
    molecule: MoleculeStructure,
    mapping=ColorMapping.CPK,
    static_color: int = DEFAULT_STATIC_COLOR,
) -> np.ndarray:
    """
    Packed RGBA color per atom.

    Atoms outside any residue (or chain, for the chain mappings) get
    DEFAULT_STATIC_COLOR.

    Returns:
        (N,) uint32 colors.
    """
    mapping = normalize_color_mapping(mapping)
    colors = np.full(molecule.num_atoms, DEFAULT_STATIC_COLOR, dtype=np.uint32)

    if mapping == ColorMapping.STATIC_COLOR:
        colors[:] = static_color
    elif mapping == ColorMapping.CPK:
        for i, anum in enumerate(molecule.atom_elements):
            colors[i] = pack_rgba(*CPK_COLORS.get(int(anum), DEFAULT_CPK_COLOR))
    elif mapping in (ColorMapping.RES_ID, ColorMapping.RES_INDEX):
        for i, res in enumerate(molecule.residues):
            if mapping == ColorMapping.RES_ID:
                color = color_from_string(res.name)
            else:
                color = color_from_index(i)
            colors[res.beg_atom_idx:res.end_atom_idx] = color
    else:
        for i, chain in enumerate(molecule.chains):
            if mapping == ColorMapping.CHAIN_ID:
                color = color_from_string(chain.label)
            else:
                color = color_from_index(i)
            for res in molecule.residues[chain.beg_res_idx:chain.end_res_idx]:
                colors[res.beg_atom_idx:res.end_atom_idx] = color
    return colors


def compute_atom_radii(elements) -> np.ndarray:
    """Van der Waals radius per atom from atomic numbers."""
    elements = np.asarray(elements, dtype=np.uint8)
    return np.array(
        [VDW_RADIUS.get(int(e), DEFAULT_VDW_RADIUS) for e in elements],
        dtype=np.float32,
    )
