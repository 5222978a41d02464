"""Backbone segment (N, CA, C, O) identification per residue."""

import logging
from typing import List, Sequence

from ..constants import is_amino_acid
from ..structure import INVALID_SEGMENT, BackboneSegment, Chain, Residue

logger = logging.getLogger(__name__)


def _match(label: str, name: str) -> bool:
    return label.strip().lower() == name.lower()


def find_backbone_segment(residue: Residue, atom_labels: Sequence[str]) -> BackboneSegment:
    """Locate the backbone atoms of one residue; -1 for atoms not found."""
    ca_idx = n_idx = c_idx = o_idx = -1
    for i in range(residue.beg_atom_idx, residue.end_atom_idx):
        lbl = atom_labels[i]
        if ca_idx == -1 and _match(lbl, "CA"):
            ca_idx = i
        if n_idx == -1 and _match(lbl, "N"):
            n_idx = i
        if c_idx == -1 and _match(lbl, "C"):
            c_idx = i
        if o_idx == -1 and _match(lbl, "O"):
            o_idx = i

    # Terminal oxygens (OT1, OXT, O1, ...): first O* atom from C onwards
    if o_idx == -1 and c_idx != -1:
        for i in range(c_idx, residue.end_atom_idx):
            if atom_labels[i].strip()[:1] in ("O", "o"):
                o_idx = i
                break

    return BackboneSegment(ca_idx=ca_idx, n_idx=n_idx, c_idx=c_idx, o_idx=o_idx)


def compute_backbone_segments(
    residues: Sequence[Residue],
    atom_labels: Sequence[str],
) -> List[BackboneSegment]:
    """One backbone segment per residue, index-aligned with ``residues``.

    Residues that are not amino acids, or lack any backbone atom, get an
    all -1 segment. If no residue has a valid segment the molecule has no
    backbone and an empty list is returned.
    """
    segments: List[BackboneSegment] = []
    invalid_segments = 0
    for res in residues:
        if not is_amino_acid(res.name):
            segments.append(INVALID_SEGMENT)
            invalid_segments += 1
            continue

        seg = find_backbone_segment(res, atom_labels)
        if not seg.is_valid:
            logger.warning(f"Could not identify all backbone indices for residue {res.name}{res.id}")
            invalid_segments += 1
            seg = INVALID_SEGMENT
        segments.append(seg)

    if invalid_segments == len(segments):
        return []
    return segments


def get_backbone(segments: Sequence[BackboneSegment], chain: Chain) -> Sequence[BackboneSegment]:
    """Backbone segments of the residues in ``chain``."""
    return segments[chain.beg_res_idx:chain.end_res_idx]
