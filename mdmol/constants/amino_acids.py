"""
Amino Acid Constants.

Residue names recognised as amino acids when deriving backbone segments.
"""

# =============================================================================
# Amino Acid Mappings
# =============================================================================

# Standard 20 amino acids: 3-letter to 1-letter
AMINO_ACID_3TO1 = {
    'ALA': 'A', 'ARG': 'R', 'ASN': 'N', 'ASP': 'D', 'CYS': 'C',
    'GLN': 'Q', 'GLU': 'E', 'GLY': 'G', 'HIS': 'H', 'ILE': 'I',
    'LEU': 'L', 'LYS': 'K', 'MET': 'M', 'PHE': 'F', 'PRO': 'P',
    'SER': 'S', 'THR': 'T', 'TRP': 'W', 'TYR': 'Y', 'VAL': 'V',
}

# Force-field and PTM aliases -> standard residue
RESIDUE_NAME_MAPPING = {
    # Histidine protonation states
    'HID': 'HIS', 'HIE': 'HIS', 'HIP': 'HIS',
    'HSD': 'HIS', 'HSE': 'HIS', 'HSP': 'HIS', 'HIN': 'HIS',
    # Cysteine protonation/bonding states
    'CYX': 'CYS', 'CYM': 'CYS', 'CYN': 'CYS',
    # Acid/base protonation states
    'ASH': 'ASP', 'GLH': 'GLU', 'LYN': 'LYS', 'ARN': 'ARG', 'TYM': 'TYR',
    # Modified amino acids
    'MSE': 'MET',  # Selenomethionine
    'SEP': 'SER',  # Phosphoserine
    'TPO': 'THR',  # Phosphothreonine
    'PTR': 'TYR',  # Phosphotyrosine
    'HYP': 'PRO',  # Hydroxyproline
    'MLY': 'LYS', 'M3L': 'LYS', 'ALY': 'LYS',
    'CSO': 'CYS', 'CSS': 'CYS', 'CME': 'CYS', 'OCS': 'CYS',
    'MEN': 'ASN',
    'FME': 'MET',
}

AMINO_ACID_NAMES = frozenset(AMINO_ACID_3TO1) | frozenset(RESIDUE_NAME_MAPPING)


def is_amino_acid(residue_name: str) -> bool:
    """Check if a residue name denotes an amino acid (standard or aliased)."""
    return residue_name.strip().upper() in AMINO_ACID_NAMES
