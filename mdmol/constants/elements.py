"""
Element Constants.

Atomic radii and CPK colors keyed by atomic number, plus the element symbol
lookup used when atom arrays are supplied as strings.
"""

from rdkit import Chem

# =============================================================================
# Element Symbol Lookup
# =============================================================================

_PERIODIC_TABLE = Chem.GetPeriodicTable()

UNKNOWN_ELEMENT = 0


def element_from_symbol(symbol: str) -> int:
    """Element symbol ('C', 'Cl', 'FE', ...) -> atomic number, 0 if unknown."""
    sym = symbol.strip()
    if not sym:
        return UNKNOWN_ELEMENT
    sym = sym[0].upper() + sym[1:].lower()
    try:
        return int(_PERIODIC_TABLE.GetAtomicNumber(sym))
    except RuntimeError:
        return UNKNOWN_ELEMENT


def element_symbol(atomic_number: int) -> str:
    if atomic_number <= 0:
        return "Xx"
    return _PERIODIC_TABLE.GetElementSymbol(int(atomic_number))


# =============================================================================
# Covalent Radii (Angstrom)
# =============================================================================

COVALENT_RADIUS = {
    1: 0.31,    # H
    3: 1.28,    # Li
    4: 0.96,    # Be
    5: 0.84,    # B
    6: 0.76,    # C
    7: 0.71,    # N
    8: 0.66,    # O
    9: 0.57,    # F
    11: 1.66,   # Na
    12: 1.41,   # Mg
    13: 1.21,   # Al
    14: 1.11,   # Si
    15: 1.07,   # P
    16: 1.05,   # S
    17: 1.02,   # Cl
    19: 2.03,   # K
    20: 1.76,   # Ca
    25: 1.39,   # Mn
    26: 1.32,   # Fe
    27: 1.26,   # Co
    28: 1.24,   # Ni
    29: 1.32,   # Cu
    30: 1.22,   # Zn
    33: 1.19,   # As
    34: 1.20,   # Se
    35: 1.20,   # Br
    50: 1.39,   # Sn
    51: 1.39,   # Sb
    52: 1.38,   # Te
    53: 1.39,   # I
}

DEFAULT_COVALENT_RADIUS = 0.76

# =============================================================================
# Van der Waals Radii (Angstrom) - Bondi radii
# =============================================================================

VDW_RADIUS = {
    1: 1.20,    # H
    5: 1.92,    # B
    6: 1.70,    # C
    7: 1.55,    # N
    8: 1.52,    # O
    9: 1.47,    # F
    11: 2.27,   # Na
    12: 1.73,   # Mg
    14: 2.10,   # Si
    15: 1.80,   # P
    16: 1.80,   # S
    17: 1.75,   # Cl
    19: 2.75,   # K
    20: 2.31,   # Ca
    26: 2.04,   # Fe
    29: 1.40,   # Cu
    30: 1.39,   # Zn
    33: 1.85,   # As
    34: 1.90,   # Se
    35: 1.85,   # Br
    50: 2.17,   # Sn
    51: 2.06,   # Sb
    52: 2.06,   # Te
    53: 1.98,   # I
}

DEFAULT_VDW_RADIUS = 1.70

# =============================================================================
# CPK Colors (Jmol palette, RGB 0-255)
# =============================================================================

CPK_COLORS = {
    1: (255, 255, 255),   # H
    6: (144, 144, 144),   # C
    7: (48, 80, 248),     # N
    8: (255, 13, 13),     # O
    9: (144, 224, 80),    # F
    11: (171, 92, 242),   # Na
    12: (138, 255, 0),    # Mg
    15: (255, 128, 0),    # P
    16: (255, 255, 48),   # S
    17: (31, 240, 31),    # Cl
    19: (143, 64, 212),   # K
    20: (61, 255, 0),     # Ca
    26: (224, 102, 51),   # Fe
    29: (200, 128, 51),   # Cu
    30: (125, 128, 176),  # Zn
    34: (255, 161, 0),    # Se
    35: (166, 41, 41),    # Br
    53: (148, 0, 148),    # I
}

DEFAULT_CPK_COLOR = (255, 20, 147)
