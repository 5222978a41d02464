"""Constants for mdmol: elements, amino acids and runtime defaults."""

from .elements import *  # noqa: F401,F403
from .amino_acids import *  # noqa: F401,F403
from .runtime import *  # noqa: F401,F403
