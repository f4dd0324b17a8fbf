"""Core data structures and utilities."""

from confind.core.structures import Atom, Residue, Molecule, ResidueHandle
from confind.core.constants import (
    AA_NAMES,
    ROTAMER_AA_NAMES,
    AA_PROPENSITY,
    FLAG_BACKBONE,
    FLAG_CALPHA,
    FLAG_SIDECHAIN,
    is_sidechain_atom,
)
from confind.core.geometry import superimpose, calc_torsion, min_distance

__all__ = [
    "Atom",
    "Residue",
    "Molecule",
    "ResidueHandle",
    "AA_NAMES",
    "ROTAMER_AA_NAMES",
    "AA_PROPENSITY",
    "FLAG_BACKBONE",
    "FLAG_CALPHA",
    "FLAG_SIDECHAIN",
    "is_sidechain_atom",
    "superimpose",
    "calc_torsion",
    "min_distance",
]
