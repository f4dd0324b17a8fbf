"""
Constants and definitions for contact-degree calculations.

Amino-acid tables, atom flags and the default engine parameters.
"""

import math

# Flags for atom types
FLAG_BACKBONE = 1
FLAG_CALPHA = 2
FLAG_SIDECHAIN = 4

# Angle conversions
RADDEG = 180.0 / math.pi

# Tolerance for floating-point distance comparisons
EPSILON = 1e-6

# Default engine parameters (Angstroms)
DCUT = 25.0           # CA-CA distance beyond which residues are not considered
CLASH_DIST = 3.0      # rotamer-to-backbone clash distance
CONT_DIST = 3.0       # rotamer-to-rotamer contact distance
BB_DIST = 3.5         # backbone-to-backbone interaction distance
FRAME_FIT_SLACK = 1.0  # allowed CA offset when a library frame is fitted onto a residue

# Default collision-probability cutoffs for freedom
LO_COLL_PROB_CUT = 0.5
HI_COLL_PROB_CUT = 0.8
FREEDOM_TYPE = 2

# Reported freedom for residues without a rotamer ensemble
FREEDOM_UNDEFINED = -1.0

# Default bucket count for spatial grids
GRID_N = 20

# Amino acid names
AA_NAMES = [
    "GLY", "ALA", "SER", "CYS", "VAL", "THR", "ILE",
    "PRO", "MET", "ASP", "ASN", "LEU", "LYS", "GLU",
    "GLN", "ARG", "HIS", "PHE", "TYR", "TRP", "UNK"
]

# Residues without independent rotamers
NO_ROTAMER_RESIDUES = ("GLY", "PRO")

# Amino acids whose rotamers are placed at each position (all except GLY and PRO)
ROTAMER_AA_NAMES = (
    "ALA", "ARG", "ASN", "ASP", "CYS", "GLN", "GLU", "HIS", "ILE",
    "LEU", "LYS", "MET", "PHE", "SER", "THR", "TRP", "TYR", "VAL",
)

# Amino-acid propensities (percent)
AA_PROPENSITY = {
    "ALA": 7.73, "CYS": 1.84, "ASP": 5.82, "GLU": 6.61, "PHE": 4.05,
    "GLY": 7.11, "HIS": 2.35, "HSD": 2.35, "ILE": 5.66, "LYS": 6.27,
    "LEU": 8.83, "MET": 2.08, "ASN": 4.50, "PRO": 4.52, "GLN": 3.94,
    "ARG": 5.03, "SER": 6.13, "THR": 5.53, "VAL": 6.91, "TRP": 1.51,
    "TYR": 3.54,
}

# Mapping from 3-letter code to type index
AA_TO_INDEX = {name: i for i, name in enumerate(AA_NAMES)}

# Common modified residues to standard residue mapping
MODIFIED_RESIDUES = {
    "MSE": "MET",  # Selenomethionine
    "TPO": "THR",  # Phosphothreonine
    "SEP": "SER",  # Phosphoserine
    "PTR": "TYR",  # Phosphotyrosine
    "CSO": "CYS",  # S-hydroxycysteine
    "HYP": "PRO",  # Hydroxyproline
    "MLY": "LYS",  # N-dimethyl-lysine
    "M3L": "LYS",  # N-trimethyl-lysine
    "HSD": "HIS",
    "HSE": "HIS",
    "HIE": "HIS",
    "HID": "HIS",
}


def get_residue_type(name: str) -> int:
    """
    Get the residue type index for a given 3-letter residue name.

    Args:
        name: 3-letter residue code (e.g., "ALA", "GLY")

    Returns:
        Residue type index (0-19), or 20 for unknown
    """
    name = name.strip().upper()

    # Check for modified residues
    if name in MODIFIED_RESIDUES:
        name = MODIFIED_RESIDUES[name]

    return AA_TO_INDEX.get(name, 20)


def is_backbone_name(name: str) -> bool:
    """True for N, CA, C and O."""
    return name.strip().upper() in ("N", "CA", "C", "O")


def is_hydrogen_name(name: str, element: str = "") -> bool:
    """Guess whether an atom is a hydrogen from its element or name."""
    if element:
        return element.strip().upper() in ("H", "D")
    stripped = name.strip().upper()
    return stripped.startswith("H") or (stripped[:1].isdigit() and "H" in stripped[1:2])


def is_sidechain_atom(
    name: str,
    residue_name: str = "",
    count_cb: bool = False,
    element: str = "",
) -> bool:
    """
    Decide whether an atom counts as side chain for contact purposes.

    Every heavy atom beyond N, CA, C and O counts, except CB when
    ``count_cb`` is False. The CB of alanine always counts since it is the
    only side-chain atom alanine has.

    Args:
        name: Atom name (e.g., "CB ", "CG1")
        residue_name: 3-letter name of the residue (or rotamer) the atom is in
        count_cb: Whether CB counts as a side-chain atom
        element: Optional element symbol, used to recognize hydrogens

    Returns:
        True if the atom is a side-chain atom
    """
    if is_hydrogen_name(name, element):
        return False
    stripped = name.strip().upper()
    if stripped in ("N", "CA", "C", "O", "OXT"):
        return False
    if stripped == "CB" and not count_cb:
        return residue_name.strip().upper() == "ALA"
    return True
