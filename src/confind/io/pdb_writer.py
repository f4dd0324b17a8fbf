"""
PDB file writer.
"""

from pathlib import Path
from typing import List, Union

from confind.core.structures import Molecule


def write_pdb(
    filename: Union[str, Path],
    molecule: Molecule,
    include_hydrogens: bool = False,
) -> None:
    """
    Write a Molecule to PDB format.

    Args:
        filename: Output file path
        molecule: Molecule to write
        include_hydrogens: If True, include hydrogen atoms (if present)
    """
    with open(filename, "w") as f:
        f.write(molecule_to_pdb_string(molecule, include_hydrogens) + "\n")


def _atom_lines(molecule: Molecule, include_hydrogens: bool) -> List[str]:
    lines = []
    atom_num = 0
    prev_chain = None

    for residue in molecule.residues:
        if prev_chain is not None and residue.chain != prev_chain:
            lines.append("TER")
        prev_chain = residue.chain

        for atom in residue.atoms:
            if not include_hydrogens and atom.is_hydrogen:
                continue

            atom_num += 1
            lines.append(
                _format_atom_line(
                    atom_num=atom_num,
                    atom_name=atom.name,
                    res_name=residue.name,
                    chain=residue.chain,
                    res_num=residue.num,
                    x=atom.x,
                    y=atom.y,
                    z=atom.z,
                    element=atom.element,
                    insertion_code=residue.insertion_code,
                )
            )
    return lines


def _format_atom_line(
    atom_num: int,
    atom_name: str,
    res_name: str,
    chain: str,
    res_num: int,
    x: float,
    y: float,
    z: float,
    occupancy: float = 1.0,
    temp_factor: float = 0.0,
    element: str = "",
    insertion_code: str = "",
) -> str:
    """
    Format a single ATOM line in strict PDB format.

    COLUMNS        DATA TYPE       CONTENTS
    --------------------------------------------------------------------------------
     1 -  6        Record name     "ATOM  "
     7 - 11        Integer         Atom serial number
    13 - 16        Atom            Atom name
    18 - 20        Residue name    Residue name
    22             Character       Chain identifier
    23 - 26        Integer         Residue sequence number
    27             AChar           Code for insertion of residues
    31 - 54        Real(8.3) x 3   X, Y, Z coordinates
    55 - 60        Real(6.2)       Occupancy
    61 - 66        Real(6.2)       Temperature factor
    77 - 78        LString(2)      Element symbol
    """
    name = atom_name.strip()
    if len(name) < 4:
        atom_name_fmt = f" {name:<3}"
    else:
        atom_name_fmt = f"{name:<4}"

    if not element:
        element = name[0] if name else "X"

    # fmt: off
    line = (
        f"ATOM  "
        f"{atom_num:>5d} "
        f"{atom_name_fmt}"
        f" "
        f"{res_name.strip():<3} "
        f"{chain:1}"
        f"{res_num:>4d}"
        f"{insertion_code or ' ':1}"
        f"   "
        f"{x:>8.3f}"
        f"{y:>8.3f}"
        f"{z:>8.3f}"
        f"{occupancy:>6.2f}"
        f"{temp_factor:>6.2f}"
        f"          "
        f"{element:>2}"
    )
    # fmt: on

    return line


def molecule_to_pdb_string(molecule: Molecule, include_hydrogens: bool = False) -> str:
    """
    Convert a Molecule to a PDB format string.

    Args:
        molecule: Molecule to convert
        include_hydrogens: If True, include hydrogen atoms

    Returns:
        PDB format string
    """
    lines = _atom_lines(molecule, include_hydrogens)
    lines.append("END")
    return "\n".join(lines)
