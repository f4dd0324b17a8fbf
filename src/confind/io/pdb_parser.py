"""
PDB file parser using BioPython.
"""

from pathlib import Path
from typing import Union
import numpy as np

from Bio.PDB import PDBParser
from Bio.PDB.Structure import Structure

from confind.core.structures import Atom, Residue, Molecule
from confind.core.constants import (
    FLAG_BACKBONE,
    FLAG_CALPHA,
    FLAG_SIDECHAIN,
    get_residue_type,
    is_backbone_name,
    is_hydrogen_name,
    MODIFIED_RESIDUES,
)


def read_pdb_file(
    filename: Union[str, Path],
    model_id: int = 0,
    include_hydrogens: bool = False,
) -> Molecule:
    """
    Read a PDB file and convert to internal Molecule representation.

    Args:
        filename: Path to PDB file
        model_id: Which model to read (0 = first model)
        include_hydrogens: Keep hydrogen atoms (they never take part in
            contact calculations)

    Returns:
        Molecule object containing the structure
    """
    parser = PDBParser(QUIET=True)
    structure = parser.get_structure(Path(filename).stem, str(filename))

    return convert_structure(structure, model_id, include_hydrogens)


def convert_structure(
    structure: Structure,
    model_id: int = 0,
    include_hydrogens: bool = False,
) -> Molecule:
    """
    Convert BioPython Structure to internal Molecule class.

    Waters and ligands are dropped; known modified amino acids are kept.
    Residues keep their place even when atoms are missing.

    Args:
        structure: BioPython Structure object
        model_id: Which model to use
        include_hydrogens: Keep hydrogen atoms

    Returns:
        Molecule object
    """
    mol = Molecule(name=structure.id)

    models = list(structure.get_models())
    if not models:
        return mol
    if model_id >= len(models):
        model_id = 0
    model = models[model_id]

    atom_num = 0

    for chain in model:
        for bio_residue in chain:
            hetfield, res_num, insertion_code = bio_residue.get_id()
            res_name = bio_residue.get_resname().strip()
            if hetfield.startswith("H_") or hetfield == "W":
                if res_name not in MODIFIED_RESIDUES:
                    continue

            residue = Residue(
                num=res_num,
                res_type=get_residue_type(res_name),
                name=res_name,
                chain=chain.get_id(),
                insertion_code=insertion_code.strip(),
            )

            for bio_atom in bio_residue:
                # Alternate conformations: take 'A' or blank
                altloc = bio_atom.get_altloc()
                if altloc and altloc not in (" ", "A"):
                    continue

                atom_name = bio_atom.get_name()
                element = (bio_atom.element or "").strip()
                if not include_hydrogens and is_hydrogen_name(atom_name, element):
                    continue

                if is_backbone_name(atom_name):
                    flag = FLAG_BACKBONE
                    if atom_name.strip() == "CA":
                        flag |= FLAG_CALPHA
                else:
                    flag = FLAG_SIDECHAIN

                atom_num += 1
                residue.add_atom(
                    Atom(
                        coords=np.array(bio_atom.get_coord(), dtype=np.float64),
                        name=atom_name.ljust(3),
                        num=atom_num,
                        flag=flag,
                        element=element,
                    )
                )

            if residue.atoms:
                mol.add_residue(residue)

    return mol
