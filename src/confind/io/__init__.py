"""PDB I/O module."""

from confind.io.pdb_parser import read_pdb_file, convert_structure
from confind.io.pdb_writer import write_pdb, molecule_to_pdb_string

__all__ = ["read_pdb_file", "convert_structure", "write_pdb", "molecule_to_pdb_string"]
