"""Rotamer library and placement."""

from confind.rotamers.library import RotamerLibrary, RotamerSet, phi_psi_bin

__all__ = ["RotamerLibrary", "RotamerSet", "phi_psi_bin"]
