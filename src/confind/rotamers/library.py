"""
Rotamer library for placing candidate side chains on a backbone.

Each amino acid has a set of rotamers stored in the library's reference
frame (defined by N, CA and C coordinates). Rotamers are placed on a residue
by superimposing the reference frame onto the residue's own N/CA/C.
Probabilities are either backbone-independent (one value per rotamer) or
binned by phi/psi in 10-degree bins.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import numpy as np

from confind.core.geometry import superimpose
from confind.errors import RotamerLibraryError

# phi/psi bins for backbone-dependent probabilities
PHI_PSI_BINS = 36
PHI_PSI_BIN_WIDTH = 360.0 / PHI_PSI_BINS


def phi_psi_bin(angle: float) -> int:
    """Bin index of a dihedral angle in degrees."""
    return int(np.floor((angle + 180.0) / PHI_PSI_BIN_WIDTH)) % PHI_PSI_BINS


@dataclass
class RotamerSet:
    """Rotamers of a single amino acid."""

    aa: str
    atom_names: List[str]
    coords: np.ndarray  # (n_rotamers, n_atoms, 3), library frame
    probabilities: np.ndarray  # (n_rotamers,) or (PHI_PSI_BINS, PHI_PSI_BINS, n_rotamers)

    def __post_init__(self):
        self.aa = self.aa.strip().upper()
        self.atom_names = [str(name) for name in self.atom_names]
        self.coords = np.asarray(self.coords, dtype=np.float64)
        self.probabilities = np.asarray(self.probabilities, dtype=np.float64)

        if self.coords.ndim != 3 or self.coords.shape[2] != 3:
            raise RotamerLibraryError(
                f"{self.aa}: rotamer coordinates must have shape (n_rotamers, n_atoms, 3), "
                f"got {self.coords.shape}"
            )
        if self.coords.shape[1] != len(self.atom_names):
            raise RotamerLibraryError(
                f"{self.aa}: {len(self.atom_names)} atom names for "
                f"{self.coords.shape[1]} atoms per rotamer"
            )
        nrot = self.coords.shape[0]
        if self.probabilities.ndim == 1:
            valid = self.probabilities.shape == (nrot,)
        else:
            valid = self.probabilities.shape == (PHI_PSI_BINS, PHI_PSI_BINS, nrot)
        if not valid:
            raise RotamerLibraryError(
                f"{self.aa}: probability table of shape {self.probabilities.shape} "
                f"does not fit {nrot} rotamers"
            )

    @property
    def num_rotamers(self) -> int:
        return self.coords.shape[0]

    @property
    def backbone_dependent(self) -> bool:
        return self.probabilities.ndim == 3

    def probabilities_at(self, phi: Optional[float] = None, psi: Optional[float] = None) -> np.ndarray:
        """
        Rotamer probabilities for a backbone conformation.

        Backbone-dependent tables fall back to the average over all bins
        when phi or psi is undefined (chain termini).
        """
        if not self.backbone_dependent:
            return self.probabilities
        if phi is None or psi is None:
            return self.probabilities.mean(axis=(0, 1))
        return self.probabilities[phi_psi_bin(phi), phi_psi_bin(psi)]


class RotamerLibrary:
    """
    Candidate side-chain conformations for each amino acid.

    Example usage:
        >>> lib = RotamerLibrary.from_file("rotamers.npz")
        >>> transform = lib.frame_transform(residue.backbone_frame())
        >>> coords = lib.place_rotamers("LEU", transform)
    """

    def __init__(self, rotamer_sets: Dict[str, RotamerSet], backbone: np.ndarray):
        """
        Initialize the rotamer library.

        Args:
            rotamer_sets: Rotamer sets keyed by 3-letter amino-acid name
            backbone: Reference N, CA, C coordinates, shape (3, 3)
        """
        self.backbone = np.asarray(backbone, dtype=np.float64)
        if self.backbone.shape != (3, 3):
            raise RotamerLibraryError(
                f"reference backbone must be N, CA, C coordinates (3x3), got {self.backbone.shape}"
            )
        self._sets = {name.strip().upper(): rs for name, rs in rotamer_sets.items()}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RotamerLibrary":
        """
        Load a rotamer library from a ``.npz`` archive or a text file.

        Raises:
            RotamerLibraryError: if the file is missing, unreadable or malformed
        """
        from confind.data.loader import load_rotamer_library

        return load_rotamer_library(path)

    @property
    def amino_acids(self) -> List[str]:
        return list(self._sets)

    def has_amino_acid(self, aa: str) -> bool:
        return aa.strip().upper() in self._sets

    def get_set(self, aa: str) -> Optional[RotamerSet]:
        return self._sets.get(aa.strip().upper())

    def num_rotamers(self, aa: str) -> int:
        """Number of rotamers of an amino acid (0 if absent from the library)."""
        rotamer_set = self.get_set(aa)
        return 0 if rotamer_set is None else rotamer_set.num_rotamers

    def atom_names(self, aa: str) -> List[str]:
        rotamer_set = self.get_set(aa)
        return [] if rotamer_set is None else list(rotamer_set.atom_names)

    def rotamer_probabilities(
        self, aa: str, phi: Optional[float] = None, psi: Optional[float] = None
    ) -> np.ndarray:
        rotamer_set = self.get_set(aa)
        if rotamer_set is None:
            return np.zeros(0)
        return rotamer_set.probabilities_at(phi, psi)

    def rotamer_probability(
        self, aa: str, index: int, phi: Optional[float] = None, psi: Optional[float] = None
    ) -> float:
        return float(self.rotamer_probabilities(aa, phi, psi)[index])

    def frame_transform(self, frame: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Rotation and translation taking the library frame onto a residue.

        Args:
            frame: Residue N, CA, C coordinates, shape (3, 3)

        Returns:
            Tuple of (rotation_matrix, translation)
        """
        _, _, rotation_matrix, translation = superimpose(np.asarray(frame), self.backbone)
        return rotation_matrix, translation

    def place_rotamers(self, aa: str, transform: Tuple[np.ndarray, np.ndarray]) -> np.ndarray:
        """
        Place every rotamer of an amino acid on a backbone.

        Args:
            aa: 3-letter amino-acid name
            transform: Output of ``frame_transform`` for the target residue

        Returns:
            Coordinates, shape (n_rotamers, n_atoms, 3)
        """
        rotamer_set = self.get_set(aa)
        if rotamer_set is None:
            return np.zeros((0, 0, 3))
        rotation_matrix, translation = transform
        return rotamer_set.coords @ rotation_matrix.T + translation

    def place_rotamer(self, frame: np.ndarray, aa: str, index: int) -> np.ndarray:
        """Place a single rotamer on a backbone frame."""
        return self.place_rotamers(aa, self.frame_transform(frame))[index]
