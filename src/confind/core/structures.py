"""
Core data structures for molecular representation.

A Molecule owns its residues; each residue knows its position in the
molecule (``locnum``), which doubles as the structural index used to order
contacts and to key per-residue caches.
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Optional
import numpy as np

from confind.core.constants import (
    FLAG_BACKBONE,
    FLAG_CALPHA,
    is_hydrogen_name,
)
from confind.core.geometry import calc_torsion
from confind.errors import StaleHandleError


@dataclass(eq=False)
class Atom:
    """Represents a single atom in a protein structure."""

    coords: np.ndarray  # [x, y, z] coordinates
    name: str  # Atom name (e.g., "CA ", "N  ", "CB ")
    num: int = 0  # Atom serial number
    locnum: int = 0  # Local atom number within residue
    flag: int = 0  # Atom type flags (FLAG_BACKBONE, FLAG_CALPHA, etc.)
    element: str = ""  # Element symbol, if known

    def __post_init__(self):
        """Ensure coords is a numpy array."""
        if not isinstance(self.coords, np.ndarray):
            self.coords = np.array(self.coords, dtype=np.float64)

    @property
    def x(self) -> float:
        return self.coords[0]

    @property
    def y(self) -> float:
        return self.coords[1]

    @property
    def z(self) -> float:
        return self.coords[2]

    @property
    def is_backbone(self) -> bool:
        return bool(self.flag & FLAG_BACKBONE)

    @property
    def is_calpha(self) -> bool:
        return bool(self.flag & FLAG_CALPHA)

    @property
    def is_hydrogen(self) -> bool:
        return is_hydrogen_name(self.name, self.element)


@dataclass(eq=False)
class Residue:
    """Represents a single amino acid residue."""

    atoms: list = field(default_factory=list)  # List of Atom objects
    num: int = 0  # PDB residue number
    locnum: int = 0  # Sequential index in the molecule (0-based)
    res_type: int = 20  # Residue type index (0-19 for standard, 20 for unknown)
    name: str = "UNK"  # 3-letter residue name
    chain: str = "A"  # Chain identifier
    insertion_code: str = ""  # PDB insertion code

    @property
    def label(self) -> str:
        """Chain and residue number, e.g. ``A,12``."""
        return f"{self.chain},{self.num}{self.insertion_code}"

    def __repr__(self) -> str:
        return f"Residue({self.label} {self.name})"

    def get_atom(self, name: str) -> Optional[Atom]:
        """
        Get an atom by name.

        Args:
            name: Atom name (e.g., "CA ", "N  ")

        Returns:
            Atom object or None if not found
        """
        stripped = name.strip()
        for atom in self.atoms:
            if atom.name.strip() == stripped:
                return atom
        return None

    @property
    def ca(self) -> Optional[Atom]:
        """Get the C-alpha atom."""
        return self.get_atom("CA")

    @property
    def n(self) -> Optional[Atom]:
        """Get the nitrogen atom."""
        return self.get_atom("N")

    @property
    def c(self) -> Optional[Atom]:
        """Get the carbonyl carbon atom."""
        return self.get_atom("C")

    @property
    def o(self) -> Optional[Atom]:
        """Get the carbonyl oxygen atom."""
        return self.get_atom("O")

    def get_heavy_atoms(self) -> list:
        """Get all non-hydrogen atoms."""
        return [a for a in self.atoms if not a.is_hydrogen]

    def backbone_frame(self) -> Optional[np.ndarray]:
        """
        N, CA and C coordinates as a (3, 3) array.

        Returns:
            Frame coordinates, or None if any of the three atoms is missing
        """
        n, ca, c = self.n, self.ca, self.c
        if n is None or ca is None or c is None:
            return None
        return np.array([n.coords, ca.coords, c.coords])

    def add_atom(self, atom: Atom):
        """Add an atom to this residue."""
        atom.locnum = len(self.atoms)
        self.atoms.append(atom)


class ResidueHandle(NamedTuple):
    """
    Non-owning reference to a residue of a Molecule.

    The handle is only valid while the molecule's generation is unchanged;
    it must not outlive the molecule it was taken from.
    """

    index: int
    generation: int


@dataclass(eq=False)
class Molecule:
    """
    Represents a protein structure of one or more chains.

    ``generation`` is bumped on every change to the residue list, which
    invalidates previously issued residue handles.
    """

    residues: list = field(default_factory=list)  # List of Residue objects
    name: str = ""  # Structure name
    generation: int = 0

    @property
    def nres(self) -> int:
        """Number of residues."""
        return len(self.residues)

    def get_chain_ids(self) -> list:
        """Chain identifiers in order of first appearance."""
        seen = []
        for res in self.residues:
            if res.chain not in seen:
                seen.append(res.chain)
        return seen

    def add_residue(self, residue: Residue):
        """Add a residue to this molecule."""
        residue.locnum = len(self.residues)
        self.residues.append(residue)
        self.generation += 1

    def remove_residue(self, residue: Residue):
        """Remove a residue and renumber the ones after it."""
        self.residues.remove(residue)
        for i, res in enumerate(self.residues):
            res.locnum = i
        self.generation += 1

    def handle(self, residue: Residue) -> ResidueHandle:
        """
        Get a generation-checked handle for one of this molecule's residues.

        Raises:
            StaleHandleError: if the residue does not belong to this molecule
        """
        idx = residue.locnum
        if idx < 0 or idx >= len(self.residues) or self.residues[idx] is not residue:
            raise StaleHandleError(f"{residue} does not belong to molecule '{self.name}'")
        return ResidueHandle(idx, self.generation)

    def resolve(self, handle: ResidueHandle) -> Residue:
        """
        Turn a handle back into its residue.

        Raises:
            StaleHandleError: if the molecule changed since the handle was issued
        """
        if handle.generation != self.generation:
            raise StaleHandleError(
                f"handle {handle} was issued for generation {handle.generation}, "
                f"molecule '{self.name}' is at generation {self.generation}"
            )
        return self.residues[handle.index]

    def previous_residue(self, residue: Residue) -> Optional[Residue]:
        """The residue preceding this one in the same chain, if any."""
        idx = residue.locnum
        if idx > 0 and self.residues[idx - 1].chain == residue.chain:
            return self.residues[idx - 1]
        return None

    def next_residue(self, residue: Residue) -> Optional[Residue]:
        """The residue following this one in the same chain, if any."""
        idx = residue.locnum
        if idx + 1 < len(self.residues) and self.residues[idx + 1].chain == residue.chain:
            return self.residues[idx + 1]
        return None

    def get_phi(self, residue: Residue) -> Optional[float]:
        """Backbone phi angle in degrees, or None if undefined."""
        prev = self.previous_residue(residue)
        if prev is None or prev.c is None:
            return None
        n, ca, c = residue.n, residue.ca, residue.c
        if n is None or ca is None or c is None:
            return None
        angle = calc_torsion(prev.c.coords, n.coords, ca.coords, c.coords)
        return None if angle == 360.0 else angle

    def get_psi(self, residue: Residue) -> Optional[float]:
        """Backbone psi angle in degrees, or None if undefined."""
        nxt = self.next_residue(residue)
        if nxt is None or nxt.n is None:
            return None
        n, ca, c = residue.n, residue.ca, residue.c
        if n is None or ca is None or c is None:
            return None
        angle = calc_torsion(n.coords, ca.coords, c.coords, nxt.n.coords)
        return None if angle == 360.0 else angle
