"""
Ordered collections of pairwise residue contacts.

Records are kept as parallel lists (source, destination, degree, info,
directional flag) with a lookup table for O(1) pair membership. Residues
are identified by their structural index (``Residue.locnum``).
"""

from typing import Dict, Iterator, List, NamedTuple, Tuple

from confind.core.structures import Residue


class Contact(NamedTuple):
    """A single contact record."""

    src: Residue
    dst: Residue
    degree: float
    info: str
    directional: bool


class ContactList:
    """
    Pairwise contacts with O(1) lookup and degree-based sorting.

    Non-directional contacts are registered in both lookup directions and
    stored canonically (lower structural index first) in the ordered set.
    """

    def __init__(self):
        self._src: List[Residue] = []
        self._dst: List[Residue] = []
        self._degrees: List[float] = []
        self._infos: List[str] = []
        self._directional: List[bool] = []
        self._in_contact: Dict[int, Dict[int, int]] = {}
        self._ordered: Dict[Tuple[int, int], Tuple[Residue, Residue]] = {}

    def add_contact(
        self,
        src: Residue,
        dst: Residue,
        degree: float,
        info: str = "",
        directional: bool = False,
    ):
        """
        Append a contact record.

        Args:
            src: Source residue
            dst: Destination residue
            degree: Contact degree (or interference / distance value)
            info: Free-form annotation
            directional: If False, the pair is registered both ways
        """
        self._src.append(src)
        self._dst.append(dst)
        self._degrees.append(float(degree))
        self._infos.append(info)
        self._directional.append(directional)
        self._register(len(self._src) - 1)

    def _register(self, i: int):
        src, dst = self._src[i], self._dst[i]
        a, b = src.locnum, dst.locnum
        self._in_contact.setdefault(a, {})[b] = i
        if self._directional[i]:
            self._ordered[(a, b)] = (src, dst)
            return
        self._in_contact.setdefault(b, {})[a] = i
        if a > b:
            self._ordered[(b, a)] = (dst, src)
        else:
            self._ordered[(a, b)] = (src, dst)

    def __len__(self) -> int:
        return len(self._src)

    def size(self) -> int:
        return len(self._src)

    def __iter__(self) -> Iterator[Contact]:
        for i in range(len(self._src)):
            yield self.contact(i)

    def contact(self, i: int) -> Contact:
        return Contact(
            self._src[i], self._dst[i], self._degrees[i], self._infos[i], self._directional[i]
        )

    def src_residue(self, i: int) -> Residue:
        return self._src[i]

    def dst_residue(self, i: int) -> Residue:
        return self._dst[i]

    def src_residues(self) -> List[Residue]:
        return list(self._src)

    def dst_residues(self) -> List[Residue]:
        return list(self._dst)

    def degree(self, i: int) -> float:
        return self._degrees[i]

    def info(self, i: int) -> str:
        return self._infos[i]

    def is_directional(self, i: int) -> bool:
        return self._directional[i]

    def are_in_contact(self, a: Residue, b: Residue) -> bool:
        """True if a contact from ``a`` to ``b`` was recorded (either way if non-directional)."""
        return b.locnum in self._in_contact.get(a.locnum, {})

    def degree_between(self, a: Residue, b: Residue) -> float:
        """Degree of the recorded contact between two residues, 0.0 if none."""
        i = self._in_contact.get(a.locnum, {}).get(b.locnum)
        if i is None:
            return 0.0
        return self._degrees[i]

    def sort_by_degree(self):
        """Sort all records by degree, highest first; ties keep insertion order."""
        order = sorted(range(len(self._src)), key=lambda i: -self._degrees[i])
        self._src = [self._src[i] for i in order]
        self._dst = [self._dst[i] for i in order]
        self._degrees = [self._degrees[i] for i in order]
        self._infos = [self._infos[i] for i in order]
        self._directional = [self._directional[i] for i in order]

        self._in_contact.clear()
        self._ordered.clear()
        for i in range(len(self._src)):
            self._register(i)

    def get_ordered_contacts(self) -> List[Tuple[Residue, Residue]]:
        """
        Contact pairs in ascending structural-index order.

        Non-directional pairs are canonicalized so the residue with the lower
        index comes first; ties on the first index are broken by the second.
        """
        return [self._ordered[key] for key in sorted(self._ordered)]

    def copy(self) -> "ContactList":
        """Create a copy sharing the residue references."""
        new_list = ContactList()
        for record in self:
            new_list.add_contact(*record)
        return new_list
