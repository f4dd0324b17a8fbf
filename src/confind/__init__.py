"""
confind - residue contact degree, freedom and interference

Rotamer-based steric contact analysis of protein structures: contact degree
between residue pairs, per-residue conformational freedom and crowdedness,
side-chain-to-backbone interference and backbone-to-backbone proximity.
"""

__version__ = "1.0.0"

from confind.confind import ConFind, ConFindConfig, CacheState, RotamerID
from confind.contacts.contact_list import Contact, ContactList
from confind.core.structures import Atom, Residue, Molecule
from confind.rotamers.library import RotamerLibrary
from confind.search.proximity import ProximitySearch, DecoratedProximitySearch

__all__ = [
    "ConFind",
    "ConFindConfig",
    "CacheState",
    "RotamerID",
    "Contact",
    "ContactList",
    "Atom",
    "Residue",
    "Molecule",
    "RotamerLibrary",
    "ProximitySearch",
    "DecoratedProximitySearch",
    "__version__",
]
