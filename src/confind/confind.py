"""
Main ConFind class: rotamer-based contact degree, freedom, interference
and backbone interactions between the residues of a structure.

Every position is decorated with the rotamers of all considered amino acids.
Rotamers that clash with some other residue's backbone are pruned; the
survivors of neighboring positions are then collided with each other, and
the probability mass of the rotamer pairs in contact gives the contact
degree of the two positions.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Sequence, Set, Tuple, Union
import numpy as np

from confind.contacts.contact_list import ContactList
from confind.core.constants import (
    AA_PROPENSITY,
    BB_DIST,
    CLASH_DIST,
    CONT_DIST,
    DCUT,
    EPSILON,
    FREEDOM_TYPE,
    FREEDOM_UNDEFINED,
    FRAME_FIT_SLACK,
    HI_COLL_PROB_CUT,
    LO_COLL_PROB_CUT,
    NO_ROTAMER_RESIDUES,
    ROTAMER_AA_NAMES,
    AA_NAMES,
    get_residue_type,
    is_backbone_name,
    is_sidechain_atom,
)
from confind.core.geometry import min_distance
from confind.core.structures import Atom, Molecule, Residue
from confind.errors import LogFileError, NotReadyError, StaleHandleError
from confind.rotamers.library import RotamerLibrary
from confind.search.proximity import DecoratedProximitySearch, ProximitySearch

logger = logging.getLogger("confind")

Target = Union[Residue, Sequence[Residue], Molecule]


class CacheState(Enum):
    """How much has been computed for a residue; only ever moves forward."""

    UNCACHED = 0
    ROTAMERS = 1  # rotamers placed and pruned against backbones
    COLLIDED = 2  # collided with every neighbor, degrees and freedom available


class CollisionMode(Enum):
    """Whether a pair collision feeds the collision probability tables."""

    DEGREE_ONLY = "degree_only"
    UPDATE_COLLISIONS = "update_collisions"


class RotamerID(NamedTuple):
    """A library rotamer placed at some position."""

    aa: str
    index: int
    weight: float  # amino-acid propensity (fraction) x rotamer probability


@dataclass
class ConFindConfig:
    """Configuration for contact-degree calculations."""

    # Neighbor pruning
    dcut: float = DCUT

    # Inter-atomic distances
    clash_dist: float = CLASH_DIST
    cont_dist: float = CONT_DIST
    bb_dist: float = BB_DIST
    count_cb: bool = False

    # Amino acids whose rotamers are placed, and their propensities (percent)
    aa_names: Tuple[str, ...] = ROTAMER_AA_NAMES
    aa_propensity: Dict[str, float] = field(default_factory=lambda: dict(AA_PROPENSITY))

    # Freedom
    lo_coll_prob_cut: float = LO_COLL_PROB_CUT
    hi_coll_prob_cut: float = HI_COLL_PROB_CUT
    freedom_type: int = FREEDOM_TYPE

    # Behavior
    verbose: bool = False


@dataclass
class _Ensemble:
    """Rotamers that survived backbone pruning at one position."""

    rotamers: List[RotamerID] = field(default_factory=list)
    weights: np.ndarray = field(default_factory=lambda: np.zeros(0))  # normalized
    coords: List[np.ndarray] = field(default_factory=list)  # counted side-chain atoms
    atoms: Optional[DecoratedProximitySearch] = None  # payload: position in ``rotamers``
    total_weight: float = 0.0  # weight of all library rotamers, pruned included
    num_library: int = 0


class ConFind:
    """
    Contact degree engine.

    The engine borrows the molecule and the rotamer library, which must
    outlive it, and owns every cache it derives from them. Caching is lazy:
    a query on a residue computes exactly what that residue needs.

    Example usage:
        >>> lib = RotamerLibrary.from_file("rotamers.npz")
        >>> cf = ConFind(lib, molecule)
        >>> contacts = cf.get_contacts(molecule, cdcut=0.01)
        >>> cf.get_freedom(molecule.residues[10])
    """

    def __init__(
        self,
        rotamer_library: RotamerLibrary,
        molecule: Molecule,
        config: Optional[ConFindConfig] = None,
    ):
        """
        Initialize the engine and index the structure's backbone and CA atoms.

        Args:
            rotamer_library: Library supplying candidate side chains
            molecule: Structure to analyze
            config: Engine parameters (defaults if omitted)
        """
        self.config = replace(config) if config is not None else ConFindConfig()
        self.rot_lib = rotamer_library
        self._reach = self._side_chain_reach()
        self.molecule = molecule
        self._generation = molecule.generation

        self._state: Dict[int, CacheState] = {}
        self._neighbors: Dict[int, List[int]] = {}
        self._ensembles: Dict[int, _Ensemble] = {}
        self._permanent: Dict[int, np.ndarray] = {}
        self._fraction_pruned: Dict[int, float] = {}
        self._interference: Dict[int, Dict[int, float]] = {}
        self._degrees: Dict[int, Dict[int, float]] = {}
        self._coll_prob: Dict[int, np.ndarray] = {}
        self._collided_pairs: Set[Tuple[int, int]] = set()
        self._freedom: Dict[int, float] = {}
        self._log_file = None

        self._build_indices()

    @classmethod
    def from_library_file(
        cls,
        path: Union[str, Path],
        molecule: Molecule,
        config: Optional[ConFindConfig] = None,
    ) -> "ConFind":
        """
        Build an engine around a rotamer library read from disk.

        Raises:
            RotamerLibraryError: if the library cannot be read
        """
        from confind.data.loader import load_rotamer_library

        return cls(load_rotamer_library(path), molecule, config)

    def _build_indices(self):
        """Index backbone atoms and CA atoms, tagged by residue index."""
        bb_points, bb_tags = [], []
        ca_points, ca_tags = [], []

        for res in self.molecule.residues:
            for atom in res.atoms:
                if atom.is_hydrogen or not is_backbone_name(atom.name):
                    continue
                bb_points.append(atom.coords)
                bb_tags.append(res.locnum)
                if atom.name.strip() == "CA":
                    ca_points.append(atom.coords)
                    ca_tags.append(res.locnum)
            if res.ca is None:
                logger.warning("%s has no CA atom and will have no neighbors", res)

        self._bb_nn = ProximitySearch.from_points(
            bb_points, characteristic_distance=self.config.clash_dist / 2, tags=bb_tags
        )
        self._ca_nn = ProximitySearch.from_points(
            ca_points, characteristic_distance=self.config.dcut / 2, tags=ca_tags
        )

    # ----- residue handles -----

    def _key(self, residue: Residue) -> int:
        """Cache key of a residue, checked against the indexed structure."""
        if self.molecule.generation != self._generation:
            raise StaleHandleError(
                f"molecule '{self.molecule.name}' changed after the engine was built"
            )
        return self.molecule.handle(residue).index

    def _res(self, idx: int) -> Residue:
        return self.molecule.residues[idx]

    def _as_residues(self, target: Target) -> List[Residue]:
        if isinstance(target, Residue):
            return [target]
        if isinstance(target, Molecule):
            return list(target.residues)
        return list(target)

    # ----- neighbors -----

    def _neighbor_indices(self, idx: int) -> List[int]:
        if idx not in self._neighbors:
            ca = self._res(idx).ca
            if ca is None:
                self._neighbors[idx] = []
            else:
                hits = self._ca_nn.points_within(ca.coords, 0.0, self.config.dcut, by_tag=True)
                self._neighbors[idx] = sorted(set(hits) - {idx})
        return self._neighbors[idx]

    def get_neighbors(self, target: Target) -> List[Residue]:
        """
        Residues close enough (CA-CA within ``dcut``) to affect the target.

        For several residues, returns the union of their neighbors minus the
        residues themselves.
        """
        if isinstance(target, Residue):
            return [self._res(j) for j in self._neighbor_indices(self._key(target))]
        keys = {self._key(res) for res in self._as_residues(target)}
        found = set()
        for idx in keys:
            found.update(self._neighbor_indices(idx))
        return [self._res(j) for j in sorted(found - keys)]

    def are_neighbors(self, res_a: Residue, res_b: Residue) -> bool:
        return self._key(res_b) in self._neighbor_indices(self._key(res_a))

    def counts_as_sidechain(self, atom: Atom, residue_name: str = "") -> bool:
        """Whether an atom counts as side chain under this engine's CB setting."""
        return is_sidechain_atom(atom.name, residue_name, self.config.count_cb, atom.element)

    # ----- rotamers -----

    def _has_rotamers(self, res: Residue) -> bool:
        res_type = get_residue_type(res.name)
        name = AA_NAMES[res_type] if res_type < 20 else res.name.strip().upper()
        return name not in NO_ROTAMER_RESIDUES

    def _build_rotamers(self, idx: int):
        """Place, prune and index the rotamers of one residue."""
        if self._state.get(idx, CacheState.UNCACHED) is not CacheState.UNCACHED:
            return

        res = self._res(idx)
        frame = res.backbone_frame()
        self._interference[idx] = {}
        self._fraction_pruned[idx] = 0.0

        if frame is None or not self._has_rotamers(res):
            if frame is None and self._has_rotamers(res):
                logger.warning("%s lacks N, CA or C; no rotamers placed", res)
            heavy = [a.coords for a in res.get_heavy_atoms()]
            self._permanent[idx] = np.array(heavy, dtype=np.float64).reshape(-1, 3)
            self._ensembles[idx] = _Ensemble()
            self._coll_prob[idx] = np.zeros(0)
            self._state[idx] = CacheState.ROTAMERS
            return

        phi = self.molecule.get_phi(res)
        psi = self.molecule.get_psi(res)
        transform = self.rot_lib.frame_transform(frame)

        ensemble = _Ensemble()
        interference = self._interference[idx]
        pruned_weight = 0.0

        for aa in self.config.aa_names:
            nrot = self.rot_lib.num_rotamers(aa)
            if nrot == 0:
                continue
            aa_prob = self.config.aa_propensity.get(aa, 0.0) / 100.0
            probs = self.rot_lib.rotamer_probabilities(aa, phi, psi)
            placed = self.rot_lib.place_rotamers(aa, transform)
            counted = [
                i
                for i, name in enumerate(self.rot_lib.atom_names(aa))
                if is_sidechain_atom(name, aa, self.config.count_cb)
            ]

            for ri in range(nrot):
                rotamer = RotamerID(aa, ri, aa_prob * float(probs[ri]))
                coords = placed[ri][counted]
                ensemble.num_library += 1
                ensemble.total_weight += rotamer.weight

                clashing = self._backbone_clashes(coords, idx)
                if clashing:
                    pruned_weight += rotamer.weight
                    for j in clashing:
                        interference[j] = interference.get(j, 0.0) + rotamer.weight
                    self._log_decision(res, rotamer, clashing)
                    continue

                ensemble.rotamers.append(rotamer)
                ensemble.coords.append(coords)
                self._log_decision(res, rotamer)

        if ensemble.total_weight > 0:
            ensemble.weights = (
                np.array([r.weight for r in ensemble.rotamers]) / ensemble.total_weight
            )
            self._fraction_pruned[idx] = pruned_weight / ensemble.total_weight
            for j in interference:
                interference[j] /= ensemble.total_weight
        else:
            ensemble.weights = np.zeros(len(ensemble.rotamers))

        points, payloads = [], []
        for pos, coords in enumerate(ensemble.coords):
            points.extend(coords)
            payloads.extend([pos] * len(coords))
        if points:
            ensemble.atoms = DecoratedProximitySearch.from_points(
                points, characteristic_distance=self.config.cont_dist, payloads=payloads
            )

        self._ensembles[idx] = ensemble
        self._coll_prob[idx] = np.zeros(len(ensemble.rotamers))
        self._state[idx] = CacheState.ROTAMERS

    def _side_chain_reach(self) -> float:
        """Largest distance from the library CA to an atom of any considered rotamer."""
        ca = self.rot_lib.backbone[1]
        reach = 0.0
        for aa in self.config.aa_names:
            rotamer_set = self.rot_lib.get_set(aa)
            if rotamer_set is not None and rotamer_set.coords.size:
                reach = max(reach, float(np.linalg.norm(rotamer_set.coords - ca, axis=-1).max()))
        return reach

    def _backbone_clashes(self, coords: np.ndarray, idx: int) -> List[int]:
        """Residues (other than ``idx``) whose backbone clashes with any of the coordinates."""
        hits = set()
        for point in coords:
            hits.update(self._bb_nn.points_within(point, 0.0, self.config.clash_dist, by_tag=True))
        hits.discard(idx)
        return sorted(hits)

    # ----- collisions -----

    def _permanent_contacts(self, ensemble: _Ensemble, points: np.ndarray) -> np.ndarray:
        """Indicator over the ensemble's rotamers touching any of the fixed points."""
        hit = np.zeros(len(ensemble.rotamers))
        if ensemble.atoms is None:
            return hit
        for point in points:
            for pos in ensemble.atoms.get_points_within(point, 0.0, self.config.cont_dist):
                hit[pos] = 1.0
        return hit

    def _rotamer_contacts(self, ens_a: _Ensemble, ens_b: _Ensemble) -> np.ndarray:
        """Contact matrix between the rotamers of two ensembles."""
        contacts = np.zeros((len(ens_a.rotamers), len(ens_b.rotamers)))
        if ens_a.atoms is None or ens_b.atoms is None:
            return contacts
        if not ens_a.atoms.overlaps(ens_b.atoms, self.config.cont_dist / 2):
            return contacts
        for s, coords in enumerate(ens_b.coords):
            for point in coords:
                for r in ens_a.atoms.get_points_within(point, 0.0, self.config.cont_dist):
                    contacts[r, s] = 1.0
        return contacts

    def _collide(self, a: int, b: int, mode: CollisionMode) -> float:
        """
        Collide two residues whose rotamers are built and record their degree.

        In UPDATE_COLLISIONS mode the collision probabilities of both residues
        are accumulated as well; callers must do this at most once per pair.

        Returns:
            Contact degree of the pair
        """
        ens_a, ens_b = self._ensembles[a], self._ensembles[b]
        update = mode is CollisionMode.UPDATE_COLLISIONS
        degree = 0.0

        if a in self._permanent and b in self._permanent:
            pass
        elif b in self._permanent:
            hit = self._permanent_contacts(ens_a, self._permanent[b])
            degree = float(ens_a.weights @ hit)
            if update:
                self._coll_prob[a] += hit
        elif a in self._permanent:
            hit = self._permanent_contacts(ens_b, self._permanent[a])
            degree = float(ens_b.weights @ hit)
            if update:
                self._coll_prob[b] += hit
        else:
            contacts = self._rotamer_contacts(ens_a, ens_b)
            degree = float(ens_a.weights @ contacts @ ens_b.weights)
            if update:
                self._coll_prob[a] += contacts @ ens_b.weights
                self._coll_prob[b] += contacts.T @ ens_a.weights

        self._degrees.setdefault(a, {})[b] = degree
        self._degrees.setdefault(b, {})[a] = degree
        if update:
            self._collided_pairs.add((min(a, b), max(a, b)))
        return degree

    # ----- caching -----

    def _cache_residue(self, idx: int):
        if self._state.get(idx) is CacheState.COLLIDED:
            return
        neighbors = self._neighbor_indices(idx)
        self._build_rotamers(idx)
        for j in neighbors:
            self._build_rotamers(j)
        for j in neighbors:
            if (min(idx, j), max(idx, j)) not in self._collided_pairs:
                self._collide(idx, j, CollisionMode.UPDATE_COLLISIONS)
        self._state[idx] = CacheState.COLLIDED

    def cache(self, target: Target):
        """
        Precompute rotamers and collisions for one or more residues.

        Queries cache on demand, so calling this is only needed to control
        when the work happens.
        """
        residues = self._as_residues(target)
        if self.config.verbose:
            print(f"Caching {len(residues)} residues...")
        for res in residues:
            self._cache_residue(self._key(res))
        if self.config.verbose:
            print(f"  {len(self._collided_pairs)} residue pairs collided")

    def cache_state(self, res: Residue) -> CacheState:
        return self._state.get(self._key(res), CacheState.UNCACHED)

    def weight_of_available_rotamers(self, res: Residue) -> float:
        """Total weight of all library rotamers at a position, pruned ones included."""
        idx = self._key(res)
        self._build_rotamers(idx)
        return self._ensembles[idx].total_weight

    def num_library_rotamers(self, res: Residue) -> int:
        idx = self._key(res)
        self._build_rotamers(idx)
        return self._ensembles[idx].num_library

    def surviving_rotamers(self, res: Residue) -> List[RotamerID]:
        idx = self._key(res)
        self._build_rotamers(idx)
        return list(self._ensembles[idx].rotamers)

    # ----- contact degree -----

    def contact_degree(
        self,
        res_a: Residue,
        res_b: Residue,
        cache_a: bool = True,
        cache_b: bool = True,
        check_neighbors: bool = True,
    ) -> float:
        """
        Weighted fraction of rotamer pairs of two residues that are in contact.

        Args:
            res_a, res_b: The two residues
            cache_a, cache_b: Fully cache the residue (collide it with all
                its neighbors) before answering
            check_neighbors: Return 0.0 right away for non-neighbors

        Returns:
            Contact degree in [0, 1]
        """
        a, b = self._key(res_a), self._key(res_b)
        if a == b:
            return 0.0
        if check_neighbors and b not in self._neighbor_indices(a):
            return 0.0
        if cache_a:
            self._cache_residue(a)
        if cache_b:
            self._cache_residue(b)
        if b in self._degrees.get(a, {}):
            return self._degrees[a][b]
        self._build_rotamers(a)
        self._build_rotamers(b)
        return self._collide(a, b, CollisionMode.DEGREE_ONLY)

    def get_contacts(
        self,
        target: Target,
        cdcut: float = 0.0,
        contacts: Optional[ContactList] = None,
    ) -> ContactList:
        """
        Contacts of one or more residues with degree above ``cdcut``.

        Residues without rotamers (Gly, Pro) take part through their heavy
        atoms. A glycine has only backbone atoms, so with ``clash_dist`` at
        or above ``cont_dist`` (the defaults are equal) every rotamer
        touching it has already been pruned. Its degrees are then 0 and it
        shows up through ``get_interference`` instead.

        Args:
            target: A residue, a list of residues or a whole molecule
            cdcut: Minimum contact degree (exclusive)
            contacts: Existing list to append to

        Returns:
            ContactList of non-directional contacts
        """
        contacts = ContactList() if contacts is None else contacts
        for res in self._as_residues(target):
            idx = self._key(res)
            self._cache_residue(idx)
            degrees = self._degrees.get(idx, {})
            for j in self._neighbor_indices(idx):
                degree = degrees.get(j, 0.0)
                other = self._res(j)
                if degree > cdcut and not contacts.are_in_contact(res, other):
                    contacts.add_contact(res, other, degree)
        return contacts

    def get_contacting_residues(self, res: Residue, cdcut: float = 0.0) -> List[Residue]:
        contacts = self.get_contacts(res, cdcut)
        return [c.dst if c.src is res else c.src for c in contacts]

    # ----- freedom and crowdedness -----

    def set_freedom_params(self, lo_coll_prob_cut: float, hi_coll_prob_cut: float, freedom_type: int):
        """Change the freedom parameters; call ``clear_freedom`` to recompute memoized values."""
        self.config.lo_coll_prob_cut = lo_coll_prob_cut
        self.config.hi_coll_prob_cut = hi_coll_prob_cut
        self.config.freedom_type = freedom_type

    def clear_freedom(self):
        """Forget memoized freedom values; rotamer and collision data stay cached."""
        self._freedom.clear()

    def compute_freedom(self, res: Residue) -> float:
        """
        Aggregate a residue's collision probabilities into a freedom score.

        Each surviving rotamer is free (collision probability at or below the
        low cutoff), excluded (at or above the high cutoff) or on the boundary.
        ``freedom_type`` selects the formula:

        1. (free + 0.5 * boundary) / number of library rotamers
        2. weighted free mass, boundary rotamers ramped linearly from 1 at
           the low cutoff to 0 at the high cutoff
        3. weighted mass times (1 - collision probability), excluded
           rotamers contributing nothing

        Raises:
            NotReadyError: if the residue has not been collided with all its neighbors
        """
        idx = self._key(res)
        state = self._state.get(idx, CacheState.UNCACHED)
        if state is not CacheState.COLLIDED:
            raise NotReadyError(res, state)

        ensemble = self._ensembles[idx]
        if ensemble.total_weight <= 0:
            return FREEDOM_UNDEFINED

        lo = self.config.lo_coll_prob_cut
        hi = self.config.hi_coll_prob_cut
        coll_prob = self._coll_prob[idx]
        free = coll_prob <= lo + EPSILON
        excluded = ~free & (coll_prob >= hi - EPSILON)
        boundary = ~free & ~excluded

        freedom_type = self.config.freedom_type
        if freedom_type == 1:
            return float((free.sum() + 0.5 * boundary.sum()) / ensemble.num_library)
        if freedom_type == 2:
            ramp = (hi - coll_prob) / (hi - lo) if hi - lo > EPSILON else np.full_like(coll_prob, 0.5)
            zone = np.where(free, 1.0, np.where(boundary, ramp, 0.0))
            return float(ensemble.weights @ zone)
        if freedom_type == 3:
            remaining = np.clip(1.0 - coll_prob, 0.0, 1.0)
            return float(ensemble.weights @ np.where(excluded, 0.0, remaining))
        raise ValueError(f"unknown freedom type {freedom_type}")

    def get_freedom(self, res: Residue) -> float:
        """
        Conformational freedom of a residue.

        Returns:
            Freedom score, or FREEDOM_UNDEFINED for residues without rotamers
        """
        idx = self._key(res)
        if idx not in self._freedom:
            self._cache_residue(idx)
            self._freedom[idx] = self.compute_freedom(res)
        return self._freedom[idx]

    def get_freedoms(self, residues: Target) -> List[float]:
        return [self.get_freedom(res) for res in self._as_residues(residues)]

    def get_crowdedness(self, res: Residue) -> float:
        """Weighted fraction of a position's library rotamers pruned by backbone clashes."""
        idx = self._key(res)
        self._build_rotamers(idx)
        return self._fraction_pruned[idx]

    def get_crowdedness_list(self, residues: Target) -> List[float]:
        return [self.get_crowdedness(res) for res in self._as_residues(residues)]

    # ----- interference -----

    def get_interference(
        self,
        target: Target,
        incut: float = 0.0,
        contacts: Optional[ContactList] = None,
    ) -> ContactList:
        """
        Backbones interfering with the side chains of the given residues.

        A record ``src -> dst`` means some fraction of the rotamers at ``src``
        (the reported degree) clash with the backbone of ``dst``.

        Args:
            target: Residues whose side chains are interfered with
            incut: Minimum interference (exclusive)
            contacts: Existing list to append to

        Returns:
            ContactList of directional records
        """
        contacts = ContactList() if contacts is None else contacts
        for res in self._as_residues(target):
            idx = self._key(res)
            self._build_rotamers(idx)
            for j, value in sorted(self._interference[idx].items()):
                other = self._res(j)
                if value > incut and not contacts.are_in_contact(res, other):
                    contacts.add_contact(res, other, value, directional=True)
        return contacts

    def _interference_sources(self, idx: int) -> List[int]:
        """Residues whose rotamers could come within ``clash_dist`` of this backbone."""
        radius = self._reach + self.config.clash_dist + FRAME_FIT_SLACK
        found = set(self._neighbor_indices(idx))
        for point in self._backbone_coords(self._res(idx)):
            found.update(self._ca_nn.points_within(point, 0.0, radius, by_tag=True))
        found.discard(idx)
        return sorted(found)

    def get_interfering(
        self,
        target: Target,
        incut: float = 0.0,
        contacts: Optional[ContactList] = None,
    ) -> ContactList:
        """
        Side chains interfered with by the backbones of the given residues.

        Records have the same orientation as in ``get_interference``: the
        interfered residue is the source, the given residue the destination.
        Candidate sources are all residues whose rotamers can reach the given
        residue's backbone, whether or not they are within ``dcut``.
        """
        contacts = ContactList() if contacts is None else contacts
        for res in self._as_residues(target):
            idx = self._key(res)
            for j in self._interference_sources(idx):
                self._build_rotamers(j)
                value = self._interference[j].get(idx, 0.0)
                other = self._res(j)
                if value > incut and not contacts.are_in_contact(other, res):
                    contacts.add_contact(other, res, value, directional=True)
        return contacts

    # ----- backbone interactions -----

    def _backbone_coords(self, res: Residue) -> np.ndarray:
        coords = [a.coords for a in res.atoms if is_backbone_name(a.name) and not a.is_hydrogen]
        return np.array(coords, dtype=np.float64).reshape(-1, 3)

    def _is_flanking(self, res_a: Residue, res_b: Residue, ignore_flanking: int) -> bool:
        return res_a.chain == res_b.chain and abs(res_a.locnum - res_b.locnum) <= ignore_flanking

    def bb_interaction(self, res_a: Residue, res_b: Residue) -> float:
        """Closest distance between the backbone atoms of two residues (inf if missing)."""
        return min_distance(self._backbone_coords(res_a), self._backbone_coords(res_b))

    def _bb_partners(self, res: Residue, dcut: float, ignore_flanking: int) -> List[int]:
        idx = self._key(res)
        partners = set()
        for point in self._backbone_coords(res):
            partners.update(self._bb_nn.points_within(point, 0.0, dcut, by_tag=True))
        return [
            j
            for j in sorted(partners)
            if j != idx and not self._is_flanking(res, self._res(j), ignore_flanking)
        ]

    def get_bb_interaction(
        self,
        target: Target,
        dcut: Optional[float] = None,
        ignore_flanking: int = 1,
        contacts: Optional[ContactList] = None,
    ) -> ContactList:
        """
        Backbone-to-backbone contacts of one or more residues.

        Two residues interact if any of their N, CA, C, O atoms are within
        ``dcut``; the reported degree is their closest backbone distance.
        Residues within ``ignore_flanking`` positions along the same chain
        are never reported.

        Args:
            target: A residue, a list of residues or a whole molecule
            dcut: Distance cutoff (defaults to ``config.bb_dist``)
            ignore_flanking: Number of chain neighbors on each side to skip
            contacts: Existing list to append to

        Returns:
            ContactList of non-directional contacts
        """
        dcut = self.config.bb_dist if dcut is None or dcut <= 0 else dcut
        contacts = ContactList() if contacts is None else contacts
        for res in self._as_residues(target):
            for j in self._bb_partners(res, dcut, ignore_flanking):
                other = self._res(j)
                if not contacts.are_in_contact(res, other):
                    contacts.add_contact(res, other, self.bb_interaction(res, other))
        return contacts

    def get_bb_interacting_residues(
        self, res: Residue, dcut: Optional[float] = None, ignore_flanking: int = 1
    ) -> List[Residue]:
        dcut = self.config.bb_dist if dcut is None or dcut <= 0 else dcut
        return [self._res(j) for j in self._bb_partners(res, dcut, ignore_flanking)]

    # ----- rotamer decision log -----

    def open_log_file(self, path: Union[str, Path], append: bool = False):
        """
        Start recording every rotamer accept/reject decision to a text file.

        Raises:
            LogFileError: if the file cannot be opened
        """
        self.close_log_file()
        try:
            self._log_file = open(path, "a" if append else "w")
        except OSError as e:
            raise LogFileError(f"Could not open rotamer log {path}: {e}") from e

    def close_log_file(self):
        """Stop recording; safe to call when no log is open."""
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None

    @contextmanager
    def rotamer_log(self, path: Union[str, Path], append: bool = False):
        """Record rotamer decisions for the duration of a ``with`` block."""
        self.open_log_file(path, append)
        try:
            yield self
        finally:
            self.close_log_file()

    def _log_decision(self, res: Residue, rotamer: RotamerID, clashing: Sequence[int] = ()):
        if self._log_file is None:
            return
        line = f"{res.label}\t{res.name}\t{rotamer.aa}\t{rotamer.index}\t{rotamer.weight:.6f}\t"
        if clashing:
            labels = ",".join(self._res(j).label for j in clashing)
            line += f"rejected\tbackbone clash with {labels}"
        else:
            line += "accepted"
        self._log_file.write(line + "\n")
