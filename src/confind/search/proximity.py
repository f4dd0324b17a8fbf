"""
Grid-based spatial indexing for fast neighbor and clash queries.

The bounding volume is split into an N x N x N grid of buckets, each holding
indices into the point list. A shell query only visits the buckets that
intersect the query box and then filters candidates by exact distance, so
its cost follows the local point density rather than the total point count.
The bucket count affects performance only; N=1 is a brute-force scan.
"""

import math
from typing import Dict, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar
import numpy as np

from confind.core.constants import EPSILON, GRID_N

T = TypeVar("T")


class ProximitySearch:
    """
    Uniform bucket grid over a set of tagged 3D points.

    Each point carries an integer tag (by default its own index), so callers
    can map query hits back to atoms, residues or anything else they index.
    """

    def __init__(
        self,
        xlo: float,
        ylo: float,
        zlo: float,
        xhi: float,
        yhi: float,
        zhi: float,
        n: int = GRID_N,
    ):
        """
        Initialize an empty grid over explicit extents.

        Args:
            xlo, ylo, zlo: Lower corner of the grid
            xhi, yhi, zhi: Upper corner of the grid
            n: Number of buckets along each dimension
        """
        self.low = np.array([xlo, ylo, zlo], dtype=np.float64)
        self.high = np.array([xhi, yhi, zhi], dtype=np.float64)
        self.n = max(1, int(n))
        self.buckets: Dict[Tuple[int, int, int], List[int]] = {}
        self._points: List[np.ndarray] = []
        self._tags: List[int] = []
        self._coords: Optional[np.ndarray] = None
        self._set_bin_widths()

    @classmethod
    def from_points(
        cls,
        points: Iterable,
        n: Optional[int] = None,
        characteristic_distance: Optional[float] = None,
        tags: Optional[Sequence[int]] = None,
        pad: float = 0.0,
        add_points: bool = True,
    ) -> "ProximitySearch":
        """
        Build a grid sized to a point set.

        Either the bucket count is given directly, or it is derived from a
        characteristic distance so that buckets are about that wide and a
        query of that radius only needs adjacent buckets.

        Args:
            points: Iterable of [x, y, z] coordinates
            n: Number of buckets along each dimension
            characteristic_distance: Desired bucket width in Angstroms
            tags: Optional integer tags, one per point (default: point index)
            pad: Extra margin added around the extents on every side
            add_points: Whether to insert the points or only size the grid

        Returns:
            New grid instance
        """
        coords = np.asarray(list(points), dtype=np.float64).reshape(-1, 3)
        xlo, ylo, zlo, xhi, yhi, zhi = cls.calculate_extent(coords)
        low = np.array([xlo, ylo, zlo]) - pad
        high = np.array([xhi, yhi, zhi]) + pad

        if n is None:
            if characteristic_distance is not None and characteristic_distance > 0:
                span = float(np.max(high - low))
                n = max(1, int(math.ceil(span / characteristic_distance)))
            else:
                n = GRID_N

        grid = cls(*low, *high, n=n)
        if add_points:
            grid.add_points(coords, tags)
        return grid

    @staticmethod
    def calculate_extent(points) -> Tuple[float, float, float, float, float, float]:
        """
        Axis-aligned extents of a point set.

        Returns:
            (xlo, ylo, zlo, xhi, yhi, zhi); all zeros for an empty set
        """
        coords = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(coords) == 0:
            return 0.0, 0.0, 0.0, 0.0, 0.0, 0.0
        lo = coords.min(axis=0)
        hi = coords.max(axis=0)
        return lo[0], lo[1], lo[2], hi[0], hi[1], hi[2]

    def _set_bin_widths(self):
        """Compute bucket widths; a flat dimension gets a unit width."""
        span = self.high - self.low
        self.bin_widths = np.where(span > EPSILON, span / self.n, 1.0)

    @property
    def extents(self) -> Tuple[float, float, float, float, float, float]:
        return (*self.low.tolist(), *self.high.tolist())

    @property
    def grid_spacing(self) -> np.ndarray:
        """Bucket widths along x, y and z."""
        return self.bin_widths.copy()

    @property
    def point_size(self) -> int:
        return len(self._points)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def coords(self) -> np.ndarray:
        """All inserted points as an (N, 3) array."""
        if self._coords is None:
            self._coords = np.array(self._points, dtype=np.float64).reshape(-1, 3)
        return self._coords

    def get_point(self, i: int) -> np.ndarray:
        return self._points[i]

    def get_point_tag(self, i: int) -> int:
        return self._tags[i]

    def distance(self, i: int, j: int) -> float:
        """Distance between two inserted points."""
        return float(np.linalg.norm(self._points[i] - self._points[j]))

    def reinit_buckets(self, n: int):
        """
        Re-bucket all points into an n x n x n grid.

        Args:
            n: New number of buckets along each dimension
        """
        self.n = max(1, int(n))
        self._set_bin_widths()
        self.buckets.clear()
        for idx, point in enumerate(self._points):
            self.buckets.setdefault(self.point_bucket(point), []).append(idx)

    def is_point_within_grid(self, p) -> bool:
        p = np.asarray(p, dtype=np.float64)
        return bool(np.all(p >= self.low - EPSILON) and np.all(p <= self.high + EPSILON))

    def point_bucket(self, p) -> Tuple[int, int, int]:
        """
        Bucket holding a location; indices are clamped to the grid.

        Args:
            p: [x, y, z] coordinates

        Returns:
            (i, j, k) bucket indices
        """
        p = np.asarray(p, dtype=np.float64)
        ijk = np.floor((p - self.low) / self.bin_widths).astype(int)
        ijk = np.clip(ijk, 0, self.n - 1)
        return int(ijk[0]), int(ijk[1]), int(ijk[2])

    def add_point(self, p, tag: int):
        """
        Insert a point. Points may coincide in location.

        Args:
            p: [x, y, z] coordinates, must lie within the grid extents
            tag: Integer tag returned by tag-based queries

        Raises:
            ValueError: if the point lies outside the grid
        """
        point = np.array(p, dtype=np.float64).reshape(3)
        if not self.is_point_within_grid(point):
            raise ValueError(
                f"point {point.tolist()} lies outside grid extents {self.extents}"
            )
        idx = len(self._points)
        self._points.append(point)
        self._tags.append(int(tag))
        self._coords = None
        self.buckets.setdefault(self.point_bucket(point), []).append(idx)

    def add_points(self, points, tags: Optional[Sequence[int]] = None):
        """
        Insert many points at once.

        Args:
            points: Iterable of [x, y, z] coordinates
            tags: Optional tags; defaults to the index each point receives
        """
        coords = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if tags is not None and len(tags) != len(coords):
            raise ValueError("number of tags does not match number of points")
        for i, point in enumerate(coords):
            tag = tags[i] if tags is not None else len(self._points)
            self.add_point(point, tag)

    def _candidates(self, lo: np.ndarray, hi: np.ndarray) -> List[int]:
        """Point indices in all buckets intersecting the box [lo, hi]."""
        i0, j0, k0 = self.point_bucket(lo)
        i1, j1, k1 = self.point_bucket(hi)
        n_visit = (i1 - i0 + 1) * (j1 - j0 + 1) * (k1 - k0 + 1)

        candidates = []
        if n_visit > len(self.buckets):
            # sparse grid, cheaper to walk the occupied buckets
            for (i, j, k), bucket in self.buckets.items():
                if i0 <= i <= i1 and j0 <= j <= j1 and k0 <= k <= k1:
                    candidates.extend(bucket)
            return candidates

        for i in range(i0, i1 + 1):
            for j in range(j0, j1 + 1):
                for k in range(k0, k1 + 1):
                    bucket = self.buckets.get((i, j, k))
                    if bucket:
                        candidates.extend(bucket)
        return candidates

    def points_within(self, c, dmin: float, dmax: float, by_tag: bool = False) -> List[int]:
        """
        Find points whose distance to ``c`` lies in [dmin, dmax].

        Args:
            c: Query center [x, y, z]
            dmin: Inner radius of the shell
            dmax: Outer radius of the shell
            by_tag: Return point tags instead of point indices

        Returns:
            Sorted point indices (or the tags of those points); empty when the
            query lies entirely outside the grid
        """
        if dmax < 0 or not self._points:
            return []
        c = np.asarray(c, dtype=np.float64).reshape(3)
        lo = c - dmax
        hi = c + dmax
        if np.any(hi < self.low - EPSILON) or np.any(lo > self.high + EPSILON):
            return []

        candidates = self._candidates(lo, hi)
        if not candidates:
            return []

        idx = np.array(sorted(candidates), dtype=int)
        d2 = np.sum((self.coords[idx] - c) ** 2, axis=1)
        inner = max(dmin - EPSILON, 0.0)
        outer = dmax + EPSILON
        found = idx[(d2 >= inner * inner) & (d2 <= outer * outer)]

        if by_tag:
            return [self._tags[i] for i in found]
        return found.tolist()

    def num_points_within(self, c, dmin: float, dmax: float) -> int:
        return len(self.points_within(c, dmin, dmax))

    def overlaps(self, other: "ProximitySearch", pad: float = 0.0) -> bool:
        """
        Check whether two grids' bounding boxes intersect.

        Both boxes are grown by ``pad`` on every side, so two indices whose
        contents are within ``2 * pad`` of each other along every axis overlap.

        Args:
            other: Another grid
            pad: Padding added around each box

        Returns:
            True if the padded boxes intersect
        """
        return bool(
            np.all(self.low - pad <= other.high + pad + EPSILON)
            and np.all(other.low - pad <= self.high + pad + EPSILON)
        )


class DecoratedProximitySearch(ProximitySearch, Generic[T]):
    """
    Proximity search whose points carry arbitrary payloads.

    The base integer tag of each point indexes a payload side table, so
    queries can hand back the payloads themselves.
    """

    def __init__(
        self,
        xlo: float,
        ylo: float,
        zlo: float,
        xhi: float,
        yhi: float,
        zhi: float,
        n: int = GRID_N,
    ):
        super().__init__(xlo, ylo, zlo, xhi, yhi, zhi, n=n)
        self._payloads: List[T] = []

    @classmethod
    def from_points(
        cls,
        points: Iterable,
        n: Optional[int] = None,
        characteristic_distance: Optional[float] = None,
        payloads: Optional[Sequence[T]] = None,
        pad: float = 0.0,
    ) -> "DecoratedProximitySearch":
        """
        Build a decorated grid sized to a point set.

        Args:
            points: Iterable of [x, y, z] coordinates
            n: Number of buckets along each dimension
            characteristic_distance: Desired bucket width in Angstroms
            payloads: Optional payloads, one per point; without them the grid
                is only sized and left empty
            pad: Extra margin around the extents

        Returns:
            New decorated grid
        """
        coords = np.asarray(list(points), dtype=np.float64).reshape(-1, 3)
        grid = super().from_points(
            coords,
            n=n,
            characteristic_distance=characteristic_distance,
            pad=pad,
            add_points=False,
        )
        if payloads is not None:
            if len(payloads) != len(coords):
                raise ValueError("number of payloads does not match number of points")
            for point, payload in zip(coords, payloads):
                grid.add_point(point, payload)
        return grid

    def add_point(self, p, payload: T):
        super().add_point(p, len(self._payloads))
        self._payloads.append(payload)

    def add_points(self, points, payloads: Optional[Sequence[T]] = None):
        coords = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if payloads is None or len(payloads) != len(coords):
            raise ValueError("decorated grids need one payload per point")
        for point, payload in zip(coords, payloads):
            self.add_point(point, payload)

    def get_point_tag(self, i: int) -> T:
        return self._payloads[super().get_point_tag(i)]

    def get_points_within(self, c, dmin: float, dmax: float) -> List[T]:
        """Payloads of all points in the [dmin, dmax] shell around ``c``."""
        return [self._payloads[t] for t in self.points_within(c, dmin, dmax, by_tag=True)]

    def get_points_within_indices(self, c, dmin: float, dmax: float) -> List[int]:
        """Payload-table indices of all points in the shell around ``c``."""
        return self.points_within(c, dmin, dmax, by_tag=True)
