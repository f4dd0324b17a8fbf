"""
Geometric utility functions for molecular calculations.
"""

import numpy as np
from scipy.spatial.distance import cdist
from scipy.spatial.transform import Rotation
from typing import Tuple

from confind.core.constants import RADDEG


def superimpose(
    coords1: np.ndarray,
    coords2: np.ndarray,
) -> Tuple[float, np.ndarray, np.ndarray, np.ndarray]:
    """
    Superimpose coords2 onto coords1 using Kabsch algorithm.

    This finds the optimal rotation and translation to minimize RMSD
    between coords1 (target) and coords2 (mobile).

    Args:
        coords1: Target coordinates, shape (N, 3)
        coords2: Mobile coordinates to be superimposed, shape (N, 3)

    Returns:
        Tuple of:
        - rmsd: Root mean square deviation after superposition
        - transformed: Transformed coords2 after superposition
        - rotation_matrix: 3x3 rotation matrix
        - translation: Translation vector
    """
    assert len(coords1) == len(coords2), "Coordinate arrays must have same length"

    # Center both coordinate sets
    center1 = coords1.mean(axis=0)
    center2 = coords2.mean(axis=0)

    coords1_centered = coords1 - center1
    coords2_centered = coords2 - center2

    # Rotation.align_vectors solves the Kabsch problem via SVD
    rotation, _ = Rotation.align_vectors(coords1_centered, coords2_centered)
    rotation_matrix = rotation.as_matrix()

    transformed = coords2_centered @ rotation_matrix.T + center1

    diff = coords1 - transformed
    rmsd = np.sqrt(np.mean(np.sum(diff**2, axis=1)))

    # Translation vector (from centered coords2 to final position)
    translation = center1 - center2 @ rotation_matrix.T

    return rmsd, transformed, rotation_matrix, translation


def calc_torsion(
    a1: np.ndarray, a2: np.ndarray, a3: np.ndarray, a4: np.ndarray
) -> float:
    """
    Calculate dihedral/torsion angle for four points.

    Args:
        a1, a2, a3, a4: Four atom positions defining the torsion angle

    Returns:
        Torsion angle in degrees (-180 to 180), or 360.0 if undefined
    """
    v12 = a1 - a2
    v43 = a4 - a3
    z = a2 - a3

    p = np.cross(z, v12)
    x = np.cross(z, v43)
    y = np.cross(z, x)

    u = np.dot(x, x)
    v = np.dot(y, y)

    u_norm = np.sqrt(u)
    v_norm = np.sqrt(v)

    if u_norm < 1e-10 or v_norm < 1e-10:
        return 360.0

    u_val = np.dot(p, x) / u_norm
    v_val = np.dot(p, y) / v_norm

    if u_val != 0.0 or v_val != 0.0:
        return float(np.arctan2(v_val, u_val) * RADDEG)
    return 360.0


def min_distance(coords1: np.ndarray, coords2: np.ndarray) -> float:
    """
    Smallest distance between any point of one set and any point of another.

    Args:
        coords1: Array of coordinates, shape (N, 3)
        coords2: Array of coordinates, shape (M, 3)

    Returns:
        Minimum distance, or inf if either set is empty
    """
    if len(coords1) == 0 or len(coords2) == 0:
        return float("inf")
    return float(cdist(coords1, coords2).min())
