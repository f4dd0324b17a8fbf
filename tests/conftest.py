"""Pytest configuration and fixtures for confind tests."""

import numpy as np
import pytest

from confind.confind import ConFind, ConFindConfig
from confind.core.structures import Atom, Residue, Molecule
from confind.core.constants import FLAG_BACKBONE, FLAG_CALPHA, get_residue_type
from confind.rotamers.library import RotamerLibrary, RotamerSet

# Library reference frame: N, CA, C
LIB_BACKBONE = np.array(
    [
        [-1.2, 0.8, 0.0],
        [0.0, 0.0, 0.0],
        [1.2, 0.8, 0.0],
    ]
)

# Two leucine rotamers (CB, CG, CD1, CD2) in the library frame
LEU_ROTAMERS = np.array(
    [
        [[0.0, -1.5, 0.0], [0.0, -3.0, 0.0], [1.2, -3.8, 0.0], [-1.2, -3.8, 0.0]],
        [[0.0, -1.0, 1.1], [0.0, -1.5, 2.5], [1.2, -1.5, 3.3], [-1.2, -1.5, 3.3]],
    ]
)
LEU_PROBS = np.array([0.6, 0.4])

# Propensity weight of LEU in the default table
LEU_WEIGHT = 8.83 / 100.0


def build_residue(num, name, chain, ca, o=None):
    """
    Residue with N, CA, C, O placed like the library frame translated to ``ca``.

    The carbonyl O defaults to C + (0, 1.2, 0).
    """
    ca = np.asarray(ca, dtype=np.float64)
    n = LIB_BACKBONE[0] + ca
    c = LIB_BACKBONE[2] + ca
    o = c + np.array([0.0, 1.2, 0.0]) if o is None else np.asarray(o, dtype=np.float64)

    res = Residue(num=num, res_type=get_residue_type(name), name=name, chain=chain)
    res.add_atom(Atom(coords=n, name="N  ", flag=FLAG_BACKBONE, element="N"))
    res.add_atom(Atom(coords=ca, name="CA ", flag=FLAG_BACKBONE | FLAG_CALPHA, element="C"))
    res.add_atom(Atom(coords=c, name="C  ", flag=FLAG_BACKBONE, element="C"))
    res.add_atom(Atom(coords=o, name="O  ", flag=FLAG_BACKBONE, element="O"))
    return res


@pytest.fixture
def leu_library():
    """Library with two backbone-independent LEU rotamers."""
    rotamer_set = RotamerSet(
        aa="LEU",
        atom_names=["CB", "CG", "CD1", "CD2"],
        coords=LEU_ROTAMERS,
        probabilities=LEU_PROBS,
    )
    return RotamerLibrary({"LEU": rotamer_set}, LIB_BACKBONE)


@pytest.fixture
def leu_config():
    return ConFindConfig(aa_names=("LEU",))


@pytest.fixture
def pair_molecule():
    """Two adjacent LEU positions 3.8 A apart with identical orientation."""
    mol = Molecule(name="pair")
    mol.add_residue(build_residue(1, "LEU", "A", [0.0, 0.0, 0.0]))
    mol.add_residue(build_residue(2, "LEU", "A", [3.8, 0.0, 0.0]))
    return mol


@pytest.fixture
def pair_engine(leu_library, pair_molecule, leu_config):
    return ConFind(leu_library, pair_molecule, leu_config)


@pytest.fixture
def gly_molecule():
    """The LEU pair plus a glycine below the first residue's rotamer 0."""
    mol = Molecule(name="gly")
    mol.add_residue(build_residue(1, "LEU", "A", [0.0, 0.0, 0.0]))
    mol.add_residue(build_residue(2, "LEU", "A", [3.8, 0.0, 0.0]))
    mol.add_residue(build_residue(1, "GLY", "B", [1.2, -6.8, 0.0], o=[2.4, -7.2, 0.0]))
    return mol


@pytest.fixture
def interference_molecule():
    """The LEU pair plus a glycine whose backbone blocks both rotamer 1 positions."""
    mol = Molecule(name="interference")
    mol.add_residue(build_residue(1, "LEU", "A", [0.0, 0.0, 0.0]))
    mol.add_residue(build_residue(2, "LEU", "A", [3.8, 0.0, 0.0]))
    mol.add_residue(build_residue(3, "GLY", "C", [1.2, -1.5, 4.5]))
    return mol


@pytest.fixture
def rotlib_text(tmp_path):
    """The LEU library in text format."""
    lines = ["# test library"]
    for name, xyz in zip(("N", "CA", "C"), LIB_BACKBONE):
        lines.append(f"BACKBONE {name} " + " ".join(f"{v:.3f}" for v in xyz))
    lines.append("RESIDUE LEU CB CG CD1 CD2")
    for prob, coords in zip(LEU_PROBS, LEU_ROTAMERS):
        lines.append(f"ROTAMER {prob:.2f} " + " ".join(f"{v:.3f}" for v in coords.ravel()))
    path = tmp_path / "rotlib.txt"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def simple_ca_coords():
    """Simple alpha helix-like CA coordinates."""
    coords = []
    for i in range(10):
        x = 1.5 * np.cos(i * 100 * np.pi / 180)
        y = 1.5 * np.sin(i * 100 * np.pi / 180)
        z = 1.5 * i
        coords.append([x, y, z])
    return np.array(coords)


@pytest.fixture
def simple_molecule(simple_ca_coords):
    """Create a simple molecule with CA atoms only."""
    mol = Molecule(name="test")

    for i, coord in enumerate(simple_ca_coords):
        res = Residue(num=i + 1, res_type=1, name="ALA", chain="A")
        res.add_atom(
            Atom(coords=np.array(coord), name="CA ", num=i + 1, flag=FLAG_BACKBONE | FLAG_CALPHA)
        )
        mol.add_residue(res)

    return mol
