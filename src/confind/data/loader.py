"""
Data loading utilities for rotamer libraries.

Two on-disk formats are understood:

* a NumPy ``.npz`` archive with a ``backbone`` array (N, CA, C reference
  coordinates), an ``amino_acids`` array and, per amino acid, the arrays
  ``<AA>_atoms``, ``<AA>_coords`` and ``<AA>_probs``;
* a whitespace-separated text format::

      BACKBONE N  -1.20 0.80 0.00
      BACKBONE CA  0.00 0.00 0.00
      BACKBONE C   1.20 0.80 0.00
      RESIDUE LEU CB CG CD1 CD2
      ROTAMER 0.60  x y z  x y z  x y z  x y z

  Lines starting with ``#`` are comments. Each ROTAMER line belongs to the
  preceding RESIDUE and lists its probability followed by one x/y/z triple
  per atom.
"""

from pathlib import Path
from typing import Dict, Union
import numpy as np

from confind.errors import RotamerLibraryError
from confind.rotamers.library import RotamerLibrary, RotamerSet

# Cache for loaded libraries, keyed by resolved path
_DATA_CACHE = {}

BACKBONE_ORDER = ("N", "CA", "C")


def load_rotamer_library(path: Union[str, Path], use_cache: bool = True) -> RotamerLibrary:
    """
    Load a rotamer library file.

    Args:
        path: Path to a ``.npz`` archive or a text library
        use_cache: Reuse a previously loaded library for the same path

    Returns:
        RotamerLibrary instance

    Raises:
        RotamerLibraryError: if the file is missing, unreadable or malformed
    """
    path = Path(path)
    key = str(path.resolve())
    if use_cache and key in _DATA_CACHE:
        return _DATA_CACHE[key]

    if not path.is_file():
        raise RotamerLibraryError(f"Rotamer library file not found: {path}")

    if path.suffix == ".npz":
        library = _load_npz(path)
    else:
        library = parse_rotamer_text(path)

    _DATA_CACHE[key] = library
    return library


def _load_npz(path: Path) -> RotamerLibrary:
    """Read a library from a NumPy archive."""
    try:
        with np.load(path, allow_pickle=False) as data:
            backbone = data["backbone"]
            rotamer_sets = {}
            for aa in data["amino_acids"]:
                aa = str(aa)
                rotamer_sets[aa] = RotamerSet(
                    aa=aa,
                    atom_names=[str(n) for n in data[f"{aa}_atoms"]],
                    coords=data[f"{aa}_coords"],
                    probabilities=data[f"{aa}_probs"],
                )
    except (OSError, ValueError, KeyError) as e:
        raise RotamerLibraryError(f"Could not read rotamer library {path}: {e}") from e

    return RotamerLibrary(rotamer_sets, backbone)


def parse_rotamer_text(path: Union[str, Path]) -> RotamerLibrary:
    """
    Parse a text-format rotamer library.

    Args:
        path: Path to the text file

    Returns:
        RotamerLibrary instance

    Raises:
        RotamerLibraryError: on unreadable files or malformed records
    """
    path = Path(path)
    try:
        lines = path.read_text().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise RotamerLibraryError(f"Could not read rotamer library {path}: {e}") from e

    backbone: Dict[str, list] = {}
    atoms: Dict[str, list] = {}
    rotamers: Dict[str, list] = {}
    probs: Dict[str, list] = {}
    current = None

    for lineno, line in enumerate(lines, 1):
        fields = line.split()
        if not fields or fields[0].startswith("#"):
            continue
        record = fields[0].upper()
        try:
            if record == "BACKBONE":
                backbone[fields[1].upper()] = [float(v) for v in fields[2:5]]
            elif record == "RESIDUE":
                current = fields[1].upper()
                atoms[current] = fields[2:]
                rotamers.setdefault(current, [])
                probs.setdefault(current, [])
            elif record == "ROTAMER":
                if current is None:
                    raise RotamerLibraryError("ROTAMER record before any RESIDUE record")
                values = [float(v) for v in fields[1:]]
                expected = 1 + 3 * len(atoms[current])
                if len(values) != expected:
                    raise RotamerLibraryError(
                        f"expected {expected} numbers for {current}, got {len(values)}"
                    )
                probs[current].append(values[0])
                rotamers[current].append(np.array(values[1:]).reshape(-1, 3))
            else:
                raise RotamerLibraryError(f"unknown record type '{fields[0]}'")
        except (ValueError, IndexError, RotamerLibraryError) as e:
            raise RotamerLibraryError(f"{path}:{lineno}: {e}") from e

    missing = [name for name in BACKBONE_ORDER if name not in backbone]
    if missing:
        raise RotamerLibraryError(f"{path}: missing BACKBONE records for {', '.join(missing)}")

    rotamer_sets = {}
    for aa, atom_names in atoms.items():
        coords = np.array(rotamers[aa]).reshape(len(rotamers[aa]), len(atom_names), 3)
        rotamer_sets[aa] = RotamerSet(
            aa=aa, atom_names=atom_names, coords=coords, probabilities=probs[aa]
        )

    return RotamerLibrary(rotamer_sets, np.array([backbone[name] for name in BACKBONE_ORDER]))


def save_rotamer_library(library: RotamerLibrary, path: Union[str, Path]) -> None:
    """
    Write a library as a ``.npz`` archive readable by ``load_rotamer_library``.

    Args:
        library: Library to write
        path: Output path
    """
    arrays = {
        "backbone": library.backbone,
        "amino_acids": np.array(library.amino_acids),
    }
    for aa in library.amino_acids:
        rotamer_set = library.get_set(aa)
        arrays[f"{aa}_atoms"] = np.array(rotamer_set.atom_names)
        arrays[f"{aa}_coords"] = rotamer_set.coords
        arrays[f"{aa}_probs"] = rotamer_set.probabilities
    np.savez(path, **arrays)


def clear_cache():
    """Clear the data cache to free memory."""
    _DATA_CACHE.clear()
