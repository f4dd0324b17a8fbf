"""Tests for the rotamer library and its loaders."""

import numpy as np
import pytest

from confind.data.loader import (
    clear_cache,
    load_rotamer_library,
    parse_rotamer_text,
    save_rotamer_library,
)
from confind.errors import RotamerLibraryError
from confind.rotamers.library import PHI_PSI_BINS, RotamerLibrary, RotamerSet, phi_psi_bin

from conftest import LEU_PROBS, LEU_ROTAMERS, LIB_BACKBONE


class TestRotamerSet:
    """Test rotamer set validation and probabilities."""

    def test_shapes_validated(self):
        with pytest.raises(RotamerLibraryError):
            RotamerSet(aa="LEU", atom_names=["CB", "CG"], coords=LEU_ROTAMERS, probabilities=LEU_PROBS)
        with pytest.raises(RotamerLibraryError):
            RotamerSet(
                aa="LEU",
                atom_names=["CB", "CG", "CD1", "CD2"],
                coords=LEU_ROTAMERS,
                probabilities=[1.0],
            )

    def test_backbone_independent(self):
        rs = RotamerSet(
            aa="leu", atom_names=["CB", "CG", "CD1", "CD2"], coords=LEU_ROTAMERS, probabilities=LEU_PROBS
        )
        assert rs.aa == "LEU"
        assert rs.num_rotamers == 2
        assert not rs.backbone_dependent
        assert np.allclose(rs.probabilities_at(-60.0, -45.0), LEU_PROBS)

    def test_backbone_dependent(self):
        probs = np.full((PHI_PSI_BINS, PHI_PSI_BINS, 2), 0.5)
        probs[phi_psi_bin(-60.0), phi_psi_bin(-45.0)] = [0.9, 0.1]
        rs = RotamerSet(
            aa="LEU", atom_names=["CB", "CG", "CD1", "CD2"], coords=LEU_ROTAMERS, probabilities=probs
        )
        assert rs.backbone_dependent
        assert np.allclose(rs.probabilities_at(-60.0, -45.0), [0.9, 0.1])
        assert np.allclose(rs.probabilities_at(60.0, 60.0), [0.5, 0.5])
        # undefined phi falls back to the average over all bins
        assert rs.probabilities_at(None, -45.0).shape == (2,)

    def test_phi_psi_bin(self):
        assert phi_psi_bin(-180.0) == 0
        assert phi_psi_bin(179.9) == PHI_PSI_BINS - 1
        assert phi_psi_bin(180.0) == 0
        assert phi_psi_bin(0.0) == PHI_PSI_BINS // 2


class TestRotamerLibrary:
    """Test rotamer placement."""

    def test_lookup(self, leu_library):
        assert leu_library.amino_acids == ["LEU"]
        assert leu_library.has_amino_acid("leu")
        assert leu_library.num_rotamers("LEU") == 2
        assert leu_library.num_rotamers("TRP") == 0
        assert leu_library.atom_names("LEU") == ["CB", "CG", "CD1", "CD2"]
        assert leu_library.rotamer_probability("LEU", 1) == pytest.approx(0.4)

    def test_bad_backbone(self):
        with pytest.raises(RotamerLibraryError):
            RotamerLibrary({}, np.zeros((2, 3)))

    def test_place_on_reference_frame(self, leu_library):
        coords = leu_library.place_rotamers("LEU", leu_library.frame_transform(LIB_BACKBONE))
        assert np.allclose(coords, LEU_ROTAMERS, atol=1e-6)

    def test_place_translated(self, leu_library):
        shift = np.array([5.0, -1.0, 2.0])
        placed = leu_library.place_rotamer(LIB_BACKBONE + shift, "LEU", 0)
        assert np.allclose(placed, LEU_ROTAMERS[0] + shift, atol=1e-6)

    def test_place_rotated(self, leu_library):
        theta = np.pi / 2
        rot = np.array(
            [
                [np.cos(theta), -np.sin(theta), 0.0],
                [np.sin(theta), np.cos(theta), 0.0],
                [0.0, 0.0, 1.0],
            ]
        )
        frame = LIB_BACKBONE @ rot.T
        placed = leu_library.place_rotamer(frame, "LEU", 1)
        assert np.allclose(placed, LEU_ROTAMERS[1] @ rot.T, atol=1e-6)

    def test_unknown_amino_acid(self, leu_library):
        transform = leu_library.frame_transform(LIB_BACKBONE)
        assert leu_library.place_rotamers("TRP", transform).shape == (0, 0, 3)
        assert len(leu_library.rotamer_probabilities("TRP")) == 0


class TestLoader:
    """Test reading and writing library files."""

    def test_parse_text(self, rotlib_text):
        lib = parse_rotamer_text(rotlib_text)
        assert lib.amino_acids == ["LEU"]
        assert np.allclose(lib.backbone, LIB_BACKBONE)
        assert np.allclose(lib.get_set("LEU").coords, LEU_ROTAMERS)
        assert np.allclose(lib.rotamer_probabilities("LEU"), LEU_PROBS)

    def test_npz_round_trip(self, leu_library, tmp_path):
        path = tmp_path / "rotlib.npz"
        save_rotamer_library(leu_library, path)
        lib = load_rotamer_library(path, use_cache=False)
        assert lib.atom_names("LEU") == ["CB", "CG", "CD1", "CD2"]
        assert np.allclose(lib.get_set("LEU").coords, LEU_ROTAMERS)
        assert np.allclose(lib.backbone, LIB_BACKBONE)

    def test_cache(self, rotlib_text):
        clear_cache()
        first = load_rotamer_library(rotlib_text)
        assert load_rotamer_library(rotlib_text) is first
        assert load_rotamer_library(rotlib_text, use_cache=False) is not first
        clear_cache()

    def test_from_file(self, rotlib_text):
        lib = RotamerLibrary.from_file(rotlib_text)
        assert lib.num_rotamers("LEU") == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(RotamerLibraryError, match="not found"):
            load_rotamer_library(tmp_path / "nope.npz")

    def test_missing_backbone(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("RESIDUE ALA CB\nROTAMER 1.0 0 -1.5 0\n")
        with pytest.raises(RotamerLibraryError, match="BACKBONE"):
            parse_rotamer_text(path)

    def test_wrong_coordinate_count(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text(
            "BACKBONE N -1.2 0.8 0\nBACKBONE CA 0 0 0\nBACKBONE C 1.2 0.8 0\n"
            "RESIDUE ALA CB\nROTAMER 1.0 0 -1.5\n"
        )
        with pytest.raises(RotamerLibraryError, match=":5:"):
            parse_rotamer_text(path)

    def test_rotamer_before_residue(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("ROTAMER 1.0 0 -1.5 0\n")
        with pytest.raises(RotamerLibraryError, match="before any RESIDUE"):
            parse_rotamer_text(path)

    def test_corrupt_npz(self, tmp_path):
        path = tmp_path / "bad.npz"
        path.write_bytes(b"not an archive")
        with pytest.raises(RotamerLibraryError):
            load_rotamer_library(path, use_cache=False)
