"""Tests for the command-line interface."""

from click.testing import CliRunner

from confind import __version__
from confind.cli import main
from confind.io import write_pdb


def _write_inputs(tmp_path, molecule):
    pdb = tmp_path / "input.pdb"
    write_pdb(pdb, molecule)
    return str(pdb)


class TestCLI:
    """Test the confind command."""

    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_report(self, pair_molecule, rotlib_text, tmp_path):
        pdb = _write_inputs(tmp_path, pair_molecule)
        result = CliRunner().invoke(main, ["-r", str(rotlib_text), pdb])
        assert result.exit_code == 0, result.output

        lines = result.output.splitlines()
        assert "contact\tA,1\tA,2\t0.520000\tLEU\tLEU" in lines
        freedom = [l for l in lines if l.startswith("freedom")]
        crowdedness = [l for l in lines if l.startswith("crowdedness")]
        assert len(freedom) == 2
        assert len(crowdedness) == 2
        assert not any(l.startswith("bbinteraction") for l in lines)

    def test_output_file_and_log(self, pair_molecule, rotlib_text, tmp_path):
        pdb = _write_inputs(tmp_path, pair_molecule)
        out = tmp_path / "out.cont"
        log = tmp_path / "rot.log"
        result = CliRunner().invoke(
            main, ["-r", str(rotlib_text), "-O", str(out), "--log", str(log), pdb]
        )
        assert result.exit_code == 0, result.output
        assert out.read_text().startswith("contact\tA,1\tA,2")
        assert len(log.read_text().splitlines()) == 4

    def test_freedom_type_option(self, pair_molecule, rotlib_text, tmp_path):
        pdb = _write_inputs(tmp_path, pair_molecule)
        result = CliRunner().invoke(main, ["-r", str(rotlib_text), "--freedom-type", "3", pdb])
        assert result.exit_code == 0, result.output
        assert "freedom\tA,1\t0.480000\tLEU" in result.output.splitlines()

    def test_missing_rotlib_option(self, pair_molecule, tmp_path):
        pdb = _write_inputs(tmp_path, pair_molecule)
        result = CliRunner().invoke(main, [pdb])
        assert result.exit_code == 2

    def test_bad_library(self, pair_molecule, tmp_path):
        pdb = _write_inputs(tmp_path, pair_molecule)
        bad = tmp_path / "bad.txt"
        bad.write_text("RESIDUE LEU CB\n")
        result = CliRunner().invoke(main, ["-r", str(bad), pdb])
        assert result.exit_code == 1
        assert "Error:" in result.output
