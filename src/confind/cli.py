"""
Command-line interface for confind.

Provides the `confind` command, which writes a tab-separated report of
contacts, freedom, crowdedness, interference and backbone interactions.
"""

import sys

import click

from confind import __version__


@click.command()
@click.argument("pdb_file", type=click.Path(exists=True), required=False)
@click.option("-r", "--rotlib", type=click.Path(exists=True), help="Rotamer library (.npz or text)")
@click.option("-O", "--output", type=click.Path(), help="Output file path (default: stdout)")
@click.option("--dcut", type=float, default=25.0, help="CA-CA neighbor cutoff (A)")
@click.option("--clash-dist", type=float, default=3.0, help="Rotamer-backbone clash distance (A)")
@click.option("--cont-dist", type=float, default=3.0, help="Rotamer-rotamer contact distance (A)")
@click.option("--count-cb", is_flag=True, help="Count CB as a side-chain atom")
@click.option("--freedom-type", type=click.IntRange(1, 3), default=2, help="Freedom formula")
@click.option("--lo-cut", type=float, default=0.5, help="Low collision-probability cutoff")
@click.option("--hi-cut", type=float, default=0.8, help="High collision-probability cutoff")
@click.option("--cdcut", type=float, default=0.01, help="Minimum reported contact degree")
@click.option("--incut", type=float, default=0.0, help="Minimum reported interference")
@click.option("--bb-dcut", type=float, default=3.5, help="Backbone interaction cutoff (A)")
@click.option("--log", "log_file", type=click.Path(), help="Write rotamer decisions to this file")
@click.option("--append-log", is_flag=True, help="Append to the rotamer log instead of overwriting")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.option("--version", is_flag=True, help="Show version and exit")
def main(
    pdb_file,
    rotlib,
    output,
    dcut,
    clash_dist,
    cont_dist,
    count_cb,
    freedom_type,
    lo_cut,
    hi_cut,
    cdcut,
    incut,
    bb_dcut,
    log_file,
    append_log,
    verbose,
    version,
):
    """
    confind: rotamer-based contact degree analysis

    Places side-chain rotamers at every position of PDB_FILE and reports
    how much residues can come into contact.

    Example usage:

        confind -r rotlib.npz input.pdb

        confind -v -r rotlib.npz input.pdb -O input.cont --log rotamers.log
    """
    if version:
        click.echo(f"confind version {__version__}")
        return
    if pdb_file is None:
        raise click.UsageError("Missing argument 'PDB_FILE'.")
    if rotlib is None:
        raise click.UsageError("Missing option '-r' / '--rotlib'.")

    if verbose:
        click.echo(f"confind v{__version__}", err=True)
        click.echo(f"Input: {pdb_file}", err=True)
        click.echo(f"Rotamer library: {rotlib}", err=True)

    try:
        from confind import ConFind, ConFindConfig
        from confind.io import read_pdb_file

        config = ConFindConfig(
            dcut=dcut,
            clash_dist=clash_dist,
            cont_dist=cont_dist,
            bb_dist=bb_dcut,
            count_cb=count_cb,
            lo_coll_prob_cut=lo_cut,
            hi_coll_prob_cut=hi_cut,
            freedom_type=freedom_type,
            verbose=verbose,
        )
        molecule = read_pdb_file(pdb_file)
        if verbose:
            chains = ", ".join(molecule.get_chain_ids())
            click.echo(f"Read {molecule.nres} residues in chains {chains}", err=True)
        cf = ConFind.from_library_file(rotlib, molecule, config)

        if log_file:
            cf.open_log_file(log_file, append=append_log)
        try:
            lines = _report(cf, molecule, cdcut, incut)
        finally:
            cf.close_log_file()

        with click.open_file(output or "-", "w") as f:
            for line in lines:
                f.write(line + "\n")

        if verbose:
            click.echo(f"Done: {molecule.nres} residues", err=True)

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        if verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


def _report(cf, molecule, cdcut: float, incut: float) -> list:
    """Build the report lines for a whole structure."""
    lines = []

    contacts = cf.get_contacts(molecule, cdcut)
    contacts.sort_by_degree()
    for c in contacts:
        lines.append(f"contact\t{c.src.label}\t{c.dst.label}\t{c.degree:.6f}\t{c.src.name}\t{c.dst.name}")

    for res in molecule.residues:
        freedom = cf.get_freedom(res)
        lines.append(f"freedom\t{res.label}\t{freedom:.6f}\t{res.name}")

    for res in molecule.residues:
        lines.append(f"crowdedness\t{res.label}\t{cf.get_crowdedness(res):.6f}\t{res.name}")

    for c in cf.get_interference(molecule, incut):
        lines.append(f"interfering\t{c.src.label}\t{c.dst.label}\t{c.degree:.6f}\t{c.src.name}\t{c.dst.name}")

    for c in cf.get_bb_interaction(molecule):
        lines.append(f"bbinteraction\t{c.src.label}\t{c.dst.label}\t{c.degree:.6f}\t{c.src.name}\t{c.dst.name}")

    return lines


if __name__ == "__main__":
    main()
