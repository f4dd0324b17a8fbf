#!/usr/bin/env python3
"""
Convert a text-format rotamer library to NumPy archive format.

The text format has BACKBONE, RESIDUE and ROTAMER records (see
``confind.data.loader``); the archive loads much faster.

Usage:
    python scripts/convert_rotamers.py rotlib.txt [--output rotlib.npz]
"""

import argparse
from pathlib import Path

from confind.data.loader import parse_rotamer_text, save_rotamer_library


def main():
    parser = argparse.ArgumentParser(
        description="Convert a text rotamer library to NumPy format"
    )
    parser.add_argument("source", type=Path, help="Text rotamer library")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output .npz file (default: source with .npz suffix)",
    )
    args = parser.parse_args()

    output = args.output or args.source.with_suffix(".npz")
    output.parent.mkdir(parents=True, exist_ok=True)

    print(f"Parsing rotamer library from {args.source}...")
    library = parse_rotamer_text(args.source)

    for aa in library.amino_acids:
        print(f"  {aa}: {library.num_rotamers(aa)} rotamers")

    save_rotamer_library(library, output)
    print(f"  Saved to {output} ({output.stat().st_size / 1024:.1f} KB)")


if __name__ == "__main__":
    main()
