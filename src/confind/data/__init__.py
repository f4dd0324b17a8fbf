"""Data loading module for rotamer libraries."""

from confind.data.loader import load_rotamer_library, parse_rotamer_text, save_rotamer_library

__all__ = ["load_rotamer_library", "parse_rotamer_text", "save_rotamer_library"]
