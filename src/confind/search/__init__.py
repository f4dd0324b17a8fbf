"""Spatial indexing for neighbor and clash queries."""

from confind.search.proximity import ProximitySearch, DecoratedProximitySearch

__all__ = ["ProximitySearch", "DecoratedProximitySearch"]
