"""Cocktail Catalog: ingredient relationship graph, availability tiers and recipe lineage."""

from .utils.constants import APP_VERSION

__version__ = APP_VERSION
