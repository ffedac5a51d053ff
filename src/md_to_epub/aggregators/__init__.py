"""Aggregators for gathering image assets into a staged package."""

from .asset_resolver import AssetResolver, deduplicate

__all__ = ["AssetResolver", "deduplicate"]
