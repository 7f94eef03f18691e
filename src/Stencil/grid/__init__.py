"""Blocks and their ghost regions.

This package provides:
- Block: interior values plus optional ghost regions and exchange strategy
- pure_block / composed_block / communicative_block: the three block variants
- GhostRegion: halo storage next to one face
"""

from .ghost import GhostRegion
from .block import Block, pure_block, composed_block, communicative_block

__all__ = [
    "GhostRegion",
    "Block",
    "pure_block",
    "composed_block",
    "communicative_block",
]
