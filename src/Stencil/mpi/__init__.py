"""MPI process topology and ghost exchange.

This package provides:
- CartesianTopology: periodic process grid with neighbor discovery
- GhostExchangeStrategy: strategies for filling ghost regions (direct/custom/numpy)
"""

from .decomposition import CartesianTopology
from .halo import (
    GhostExchangeStrategy,
    DirectCopyExchange,
    TransportExchange,
    create_ghost_exchange,
)

__all__ = [
    "CartesianTopology",
    "GhostExchangeStrategy",
    "DirectCopyExchange",
    "TransportExchange",
    "create_ghost_exchange",
]
