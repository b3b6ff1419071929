"""Connectivity package."""

from daybook.services.connectivity.interface import (
    ConnectivityListener,
    ConnectivitySource,
)
from daybook.services.connectivity.probe import TcpProbeConnectivity

__all__ = [
    "ConnectivityListener",
    "ConnectivitySource",
    "TcpProbeConnectivity",
]
