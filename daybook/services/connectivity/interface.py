"""
Abstract Connectivity Source

Exposes the device's current online state and notifies listeners when it
changes. Listeners are async callables receiving the new state.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

ConnectivityListener = Callable[[bool], Awaitable[None]]


class ConnectivitySource(ABC):
    """Online/offline state with transition events."""

    def __init__(self):
        self._listeners: list[ConnectivityListener] = []

    @abstractmethod
    def is_online(self) -> bool:
        pass

    def add_listener(self, listener: ConnectivityListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ConnectivityListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _notify(self, online: bool) -> None:
        for listener in list(self._listeners):
            await listener(online)
