"""Protocols for type-safe dependency injection."""
from typing import Callable, Protocol

from netbridge.core.types import RawSignal


class NetworkSampler(Protocol):
    """Protocol for reading the OS network layer."""

    name: str

    def sample_raw_network_state(self) -> RawSignal:
        """Sample reachability and active transports. May raise OSQueryUnavailable."""
        ...


class Registration(Protocol):
    """Protocol for a live OS change-notification registration."""

    def revoke(self) -> None:
        """Release the OS registration. Safe to call more than once."""
        ...


class ChangeSource(Protocol):
    """Protocol for OS network-change notification facilities."""

    name: str

    def register(self, callback: Callable[[], None]) -> Registration:
        """Start delivering change callbacks. Raises RegistrationFailure."""
        ...


class Dispatcher(Protocol):
    """Protocol for the host's designated delivery context."""

    def submit(self, fn: Callable[[], None]) -> None:
        """Schedule ``fn`` on the delivery context, preserving submission order."""
        ...

    def close(self) -> None:
        """Stop accepting work and release the context."""
        ...
