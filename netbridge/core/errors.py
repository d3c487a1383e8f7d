"""Exceptions raised at the public seams of the bridge."""


class NetBridgeError(Exception):
    """Base class for netbridge errors."""


class UnsupportedOperation(NetBridgeError):
    """A host call named a method the bridge does not implement."""

    def __init__(self, method: str):
        super().__init__(f"Method not implemented: {method}")
        self.method = method


class OSQueryUnavailable(NetBridgeError):
    """The OS could not report network state (service absent, permission denied)."""


class RegistrationFailure(NetBridgeError):
    """Registering for OS network-change notifications failed."""
