"""
Exceptions raised while building hosts and sessions.
"""


class HostError(RuntimeError):
    """Base class for every graphene host failure."""


class ConfigError(HostError):
    """Invalid host or session option."""


class RuntimeNotFoundError(HostError):
    """The graphene executable could not be located."""


class SessionStartError(HostError):
    """The runtime did not come up with a marionette server."""


class RuntimeCrashError(HostError):
    """The runtime process exited while a session was using it."""

    def __init__(self, message: str, returncode=None):
        super().__init__(message)
        self.returncode = returncode


class ProtocolError(HostError):
    """Malformed packet received from the marionette server."""
