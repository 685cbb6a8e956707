"""
Graphene host plugin for marionette test runners.
Exports the command descriptor and the host/session factories.
"""

from . import host as _host
from .descriptor import HELP, CommandDescriptor, get_help
from .host import create_host, create_session

help = HELP


class HostPlugin:
    """
    Forwards host and session construction to a collaborator.

    The collaborator is anything exposing ``create_host`` and
    ``create_session``; arguments, results and errors pass through untouched.
    """

    def __init__(self, collaborator):
        self.collaborator = collaborator

    @property
    def help(self) -> CommandDescriptor:
        return get_help()

    def create_host(self, *args, **kwargs):
        return self.collaborator.create_host(*args, **kwargs)

    def create_session(self, *args, **kwargs):
        return self.collaborator.create_session(*args, **kwargs)


plugin = HostPlugin(_host)

__all__ = [
    'HELP',
    'HostPlugin',
    'create_host',
    'create_session',
    'get_help',
    'help',
    'plugin',
]
