"""
Command descriptor published to the test runner's CLI.
Single source of truth for the host's argument group and its options.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping
import argparse


@dataclass(frozen=True)
class ArgumentSpec:
    """Specification for a single command-line option."""
    help: str

    def __post_init__(self):
        if not self.help or not self.help.strip():
            raise ValueError("argument help must be a non-empty string")


@dataclass(frozen=True)
class GroupSpec:
    """Title and description of the argument group."""
    title: str
    description: str


@dataclass(frozen=True)
class CommandDescriptor:
    """Static metadata a CLI framework uses to render help and parse flags."""
    group: GroupSpec
    arguments: Mapping[str, ArgumentSpec] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the options mapping so the descriptor can be shared read-only.
        object.__setattr__(self, 'arguments', MappingProxyType(dict(self.arguments)))

    def __eq__(self, other):
        if not isinstance(other, CommandDescriptor):
            return NotImplemented
        return self.group == other.group and dict(self.arguments) == dict(other.arguments)

    def __hash__(self):
        return hash((self.group, tuple(sorted(self.arguments.items()))))

    def as_dict(self) -> Dict[str, Any]:
        """
        Render the descriptor as plain nested dictionaries.

        Returns:
            {"group": {...}, "arguments": {"--option": {"help": ...}}}
        """
        return {
            'group': {
                'title': self.group.title,
                'description': self.group.description,
            },
            'arguments': {
                name: {'help': spec.help}
                for name, spec in self.arguments.items()
            },
        }

    def add_to_parser(self, parser: argparse.ArgumentParser):
        """
        Register the group and its options on an argparse parser.

        Args:
            parser: Parser owned by the enclosing CLI

        Returns:
            The argparse argument group that was created
        """
        group = parser.add_argument_group(self.group.title, self.group.description)
        for name, spec in self.arguments.items():
            group.add_argument(name, help=spec.help)
        return group


# ============================================================================
# DESCRIPTOR - built once at import time, never mutated
# ============================================================================

HELP = CommandDescriptor(
    group=GroupSpec(
        title='Graphene Host',
        description='Graphene host lets you run marionette tests in graphene'
    ),
    arguments={
        '--runtime': ArgumentSpec(help='path to find graphene'),
    }
)


def get_help() -> CommandDescriptor:
    """Return the host's command descriptor."""
    return HELP
