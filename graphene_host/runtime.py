"""
Locate the graphene executable from a --runtime path.
"""

from typing import List, Optional
import os
import sys

from .errors import RuntimeNotFoundError
from .log import host_logger

RUNTIME_ENV = "GRAPHENE_RUNTIME"

# Relative locations of the executable inside a runtime directory
BINARY_CANDIDATES = {
    'darwin': [
        os.path.join('Graphene.app', 'Contents', 'MacOS', 'graphene'),
        os.path.join('Contents', 'MacOS', 'graphene'),
        'graphene',
    ],
    'win32': [
        'graphene.exe',
        os.path.join('graphene', 'graphene.exe'),
    ],
    'linux': [
        'graphene',
        os.path.join('graphene', 'graphene'),
    ],
}


def binary_candidates(platform: str = sys.platform) -> List[str]:
    """Candidate executable paths, relative to a runtime directory."""
    if platform.startswith('linux'):
        platform = 'linux'
    return BINARY_CANDIDATES.get(platform, BINARY_CANDIDATES['linux'])


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def resolve_runtime(runtime: Optional[str] = None, platform: str = sys.platform) -> str:
    """
    Resolve the graphene executable.

    Args:
        runtime: Path to the executable or to a directory containing it.
            Falls back to the GRAPHENE_RUNTIME environment variable.
        platform: sys.platform style name selecting the directory layout

    Returns:
        Absolute path to the executable
    """
    runtime = runtime or os.environ.get(RUNTIME_ENV)
    if not runtime:
        raise RuntimeNotFoundError(
            f"No graphene runtime given. Pass --runtime or set {RUNTIME_ENV}"
        )

    path = os.path.abspath(os.path.expanduser(runtime))

    if not os.path.exists(path):
        raise RuntimeNotFoundError(f"Graphene runtime not found: {path}")

    if os.path.isfile(path):
        if not _is_executable(path):
            raise RuntimeNotFoundError(f"Graphene runtime is not executable: {path}")
        host_logger.debug(f"Using runtime binary {path}")
        return path

    candidates = [os.path.join(path, rel) for rel in binary_candidates(platform)]
    for candidate in candidates:
        if _is_executable(candidate):
            host_logger.debug(f"Found runtime binary {candidate}")
            return candidate

    raise RuntimeNotFoundError(
        f"No graphene executable in {path} (tried: {', '.join(candidates)})"
    )
