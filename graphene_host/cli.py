"""
Standalone entry point: start graphene with marionette and keep it running
until interrupted.
"""

from typing import List, Optional
import argparse
import sys
import time

from .descriptor import get_help
from .errors import HostError
from .host import HostConfig, create_host
from .log import console, set_verbosity


def build_parser() -> argparse.ArgumentParser:
    """Parser with the host's descriptor group plus session options."""
    parser = argparse.ArgumentParser(
        prog="graphene-host",
        description="Launch graphene with a marionette server for test runners",
    )
    get_help().add_to_parser(parser)

    session = parser.add_argument_group("Session")
    session.add_argument("--port", type=int, default=HostConfig.DEFAULT_PORT,
                         help=f"marionette port (default: {HostConfig.DEFAULT_PORT})")
    session.add_argument("--profile", default=None, metavar="DIR",
                         help="profile directory (default: temporary)")
    session.add_argument("--timeout", type=float, default=HostConfig.DEFAULT_STARTUP_TIMEOUT,
                         metavar="SEC", help="seconds to wait for marionette")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("runtime_args", nargs=argparse.REMAINDER,
                        help="extra arguments passed to graphene after --")
    return parser


def _runtime_args(args: List[str]) -> List[str]:
    if args and args[0] == '--':
        return args[1:]
    return args


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = build_parser().parse_args(argv)
    set_verbosity(args.verbose)

    try:
        with create_host({
            'runtime': args.runtime,
            'port': args.port,
            'startup_timeout': args.timeout,
            'args': _runtime_args(args.runtime_args),
        }) as host:
            session = host.create_session(args.profile)
            console.print(f"[green]Marionette listening on port {session.port}[/green] (pid {session.pid})")
            console.print("[dim]Press Ctrl+C to stop[/dim]")

            while session.is_running:
                time.sleep(0.5)

            session.check_error()

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)

    except HostError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()
