"""
Graphene host and sessions.

A host knows where the graphene runtime lives. Each session launches one
runtime process against its own profile and waits until the marionette
server inside it is ready for the test runner.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Union
import os
import shlex
import subprocess

from .errors import ConfigError, HostError, RuntimeCrashError, SessionStartError
from .log import host_logger, session_logger, error_logger
from .marionette import port_in_use, wait_for_marionette
from .profile import Profile, marionette_prefs
from .runtime import resolve_runtime


@dataclass
class HostConfig:
    """Options shared by every session of a host."""
    DEFAULT_PORT = 2828
    DEFAULT_STARTUP_TIMEOUT = 30.0
    DEFAULT_SHUTDOWN_TIMEOUT = 5.0

    runtime: Optional[str] = None
    port: int = DEFAULT_PORT
    startup_timeout: float = DEFAULT_STARTUP_TIMEOUT
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT
    args: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    prefs: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.validate()

    def validate(self):
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ConfigError(f"Invalid marionette port: {self.port!r}")
        for name in ('startup_timeout', 'shutdown_timeout'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")

        if isinstance(self.args, str):
            self.args = shlex.split(self.args)
        elif not isinstance(self.args, (list, tuple)) or not all(isinstance(a, str) for a in self.args):
            raise ConfigError(f"args must be a list of strings, got {self.args!r}")
        else:
            self.args = list(self.args)

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> 'HostConfig':
        """
        Build a config from a runner option mapping.

        Accepts CLI style keys (``--runtime``), snake case and camel case
        (``startupTimeout``). Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in (options or {}).items():
            if not isinstance(key, str):
                continue
            name = _normalize_key(key)
            if name in known and value is not None:
                values[name] = value

        if 'port' in values:
            try:
                values['port'] = int(values['port'])
            except (TypeError, ValueError):
                raise ConfigError(f"Invalid marionette port: {values['port']!r}")
        return cls(**values)


def _normalize_key(key: str) -> str:
    key = key.lstrip('-').replace('-', '_')
    out = []
    for ch in key:
        if ch.isupper():
            out.append('_')
            out.append(ch.lower())
        else:
            out.append(ch)
    return ''.join(out)


class Session:
    """
    One running graphene process with marionette enabled.

    Lifecycle: created -> running -> destroyed.
    """

    LOOPBACK = "127.0.0.1"

    def __init__(self, host: 'GrapheneHost', profile: Optional[str] = None,
                 port: Optional[int] = None, prefs: Optional[Dict[str, Any]] = None):
        self.host = host
        self.port = port or host.config.port
        self.profile_path = profile
        self.extra_prefs = dict(prefs or {})

        self.profile: Optional[Profile] = None
        self.process: Optional[subprocess.Popen] = None
        self.handshake: Dict[str, Any] = {}
        self.returncode: Optional[int] = None
        self.state = "created"

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    @property
    def is_running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def start(self) -> 'Session':
        """Build the profile, launch the runtime and wait for marionette."""
        if self.state != "created":
            raise HostError(f"Session cannot start from state '{self.state}'")

        config = self.host.config
        prefs = dict(config.prefs)
        prefs.update(self.extra_prefs)
        prefs.update(marionette_prefs(self.port))

        try:
            if port_in_use(self.LOOPBACK, self.port):
                raise SessionStartError(f"port {self.port} already in use")

            self.profile = Profile.create(self.profile_path, prefs)
            command = self.host.command(self.profile)
            env = dict(os.environ)
            env.update(config.env)

            session_logger.info(f"Starting graphene on port {self.port}")
            session_logger.debug(f"Command: {' '.join(command)}")
            try:
                self.process = subprocess.Popen(
                    command,
                    env=env,
                    stdin=subprocess.DEVNULL,
                )
            except OSError as e:
                raise SessionStartError(f"Failed to launch {command[0]}: {e}") from e

            self.handshake = wait_for_marionette(
                self.LOOPBACK,
                self.port,
                config.startup_timeout,
                process=self.process,
            )
            if self.process.poll() is not None:
                raise SessionStartError(
                    f"Runtime exited with code {self.process.returncode} after marionette answered"
                )
        except BaseException:
            self._cleanup()
            self.state = "destroyed"
            raise

        self.state = "running"
        session_logger.info(
            f"Session ready (pid {self.pid}, "
            f"{self.handshake.get('applicationType', 'unknown')} "
            f"protocol {self.handshake.get('marionetteProtocol', '?')})"
        )
        return self

    def check_error(self, error: Optional[BaseException] = None):
        """
        Translate a test failure into a crash report when the runtime died.

        Returns:
            ``error`` unchanged if the runtime is still alive or was
            stopped by ``destroy()``
        """
        if self.process is None or self.state == "destroyed":
            return error

        code = self.process.poll()
        if code is None:
            return error

        self.returncode = code
        crash = RuntimeCrashError(f"Graphene exited unexpectedly with code {code}", returncode=code)
        error_logger.error(str(crash))
        if error is not None:
            raise crash from error
        raise crash

    # ==================== Cleanup ====================

    def _stop_process(self, errors: List[str]):
        if self.process is None:
            return

        timeout = self.host.config.shutdown_timeout
        try:
            if self.process.poll() is None:
                self.process.terminate()
                try:
                    self.process.wait(timeout=timeout)
                except subprocess.TimeoutExpired:
                    session_logger.warning(f"pid {self.pid} ignored terminate, killing")
                    self.process.kill()
                    self.process.wait(timeout=timeout)
            self.returncode = self.process.returncode
        except Exception as e:
            errors.append(f"process: {e}")

    def _cleanup(self):
        """Internal cleanup; failures are logged, not raised."""
        errors: List[str] = []
        self._stop_process(errors)

        if self.profile:
            try:
                self.profile.cleanup()
            except Exception as e:
                errors.append(f"profile: {e}")

        if errors:
            error_logger.error(f"Session cleanup errors: {', '.join(errors)}")

    def destroy(self) -> Optional[int]:
        """Stop the runtime and remove the profile. Safe to call multiple times."""
        if self.state == "destroyed":
            return self.returncode

        self._cleanup()
        self.state = "destroyed"
        self.host._forget(self)
        session_logger.info(f"Session on port {self.port} destroyed (exit code {self.returncode})")
        return self.returncode

    # ==================== Context Manager ====================

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.destroy()
        return False

    def __repr__(self):
        return f"Session(port={self.port}, pid={self.pid}, state={self.state!r})"


class GrapheneHost:
    """Launches graphene sessions from one runtime location."""

    def __init__(self, config: HostConfig):
        self.config = config
        self.binary = resolve_runtime(config.runtime)
        self.sessions: List[Session] = []
        host_logger.info(f"Graphene host using {self.binary}")

    def command(self, profile: Profile) -> List[str]:
        """Command line that starts the runtime against a profile."""
        return [
            self.binary,
            '-profile', profile.path,
            '-marionette',
            '-no-remote',
            *self.config.args,
        ]

    def create_session(self, profile: Optional[str] = None,
                       options: Optional[Mapping[str, Any]] = None) -> Session:
        """
        Start a new session.

        Args:
            profile: Profile directory to use; a temporary one when omitted
            options: Per-session overrides (``port``, ``prefs``)

        Returns:
            Running Session
        """
        options = dict(options or {})
        port = options.get('port')
        if port is not None:
            port = HostConfig.from_options({**asdict(self.config), 'port': port}).port
        else:
            port = self.config.port

        for live in self.sessions:
            if live.port == port and live.state == "running":
                raise SessionStartError(f"port {port} already in use by session pid {live.pid}")

        session = Session(self, profile=profile, port=port, prefs=options.get('prefs'))
        session.start()
        self.sessions.append(session)
        return session

    def _forget(self, session: Session):
        if session in self.sessions:
            self.sessions.remove(session)

    def destroy(self):
        """Destroy every live session. Safe to call multiple times."""
        for session in list(self.sessions):
            session.destroy()
        host_logger.debug("Host destroyed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.destroy()
        return False


def create_host(config: Union[HostConfig, Mapping[str, Any], None] = None, **options) -> GrapheneHost:
    """
    Create a host.

    Args:
        config: HostConfig, runner option mapping, or None
        **options: Overrides applied on top of ``config``

    Returns:
        GrapheneHost with its runtime already resolved
    """
    if isinstance(config, HostConfig):
        if not options:
            return GrapheneHost(config)
        config = asdict(config)

    merged = dict(config or {})
    merged.update(options)
    return GrapheneHost(HostConfig.from_options(merged))


def create_session(host: GrapheneHost, profile: Optional[str] = None,
                   options: Optional[Mapping[str, Any]] = None) -> Session:
    """Start a session on ``host``."""
    return host.create_session(profile, options)
