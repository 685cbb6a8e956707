"""
Gecko profile directories with the marionette server enabled.
"""

from typing import Any, Dict, Optional
import json
import os
import shutil
import tempfile

from .log import session_logger, error_logger

PREFS_FILE = "user.js"

DEFAULT_PREFS: Dict[str, Any] = {
    'marionette.defaultPrefs.enabled': True,
    'marionette.enabled': True,
    'browser.shell.checkDefaultBrowser': False,
    'browser.sessionstore.resume_from_crash': False,
    'browser.startup.homepage_override.mstone': 'ignore',
    'toolkit.startup.max_resumed_crashes': -1,
    'datareporting.policy.dataSubmissionEnabled': False,
    'app.update.enabled': False,
}


def marionette_prefs(port: int) -> Dict[str, Any]:
    """Prefs that pin the marionette server to a port."""
    return {
        'marionette.defaultPrefs.port': port,
        'marionette.port': port,
    }


def format_pref(name: str, value: Any) -> str:
    """Render a single user.js line."""
    return f'user_pref({json.dumps(name)}, {json.dumps(value)});'


class Profile:
    """
    Profile directory used by one session.

    Temporary profiles are removed on cleanup; profiles created at a
    caller-supplied path are left in place.
    """

    def __init__(self, path: str, temporary: bool = False, prefs: Optional[Dict[str, Any]] = None):
        self.path = path
        self.temporary = temporary
        self.prefs: Dict[str, Any] = dict(prefs or {})

    @classmethod
    def create(cls, path: Optional[str] = None, prefs: Optional[Dict[str, Any]] = None) -> 'Profile':
        """
        Create a profile and write its prefs.

        Args:
            path: Directory to use (created if missing). A temporary
                directory is used when omitted.
            prefs: Prefs layered over DEFAULT_PREFS

        Returns:
            Profile ready to be passed to the runtime
        """
        merged = dict(DEFAULT_PREFS)
        merged.update(prefs or {})

        if path:
            path = os.path.abspath(os.path.expanduser(path))
            os.makedirs(path, exist_ok=True)
            profile = cls(path, temporary=False, prefs=merged)
        else:
            profile = cls(tempfile.mkdtemp(prefix='graphene-profile-'), temporary=True, prefs=merged)

        try:
            profile.write_prefs()
        except OSError:
            profile.cleanup()
            raise

        session_logger.debug(f"Profile ready at {profile.path}")
        return profile

    @property
    def prefs_path(self) -> str:
        return os.path.join(self.path, PREFS_FILE)

    def write_prefs(self):
        """Write all prefs to user.js, replacing any previous content."""
        lines = [format_pref(name, value) for name, value in self.prefs.items()]
        with open(self.prefs_path, 'w', encoding='utf-8') as fh:
            fh.write('\n'.join(lines) + '\n')

    def cleanup(self):
        """Remove the directory if it is temporary. Safe to call multiple times."""
        if not self.temporary or not os.path.isdir(self.path):
            return
        try:
            shutil.rmtree(self.path)
            session_logger.debug(f"Removed profile {self.path}")
        except OSError as e:
            error_logger.error(f"Failed to remove profile {self.path}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False

    def __repr__(self):
        return f"Profile(path={self.path!r}, temporary={self.temporary})"
