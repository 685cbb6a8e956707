import os
import socket
import stat
import sys
import textwrap

import pytest

FAKE_RUNTIME = textwrap.dedent('''\
    #!{python}
    import json
    import re
    import signal
    import socket
    import sys
    import time

    args = sys.argv[1:]
    if '--crash' in args:
        sys.exit(3)
    if '--hang' in args:
        time.sleep(60)
        sys.exit(0)

    profile = args[args.index('-profile') + 1]
    port = None
    with open(profile + '/user.js') as fh:
        for line in fh:
            match = re.match(r'user_pref\\("marionette\\.port", (\\d+)\\);', line)
            if match:
                port = int(match.group(1))

    signal.signal(signal.SIGTERM, lambda *a: sys.exit(0))

    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    server.bind(('127.0.0.1', port))
    server.listen(5)
    body = json.dumps({{"applicationType": "gecko", "marionetteProtocol": 3}})
    while True:
        conn, _ = server.accept()
        conn.sendall(('%d:%s' % (len(body), body)).encode())
        conn.close()
''')


@pytest.fixture
def free_port():
    """A local TCP port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(('127.0.0.1', 0))
        return sock.getsockname()[1]


@pytest.fixture
def free_ports():
    """Two distinct local TCP ports nothing is listening on."""
    socks = [socket.socket(socket.AF_INET, socket.SOCK_STREAM) for _ in range(2)]
    try:
        for sock in socks:
            sock.bind(('127.0.0.1', 0))
        return [sock.getsockname()[1] for sock in socks]
    finally:
        for sock in socks:
            sock.close()


def _make_executable(path):
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def make_executable():
    """Helper that turns a path into a tiny executable shell script."""
    return _make_executable


@pytest.fixture
def runtime_dir(tmp_path):
    """Directory laid out like a linux graphene build."""
    root = tmp_path / "runtime"
    (root / "graphene").mkdir(parents=True)
    _make_executable(root / "graphene" / "graphene")
    return root


@pytest.fixture
def fake_runtime(tmp_path):
    """Executable that speaks just enough marionette to pass the handshake."""
    if sys.platform == 'win32':
        pytest.skip("fake runtime relies on a shebang script")
    script = tmp_path / "bin" / "graphene"
    script.parent.mkdir()
    script.write_text(FAKE_RUNTIME.format(python=sys.executable))
    script.chmod(0o755)
    return str(script)


@pytest.fixture(autouse=True)
def no_runtime_env(monkeypatch):
    monkeypatch.delenv("GRAPHENE_RUNTIME", raising=False)
