import os
import socket
import threading

import pytest

from webworker.server import create_server_socket, serve_forever

TEST_PAGE = "<b>Welcome!</b>\nDate: <cs371date>\nServer: <cs371server>\n"
PHOTO_SIZE = 1024


@pytest.fixture
def site(tmp_path):
    (tmp_path / "test.html").write_text(TEST_PAGE, encoding="utf-8")
    (tmp_path / "photo.png").write_bytes(os.urandom(PHOTO_SIZE))
    (tmp_path / "anim.gif").write_bytes(b"GIF89a" + bytes(range(256)))
    (tmp_path / "shot.jpg").write_bytes(b"\xff\xd8\xff\xe0" + os.urandom(2048) + b"\xff\xd9")
    (tmp_path / "notes.txt").write_text("not served\n")
    return tmp_path


def start_server(root, **worker_options):
    s = create_server_socket("127.0.0.1", 0)
    thread = threading.Thread(target=serve_forever, args=(s,), kwargs=dict(root=str(root), **worker_options),
                              daemon=True)
    thread.start()
    return s, thread


def stop_server(s, thread):
    try:
        s.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    s.close()
    thread.join(timeout=5)


@pytest.fixture
def live_server(site):
    s, thread = start_server(site, timeout=2.0)
    yield "127.0.0.1", s.getsockname()[1]
    stop_server(s, thread)


@pytest.fixture
def strict_server(site):
    s, thread = start_server(site, timeout=2.0, strict_status=True)
    yield "127.0.0.1", s.getsockname()[1]
    stop_server(s, thread)
