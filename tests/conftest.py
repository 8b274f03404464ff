"""Shared fixtures: a throwaway SQLite store and fake serial hardware."""

import os
import sys
import tempfile
import threading
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Point settings at SQLite before parkgate.database builds its engine
_TMP = tempfile.mkdtemp(prefix="parkgate-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP, 'default.db')}")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP, "logs"))
os.environ.setdefault("GATE_ENABLED", "false")

import pytest
from sqlalchemy.orm import sessionmaker
from parkgate.database import build_engine, create_tables
from parkgate.models.driver import Driver


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'parkgate.db'}")
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def add_driver(session_factory):
    def _add(document_id="DOC-1", plate_number="ABC123", **fields):
        with session_factory() as session:
            session.add(Driver(document_id=document_id, plate_number=plate_number, **fields))
            session.commit()
    return _add


class FakeSerial:
    """Stands in for serial.Serial: records writes, replays queued reads."""

    def __init__(self, chunks=None):
        self.written = []
        self.chunks = list(chunks or [])
        self.closed = False
        self._lock = threading.Lock()

    def write(self, data):
        self.written.append(bytes(data))
        return len(data)

    def read(self, size=1):
        with self._lock:
            if self.chunks:
                return self.chunks.pop(0)
        time.sleep(0.01)
        return b""

    def close(self):
        self.closed = True


class FakeLink:
    """Minimal GateLink double for controller and router tests."""

    def __init__(self, available=True, send_ok=True):
        self.available = available
        self.send_ok = send_ok
        self.port_name = "/dev/ttyFAKE" if available else None
        self.sent = []
        self.stopped = False

    def start(self, on_frame):
        return self.available

    def send(self, command):
        if not self.available or not self.send_ok:
            return False
        self.sent.append(command)
        return True

    def stop(self):
        self.stopped = True


@pytest.fixture
def make_serial():
    return FakeSerial


@pytest.fixture
def make_link():
    return FakeLink
