"""Shared pytest configuration and fixtures for the histocam test suite."""

import sys
import threading
import time
from pathlib import Path

import numpy as np
import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from histocam.image_processor import ImageProcessor
from histocam.session import SessionState
from histocam.sink import FrameSink


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require a physical camera",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Test Doubles
# =============================================================================

class FakeSource:
    """In-memory video source with call accounting."""

    def __init__(self, frame=None, available=True, read_delay=0.0):
        if frame is None:
            frame = make_color_frame()
        self.frame = frame
        self.available = available
        self.read_delay = read_delay
        self.opened = False
        self.fail_reads = 0
        self.open_calls = 0
        self.read_calls = 0
        self.release_calls = 0
        self.max_concurrent_reads = 0
        self._concurrent_reads = 0
        self._lock = threading.Lock()

    def open(self, device_index=0):
        self.open_calls += 1
        self.opened = self.available
        return self.opened

    def is_open(self):
        return self.opened

    def read_frame(self):
        with self._lock:
            self.read_calls += 1
            self._concurrent_reads += 1
            self.max_concurrent_reads = max(self.max_concurrent_reads, self._concurrent_reads)
        try:
            if self.read_delay:
                time.sleep(self.read_delay)
            if not self.opened:
                return None
            if self.fail_reads:
                self.fail_reads -= 1
                raise RuntimeError("transient read failure")
            return self.frame.copy()
        finally:
            with self._lock:
                self._concurrent_reads -= 1

    def release(self):
        self.release_calls += 1
        self.opened = False


def make_color_frame(width=64, height=48, seed=0):
    """Random 8-bit BGR frame."""
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def color_frame():
    return make_color_frame()


@pytest.fixture
def processor():
    return ImageProcessor()


@pytest.fixture
def session():
    return SessionState()


@pytest.fixture
def sink():
    return FrameSink(maxsize=8)


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def wait_for():
    """Poll a predicate until it holds or the timeout expires."""

    def _wait_for(predicate, timeout=2.0, interval=0.005):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait_for
