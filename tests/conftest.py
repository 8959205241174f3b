import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from tests.fixtures.fakes import FakeLogos, FakeMetrics  # noqa: E402


@pytest.fixture
def fake_metrics() -> FakeMetrics:
    return FakeMetrics()


@pytest.fixture
def fake_logos() -> FakeLogos:
    return FakeLogos({"Sony": (400, 100), "Zeiss": (200, 100)})


@pytest.fixture(autouse=True)
def _clean_photostats_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith(("PHOTOSTATS_", "LOG_")):
            monkeypatch.delenv(name, raising=False)
