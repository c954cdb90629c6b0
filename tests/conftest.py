import pytest

from plant_ops.services.event_logger import clear_events


@pytest.fixture(autouse=True)
def _fresh_event_log():
    clear_events()
    yield
    clear_events()
