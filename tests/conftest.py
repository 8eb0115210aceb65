import pytest

from fault_injection import config
from fault_injection.faults import reset
from fault_injection.trigger import reset_trigger_function, set_trigger_function


@pytest.fixture(autouse=True)
def clean_fault_state():
    reset()
    reset_trigger_function()
    config.clear_config()
    yield
    reset()
    reset_trigger_function()
    config.clear_config()


@pytest.fixture
def trigger_calls():
    calls: list[tuple[str, str, int]] = []
    set_trigger_function(lambda component, file_name, line: calls.append((component, file_name, line)))
    return calls
