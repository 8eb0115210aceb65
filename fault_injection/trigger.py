import threading
from typing import Callable

TriggerFunction = Callable[[str, str, int], None]


def _noop(component: str, file_name: str, line: int) -> None:
    return None


_TRIGGER: TriggerFunction = _noop
_TRIGGER_LOCK = threading.Lock()


def set_trigger_function(func: TriggerFunction) -> None:
    global _TRIGGER
    if not callable(func):
        raise TypeError(f"trigger function must be callable, got {type(func).__name__}")
    with _TRIGGER_LOCK:
        _TRIGGER = func


def get_trigger_function() -> TriggerFunction:
    with _TRIGGER_LOCK:
        return _TRIGGER


def reset_trigger_function() -> None:
    set_trigger_function(_noop)


def invoke_trigger(component: str, file_name: str, line: int) -> None:
    # Runs on the faulting thread. Whatever the callback raises escapes the
    # guard unchanged.
    func = get_trigger_function()
    func(component, file_name, line)
