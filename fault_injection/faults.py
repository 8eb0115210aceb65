"""Countdown-triggered fault injection for fallible operations.

Every guarded operation decrements ``FAULT_INJECT_COUNTER``. The call whose
decrement brings it to exactly zero raises a ``FaultError`` instead of
running. Use this to make sure error handling is exercised: run a workload,
see how many guarded calls it makes, then arm the counter with
successively lower numbers and assert the application copes with the error
that propagates up::

    calls = count_guarded_calls(workload)
    for n in range(1, calls + 1):
        with armed(n):
            ...  # run workload, expect it to handle FaultError

The decrement wraps: decrementing 0 yields ``DISABLED`` again, so a counter
left at 0 never fires.
"""

import functools
import os
import sys
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, Tuple, Type, TypeVar

from fault_injection.atomic import AtomicUInt
from fault_injection.config import load_config, log_event
from fault_injection.delay import SLEEPINESS, maybe_delay
from fault_injection.errors import AnnotatedError, FaultError, Location
from fault_injection.trigger import invoke_trigger

T = TypeVar("T")

DISABLED = (1 << 64) - 1

FAULT_INJECT_COUNTER = AtomicUInt(DISABLED, bits=64)

DEFAULT_CATCH: Tuple[Type[BaseException], ...] = (OSError,)


def _display_path(path: str) -> str:
    try:
        relative = os.path.relpath(path)
    except ValueError:
        return path
    if relative.startswith(os.pardir):
        return path
    return relative


def _call_site(stacklevel: int, component: Optional[str]) -> Location:
    # frame 0 is this helper, frame 1 the guard, frame 2 the guard's caller
    frame = sys._getframe(stacklevel + 1)
    if component is None:
        component = str(frame.f_globals.get("__name__", "")).partition(".")[0]
    return Location(component, _display_path(frame.f_code.co_filename), frame.f_lineno)


def fallible(
    computation: Callable[[], T],
    *,
    component: Optional[str] = None,
    catch: Tuple[Type[BaseException], ...] = DEFAULT_CATCH,
    stacklevel: int = 1,
) -> T:
    maybe_delay()

    if FAULT_INJECT_COUNTER.fetch_sub(1) == 1:
        location = _call_site(stacklevel, component)
        invoke_trigger(location.component, location.file_name, location.line)
        log_event(
            "warning",
            "inject",
            component=location.component,
            file=location.file_name,
            line=location.line,
            outcome="injected",
        )
        raise FaultError.at(location)

    try:
        return computation()
    except catch as exc:
        location = _call_site(stacklevel, component)
        log_event(
            "debug",
            "annotate",
            component=location.component,
            file=location.file_name,
            line=location.line,
            outcome="failed",
            error=str(exc),
        )
        raise AnnotatedError.wrap(exc, location) from exc


def guarded(
    func: Optional[Callable[..., T]] = None,
    *,
    component: Optional[str] = None,
    catch: Tuple[Type[BaseException], ...] = DEFAULT_CATCH,
) -> Any:
    def decorate(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return fallible(
                functools.partial(fn, *args, **kwargs),
                component=component,
                catch=catch,
                stacklevel=2,
            )

        return wrapper

    if func is None:
        return decorate
    return decorate(func)


@contextmanager
def armed(calls: int) -> Iterator[None]:
    """Fail the ``calls``-th guarded call made inside the block."""
    previous = FAULT_INJECT_COUNTER.swap(calls)
    try:
        yield
    finally:
        FAULT_INJECT_COUNTER.store(previous)


def count_guarded_calls(workload: Callable[[], Any]) -> int:
    previous = FAULT_INJECT_COUNTER.swap(DISABLED)
    try:
        workload()
    finally:
        remaining = FAULT_INJECT_COUNTER.swap(previous)
    return DISABLED - remaining


def reset() -> None:
    FAULT_INJECT_COUNTER.store(DISABLED)
    SLEEPINESS.store(0)


def configure_faults(faults: Dict[str, Any]) -> None:
    if not isinstance(faults, dict):
        raise ValueError(f"fault_injection must be a mapping, got {type(faults).__name__}")
    unknown = set(faults) - {"counter", "sleepiness"}
    if unknown:
        raise ValueError(f"unknown fault_injection keys: {', '.join(sorted(unknown))}")

    # validate everything before storing anything
    counter = faults.get("counter")
    sleepiness = faults.get("sleepiness")
    if counter is not None:
        FAULT_INJECT_COUNTER.validate(counter)
    if sleepiness is not None:
        SLEEPINESS.validate(sleepiness)

    if counter is not None:
        FAULT_INJECT_COUNTER.store(counter)
    if sleepiness is not None:
        SLEEPINESS.store(sleepiness)

    log_event(
        "info",
        "configure",
        counter=FAULT_INJECT_COUNTER.load(),
        sleepiness=SLEEPINESS.load(),
    )


def load_faults(config_path: str = "config.yaml") -> Dict[str, Any]:
    config = load_config(config_path)
    faults = config.get("fault_injection") or {}
    configure_faults(faults)
    return faults
