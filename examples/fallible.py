import sys

from fault_injection.errors import FaultError
from fault_injection.faults import FAULT_INJECT_COUNTER, fallible, load_faults
from fault_injection.trigger import set_trigger_function


def do_io() -> None:
    return None


def report(component: str, file_name: str, line: int) -> None:
    print(f"fault injected at {component} {file_name}:{line}", flush=True)


def main(argv: list[str]) -> None:
    if argv:
        load_faults(argv[0])
    else:
        FAULT_INJECT_COUNTER.store(1)
    set_trigger_function(report)

    try:
        fallible(do_io)
    except FaultError as exc:
        raise SystemExit(f"do_io failed: {exc}") from exc
    print("do_io succeeded")


if __name__ == "__main__":
    main(sys.argv[1:])
