import random
import time
from typing import Optional

from fault_injection.atomic import AtomicUInt
from fault_injection.config import log_event

# Upper bound of an injected delay is SLEEPINESS * DELAY_UNIT seconds.
DELAY_UNIT = 0.001

SLEEPINESS = AtomicUInt(0, bits=8)


def maybe_delay() -> Optional[float]:
    sleepiness = SLEEPINESS.load()
    if sleepiness == 0:
        return None

    duration = random.uniform(0.0, sleepiness * DELAY_UNIT)
    time.sleep(duration)
    log_event("debug", "delay", sleepiness=sleepiness, duration_ms=round(duration * 1000.0, 3))
    return duration
