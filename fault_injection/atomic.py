import threading


class AtomicUInt:
    """Unsigned machine word shared between threads.

    Every operation holds the lock for a single read, write or
    read-modify-write, which also orders a store against later loads.
    Arithmetic wraps modulo ``2**bits``.
    """

    def __init__(self, value: int, bits: int = 64) -> None:
        self.bits = bits
        self.max = (1 << bits) - 1
        self._value = self.validate(value)
        self._lock = threading.Lock()

    def validate(self, value: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected int, got {type(value).__name__}")
        if value < 0 or value > self.max:
            raise ValueError(f"value {value} outside 0..{self.max}")
        return value

    def load(self) -> int:
        with self._lock:
            return self._value

    def store(self, value: int) -> None:
        value = self.validate(value)
        with self._lock:
            self._value = value

    def swap(self, value: int) -> int:
        value = self.validate(value)
        with self._lock:
            previous = self._value
            self._value = value
            return previous

    def fetch_sub(self, amount: int = 1) -> int:
        with self._lock:
            previous = self._value
            self._value = (previous - amount) & self.max
            return previous

    def __repr__(self) -> str:
        return f"AtomicUInt({self.load()}, bits={self.bits})"
