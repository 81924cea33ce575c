from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Iterator


@dataclass
class _KeyLock:
    lock: Lock = field(default_factory=Lock)
    holders: int = 0


class SlotLockRegistry:
    """Mutual exclusion scoped to a single ``(doctor_id, slot)`` pair.

    Bookings for unrelated doctors or slots never wait on each other. Entries
    are dropped once nobody holds or waits on them.
    """

    def __init__(self):
        self._guard = Lock()
        self._locks: dict[tuple[int, str], _KeyLock] = {}

    @contextmanager
    def hold(self, doctor_id: int, slot: str) -> Iterator[None]:
        key = (doctor_id, slot)

        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _KeyLock()
                self._locks[key] = entry
            entry.holders += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


slot_locks = SlotLockRegistry()
