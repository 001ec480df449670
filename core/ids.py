import threading
import time

from django.conf import settings

EPOCH_MS = 1577836800000  # 2020-01-01T00:00:00Z
WORKER_ID_BITS = 6
SEQUENCE_BITS = 6
MIN_SEQUENCE = 5
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1


class SnowflakeGenerator:
    """
    Time-sortable unique ids: milliseconds since EPOCH_MS, then the worker id,
    then a per-millisecond sequence. Ids are returned as decimal strings.
    """

    def __init__(self, worker_id, clock=None):
        if not 0 <= worker_id < (1 << WORKER_ID_BITS):
            raise ValueError(f"worker_id must be in [0, {(1 << WORKER_ID_BITS) - 1}]")
        self.worker_id = worker_id
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._lock = threading.Lock()
        self._last_tick = -1
        self._sequence = MIN_SEQUENCE

    def _tick(self):
        return self._clock() - EPOCH_MS

    def _wait_next_tick(self, last_tick):
        tick = self._tick()
        while tick <= last_tick:
            time.sleep(0.0001)
            tick = self._tick()
        return tick

    def next_id(self):
        with self._lock:
            tick = self._tick()
            if tick < self._last_tick:
                # clock moved backwards; keep issuing from the last tick
                tick = self._last_tick
            if tick == self._last_tick:
                if self._sequence > MAX_SEQUENCE:
                    tick = self._wait_next_tick(self._last_tick)
                    self._sequence = MIN_SEQUENCE
            else:
                self._sequence = MIN_SEQUENCE
            self._last_tick = tick

            value = (
                (tick << (WORKER_ID_BITS + SEQUENCE_BITS))
                | (self.worker_id << SEQUENCE_BITS)
                | self._sequence
            )
            self._sequence += 1
            return str(value)


_generator = None
_generator_lock = threading.Lock()


def get_generator():
    global _generator
    with _generator_lock:
        if _generator is None:
            _generator = SnowflakeGenerator(getattr(settings, "NOTES_ID_WORKER_ID", 1))
        return _generator


def new_note_id():
    return get_generator().next_id()
