"""
CHIP-8 Virtual Machine — Delay and Sound Timers

Two independent 8-bit down-counters. Instructions set them (FX15, FX18)
and read the delay timer (FX07); the collaborator owning the real-time
clock calls tick() at 60 Hz (config.TIMER_HZ). Counters stop at zero, never wrap.

The audio collaborator polls sound_active and produces a tone while it
is true. Nothing inside the core acts on it.

tick() may run on a clock thread while the execute loop runs on
another, so every read-modify-write goes through a lock.
"""

import threading


class Timers:
    """Delay + sound counter pair."""

    def __init__(self):
        self._lock = threading.Lock()
        self._delay = 0
        self._sound = 0

    @property
    def delay(self) -> int:
        with self._lock:
            return self._delay

    @delay.setter
    def delay(self, value: int):
        with self._lock:
            self._delay = value & 0xFF

    @property
    def sound(self) -> int:
        with self._lock:
            return self._sound

    @sound.setter
    def sound(self, value: int):
        with self._lock:
            self._sound = value & 0xFF

    @property
    def sound_active(self) -> bool:
        with self._lock:
            return self._sound > 0

    def tick(self, count: int = 1):
        """Advance both counters by count periods of the 60 Hz clock."""
        if count < 0:
            raise ValueError(f"tick count must be non-negative, got {count}")
        with self._lock:
            self._delay = max(0, self._delay - count)
            self._sound = max(0, self._sound - count)

    def reset(self):
        with self._lock:
            self._delay = 0
            self._sound = 0
