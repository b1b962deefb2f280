"""
CHIP-8 Virtual Machine — 16-Key Input Latch

Hex keypad layout (key index -> position):

  1 2 3 C
  4 5 6 D
  7 8 9 E
  A 0 B F

The engine only reads this state. The input collaborator writes it
between steps; no debouncing, scan-code mapping or key repeat happens
here.

While a key wait (FX0A) is armed, up->down transitions are queued so the
wait can consume exactly one press, even if the key was released again
before the engine looked. Presses outside a wait are not recorded.
"""

import threading
from collections import deque
from typing import Deque, List, Optional

from ..config import NUM_KEYS
from ..errors import InvalidKey


class Keypad:
    """Key state vector plus the press queue for key waits."""

    def __init__(self, num_keys: int = NUM_KEYS):
        self.num_keys = num_keys
        self._lock = threading.Lock()
        self._state = [False] * num_keys
        self._presses: Deque[int] = deque(maxlen=num_keys)
        self._armed = False

    def _check(self, key: int):
        if not 0 <= key < self.num_keys:
            raise InvalidKey(key)

    def set_key(self, key: int, down: bool):
        self._check(key)
        with self._lock:
            if down and not self._state[key] and self._armed:
                self._presses.append(key)
            self._state[key] = bool(down)

    def press(self, key: int):
        self.set_key(key, True)

    def release(self, key: int):
        self.set_key(key, False)

    def is_pressed(self, key: int) -> bool:
        self._check(key)
        with self._lock:
            return self._state[key]

    def pressed_keys(self) -> List[int]:
        with self._lock:
            return [k for k, down in enumerate(self._state) if down]

    # --- Key-wait support ---

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._armed

    def arm_key_wait(self):
        """Start recording fresh presses. Keys already held do not count."""
        with self._lock:
            self._presses.clear()
            self._armed = True

    def next_press(self) -> Optional[int]:
        """Take the oldest press recorded since arming; disarms on success."""
        with self._lock:
            if not self._presses:
                return None
            key = self._presses.popleft()
            self._presses.clear()
            self._armed = False
            return key

    def reset(self):
        with self._lock:
            self._state = [False] * self.num_keys
            self._presses.clear()
            self._armed = False
