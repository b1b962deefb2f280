"""
CHIP-8 Virtual Machine — 64x32 Monochrome Display Buffer

The buffer is a (height, width) boolean numpy array, row-major, so
buffer[y, x] is the pixel at column x of row y.

Only two operations touch it:
  clear()  — every pixel off (00E0, reset)
  draw()   — XOR a sprite in (DXYN)

Sprites are 8 pixels wide, one byte per row, MSB leftmost. Coordinates
wrap on both axes. The return value of draw() is the collision flag the
engine copies into VF.
"""

import threading

import numpy as np

from ..config import DISPLAY_WIDTH, DISPLAY_HEIGHT


class Display:
    """Monochrome pixel grid with XOR sprite drawing."""

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self._lock = threading.Lock()
        self._buffer = np.zeros((height, width), dtype=bool)
        self._view = self._buffer.view()
        self._view.flags.writeable = False

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the live buffer.

        No lock is taken, so read it only from the thread that steps the
        engine. Other threads should use snapshot().
        """
        return self._view

    def snapshot(self) -> np.ndarray:
        """Copy of the buffer, safe to hand to a renderer on another thread."""
        with self._lock:
            return self._buffer.copy()

    def clear(self):
        with self._lock:
            self._buffer[:, :] = False

    def draw(self, x: int, y: int, sprite) -> bool:
        """XOR sprite rows into the buffer starting at (x, y).

        Returns True if any pixel that was on got switched off.
        """
        x %= self.width
        y %= self.height
        cols = (x + np.arange(8)) % self.width
        collision = False
        with self._lock:
            for row_offset, row_byte in enumerate(bytes(sprite)):
                bits = np.unpackbits(np.array([row_byte], dtype=np.uint8)).astype(bool)
                row = (y + row_offset) % self.height
                current = self._buffer[row, cols]
                if np.any(current & bits):
                    collision = True
                self._buffer[row, cols] = current ^ bits
        return collision

    def render_text(self, on: str = '#', off: str = '.') -> str:
        """Text rendering for console collaborators and test failures."""
        frame = self.snapshot()
        return '\n'.join(
            ''.join(on if px else off for px in row) for row in frame
        )

    def reset(self):
        self.clear()
