"""
CHIP-8 Virtual Machine — 4K Flat Memory

Memory map:
  $000–$04F  Built-in hex font (16 glyphs x 5 bytes)
  $050–$1FF  Interpreter area (unused by this core)
  $200–$FFF  Program image

Unlike a real bus, nothing here wraps: any access that falls outside
the array raises OutOfBounds. Multi-byte writes are checked in full
before the first byte lands, so a failing store leaves memory untouched.
"""

import logging

from ..config import MEMORY_SIZE, PROGRAM_START
from ..errors import OutOfBounds

log = logging.getLogger(__name__)


# Standard CHIP-8 hexadecimal font, glyphs 0-F, 5 rows each.
FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


class Memory:
    """4096-byte addressable memory with strict bounds checking.

    The interpreter area ($000–$1FF) and the program area ($200+) are
    tracked only for the "is anything loaded" queries the emulator uses
    as its safety gate before running.
    """

    def __init__(self, size: int = MEMORY_SIZE):
        self.size = size
        self._mem = bytearray(size)

    def _check(self, addr: int, length: int = 1):
        if addr < 0 or length < 0 or addr + length > self.size:
            raise OutOfBounds(addr, length, self.size)

    # --- Core read/write ---

    def read_byte(self, addr: int) -> int:
        self._check(addr)
        return self._mem[addr]

    def write_byte(self, addr: int, value: int):
        self._check(addr)
        self._mem[addr] = value & 0xFF

    def read_word(self, addr: int) -> int:
        """Read 16-bit value (big-endian, the opcode byte order)."""
        self._check(addr, 2)
        return (self._mem[addr] << 8) | self._mem[addr + 1]

    def read_block(self, addr: int, length: int) -> bytes:
        self._check(addr, length)
        return bytes(self._mem[addr:addr + length])

    def write_block(self, addr: int, data):
        """Write a byte sequence. Checked in full before anything is written."""
        data = bytes(data)
        self._check(addr, len(data))
        self._mem[addr:addr + len(data)] = data

    # --- Bulk load ---

    def load(self, offset: int, data):
        """Copy an image (font or program) into memory at offset."""
        data = bytes(data)
        self.write_block(offset, data)
        log.debug("Loaded %d bytes at $%03X", len(data), offset)

    def clear(self):
        self._mem[:] = bytes(self.size)

    # --- Load-state queries ---

    def font_loaded(self) -> bool:
        """True if anything is stored below the program area."""
        return self._mem[:PROGRAM_START].count(0) != PROGRAM_START

    def program_loaded(self) -> bool:
        """True if anything is stored in the program area."""
        region = self._mem[PROGRAM_START:]
        return region.count(0) != len(region)

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 256) -> str:
        """Hex dump, 16 bytes per line, clipped at the end of memory."""
        end = min(start + length, self.size)
        self._check(start, end - start)
        lines = []
        for addr in range(start, end, 16):
            row = self._mem[addr:min(addr + 16, end)]
            hex_bytes = ' '.join(f'{b:02X}' for b in row)
            ascii_bytes = ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in row)
            lines.append(f'{addr:03X}  {hex_bytes:<47}  {ascii_bytes}')
        return '\n'.join(lines)
