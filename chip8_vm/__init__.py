"""
CHIP-8 Virtual Machine Core
===========================
Fetch-decode-execute engine for the CHIP-8 instruction set: 4K memory,
sixteen 8-bit registers, a 64x32 monochrome display and two 60 Hz
timers. Loading files, rendering, audio and keyboard polling belong to
the embedding program; the core only exposes state and hooks for them.

Layout:
    cpu/regs.py       Register file + call stack
    cpu/decoder.py    Nibble split + opcode table
    cpu/alu.py        8-bit arithmetic with VF flag results
    mem/memory.py     4K bounds-checked memory + built-in font
    periph/timer.py   Delay / sound timers
    periph/display.py 64x32 XOR framebuffer
    periph/keypad.py  16-key input latch
    emu.py            The engine tying them together
"""

__version__ = "0.1.0"

from .errors import (
    Chip8Error, NoProgramLoaded, InvalidOpcode, InvalidRegister, InvalidKey,
    OutOfBounds, StackOverflow, StackUnderflow,
)
from .mem.memory import FONTSET
from .emu import Chip8Emulator, MachineState, StepResult, StopReason
