"""
CHIP-8 Virtual Machine — Register File + Call Stack

Register model:
  V0–VF  — 16 general-purpose 8-bit registers
           VF doubles as the carry / borrow / collision flag and is
           overwritten by every flag-producing instruction
  I      — 16-bit index register (memory pointer for draw/BCD/store)
  PC     — program counter (byte offset into memory)
  stack  — return addresses, bounded at STACK_DEPTH entries
  SP     — current stack depth
"""

from typing import List

from ..config import NUM_REGISTERS, FLAG_REGISTER, STACK_DEPTH
from ..errors import InvalidRegister, StackOverflow, StackUnderflow


class Registers:
    """CHIP-8 register set.

    General-purpose registers are only reachable through get()/set(),
    which reject any index outside 0x0–0xF.
    """

    __slots__ = ('V', 'I', 'PC', 'stack', 'stack_depth')

    def __init__(self, stack_depth: int = STACK_DEPTH):
        self.V: List[int] = [0] * NUM_REGISTERS
        self.I: int = 0           # Index register (16-bit)
        self.PC: int = 0          # Set to PROGRAM_START on program load
        self.stack: List[int] = []
        self.stack_depth = stack_depth

    # --- General-purpose registers ---

    @staticmethod
    def index_valid(x: int) -> bool:
        return 0 <= x < NUM_REGISTERS

    def get(self, x: int) -> int:
        if not self.index_valid(x):
            raise InvalidRegister(x)
        return self.V[x]

    def set(self, x: int, value: int):
        if not self.index_valid(x):
            raise InvalidRegister(x)
        self.V[x] = value & 0xFF

    def set_flag(self, flag: int):
        """Write VF (0 or 1)."""
        self.V[FLAG_REGISTER] = 1 if flag else 0

    @property
    def flag(self) -> int:
        return self.V[FLAG_REGISTER]

    # --- Stack operations ---

    @property
    def SP(self) -> int:
        return len(self.stack)

    def push(self, addr: int):
        """Push a return address. Fails before mutating if full."""
        if len(self.stack) >= self.stack_depth:
            raise StackOverflow(self.stack_depth)
        self.stack.append(addr)

    def pop(self) -> int:
        if not self.stack:
            raise StackUnderflow()
        return self.stack.pop()

    # --- Display ---

    def display(self) -> str:
        """Format register state for log lines."""
        v = ' '.join(f'{x:02X}' for x in self.V)
        return (f"PC={self.PC:03X} I={self.I:04X} SP={self.SP:X} "
                f"V=[{v}]")

    def reset(self):
        """Reset to power-on state."""
        self.V = [0] * NUM_REGISTERS
        self.I = 0
        self.PC = 0
        self.stack = []
