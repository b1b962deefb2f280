"""
CHIP-8 Virtual Machine — 8-bit ALU Operations

Each function takes unsigned 8-bit operands and returns a tuple:
(result_byte, vf_flag). The caller writes the result to Vx and then
the flag to VF, so when X is F the flag wins.

Flag conventions:
  add:  VF = 1 on carry out of bit 7
  sub:  VF = 1 when NO borrow occurred (minuend >= subtrahend)
  shr:  VF = bit shifted out (bit 0)
  shl:  VF = bit shifted out (bit 7)
"""


def add8(a: int, b: int) -> tuple:
    result = a + b
    return (result & 0xFF, 1 if result > 0xFF else 0)


def sub8(a: int, b: int) -> tuple:
    """a - b, wrapping. VF = 1 if a >= b."""
    return ((a - b) & 0xFF, 1 if a >= b else 0)


def shr8(a: int) -> tuple:
    return (a >> 1, a & 0x01)


def shl8(a: int) -> tuple:
    return ((a << 1) & 0xFF, (a >> 7) & 0x01)


def bcd(value: int) -> tuple:
    """Split an 8-bit value into (hundreds, tens, units)."""
    value &= 0xFF
    return (value // 100, (value // 10) % 10, value % 10)
