"""
CHIP-8 Virtual Machine — Opcode Decoder

Every instruction is one big-endian 16-bit word, read as four nibbles
[a, b, c, d]. Operand fields are fixed:

  x   = b                  register index
  y   = c                  register index
  n   = d                  4-bit immediate (sprite height)
  nn  = c << 4 | d         8-bit immediate
  nnn = b << 8 | c << 4 | d  12-bit address

The table below maps (mask, match) pairs to mnemonics. Order matters:
the two reserved 0-leading opcodes (CLS, RET) are tested before the
generic 0NNN exit trap.
"""

from typing import NamedTuple

from ..errors import InvalidOpcode


# ──────────────────────────────────────────────
# Nibble helpers
# ──────────────────────────────────────────────

def word_to_nibbles(word: int) -> tuple:
    """Split a 16-bit word into its four nibbles, high first."""
    return ((word >> 12) & 0xF, (word >> 8) & 0xF, (word >> 4) & 0xF, word & 0xF)


def bytes_to_nibbles(hi: int, lo: int) -> tuple:
    return ((hi >> 4) & 0xF, hi & 0xF, (lo >> 4) & 0xF, lo & 0xF)


def nibbles_to_byte(n: int, nn: int) -> int:
    return ((n & 0xF) << 4) | (nn & 0xF)


def nibbles_to_addr(n: int, nn: int, nnn: int) -> int:
    return ((n & 0xF) << 8) | ((nn & 0xF) << 4) | (nnn & 0xF)


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: (mask, match, mnemonic)
# An opcode matches when (opcode & mask) == match.

OPCODES = [
    # ── System / flow ──
    (0xFFFF, 0x00E0, 'CLS'),
    (0xFFFF, 0x00EE, 'RET'),
    (0xF000, 0x0000, 'EXIT'),     # host exit trap (any other 0NNN)
    (0xF000, 0x1000, 'JP'),
    (0xF000, 0x2000, 'CALL'),

    # ── Conditional skips ──
    (0xF000, 0x3000, 'SE'),
    (0xF000, 0x4000, 'SNE'),
    (0xF00F, 0x5000, 'SE_REG'),

    # ── Immediate load / add ──
    (0xF000, 0x6000, 'LD'),
    (0xF000, 0x7000, 'ADD'),

    # ── Register ALU ──
    (0xF00F, 0x8000, 'MOV'),
    (0xF00F, 0x8001, 'OR'),
    (0xF00F, 0x8002, 'AND'),
    (0xF00F, 0x8003, 'XOR'),
    (0xF00F, 0x8004, 'ADD_REG'),
    (0xF00F, 0x8005, 'SUB'),
    (0xF00F, 0x8006, 'SHR'),
    (0xF00F, 0x8007, 'SUBN'),
    (0xF00F, 0x800E, 'SHL'),
    (0xF00F, 0x9000, 'SNE_REG'),

    # ── Index / jump / random / draw ──
    (0xF000, 0xA000, 'LD_I'),
    (0xF000, 0xB000, 'JP_V0'),
    (0xF000, 0xC000, 'RND'),
    (0xF000, 0xD000, 'DRW'),

    # ── Keypad ──
    (0xF0FF, 0xE09E, 'SKP'),
    (0xF0FF, 0xE0A1, 'SKNP'),

    # ── Timers / memory ──
    (0xF0FF, 0xF007, 'LD_DT'),
    (0xF0FF, 0xF00A, 'LD_KEY'),
    (0xF0FF, 0xF015, 'SET_DT'),
    (0xF0FF, 0xF018, 'SET_ST'),
    (0xF0FF, 0xF01E, 'ADD_I'),
    (0xF0FF, 0xF029, 'LD_FONT'),
    (0xF0FF, 0xF033, 'BCD'),
    (0xF0FF, 0xF055, 'STORE'),
    (0xF0FF, 0xF065, 'LOAD'),
]


class Instruction(NamedTuple):
    """A decoded instruction with every operand field pre-extracted."""
    mnemonic: str
    opcode: int
    x: int
    y: int
    n: int
    nn: int
    nnn: int


def decode(opcode: int, pc: int = 0) -> Instruction:
    """Decode a 16-bit opcode word.

    Raises InvalidOpcode (carrying pc and the raw word) if no pattern
    matches.
    """
    opcode &= 0xFFFF
    for mask, match, mnem in OPCODES:
        if opcode & mask == match:
            _, x, y, n = word_to_nibbles(opcode)
            return Instruction(mnem, opcode, x, y, n,
                               nibbles_to_byte(y, n),
                               nibbles_to_addr(x, y, n))
    raise InvalidOpcode(pc, opcode)


def decode_opcode(memory, pc: int) -> Instruction:
    """Fetch the word at pc and decode it."""
    return decode(memory.read_word(pc), pc)
