"""
CHIP-8 Virtual Machine — Main Emulator Class

This is the top-level class that integrates:
  - Register file + call stack (cpu/regs.py)
  - 4K memory (mem/memory.py)
  - Opcode decoder (cpu/decoder.py)
  - ALU helpers (cpu/alu.py)
  - Peripherals: timers, display, keypad

Execution model:
  1. Fetch the 16-bit word at PC
  2. Decode it into a mnemonic + operand fields
  3. Advance PC by 2, then run the handler (jumps/calls/returns
     overwrite PC, skips add another 2)
  4. Report the outcome as a StepResult

Step outcomes:
  - CONTINUE:  instruction completed, keep going
  - HALT:      0NNN exit trap, value = NNN
  - KEY_WAIT:  FX0A is waiting for a key press
  - FAULT:     a Chip8Error aborted the instruction (state untouched)
  - TIMEOUT:   run() exhausted max_steps

Timers, display and keypad are owned here. Drivers running on other
threads (60 Hz clock, renderer, input poller) go through tick_timers(),
framebuffer() and set_key() rather than reaching into the peripherals.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import numpy as np

from .config import (
    FONT_GLYPH_SIZE, FONT_START, INSTRUCTION_SIZE, PROGRAM_START, STACK_DEPTH,
)
from .cpu import alu
from .cpu.decoder import Instruction, decode_opcode
from .cpu.regs import Registers
from .errors import Chip8Error, NoProgramLoaded, OutOfBounds
from .mem.memory import FONTSET, Memory
from .periph.display import Display
from .periph.keypad import Keypad
from .periph.timer import Timers

log = logging.getLogger(__name__)


class StopReason(Enum):
    CONTINUE = 'CONTINUE'
    HALT = 'HALT'
    KEY_WAIT = 'KEY_WAIT'
    FAULT = 'FAULT'
    TIMEOUT = 'TIMEOUT'


class MachineState(Enum):
    RUNNING = 'RUNNING'
    AWAITING_KEY = 'AWAITING_KEY'


@dataclass(frozen=True)
class StepResult:
    """Outcome of one step() or one run().

    value is the 12-bit exit code for HALT; error is the exception for FAULT.
    """
    kind: StopReason
    value: Optional[int] = None
    error: Optional[Chip8Error] = None

    @property
    def halted(self) -> bool:
        return self.kind is StopReason.HALT


_CONTINUE = StepResult(StopReason.CONTINUE)
_KEY_WAIT = StepResult(StopReason.KEY_WAIT)

# Instructions that never fall through to PC+2, so they may sit in the
# last word of memory
_NO_FALLTHROUGH = frozenset({'JP', 'JP_V0', 'RET', 'EXIT'})


class Chip8Emulator:
    """CHIP-8 virtual machine core.

    Usage:
        emu = Chip8Emulator.from_rom(Path('game.ch8').read_bytes())
        result = emu.run(max_steps=100_000)
        if result.halted:
            print(f"exit code ${result.value:03X}")
    """

    def __init__(self, stack_depth: int = STACK_DEPTH,
                 rng: Optional[random.Random] = None,
                 seed: Optional[int] = None,
                 trace: bool = False):
        # Core components
        self.regs = Registers(stack_depth)
        self.mem = Memory()

        # Peripherals
        self.timers = Timers()
        self.display = Display()
        self.keypad = Keypad()

        self.rng = rng if rng is not None else random.Random(seed)
        self.trace = trace

        self.state = MachineState.RUNNING
        self.wait_register: Optional[int] = None

        # Instruction dispatch table (built in _build_dispatch)
        self._dispatch = self._build_dispatch()

    @classmethod
    def from_rom(cls, rom, font=FONTSET, **kwargs) -> 'Chip8Emulator':
        """Build a runnable VM: font at $000, program at $200."""
        emu = cls(**kwargs)
        emu.load(rom, font)
        return emu

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_font(self, font=FONTSET):
        """Place a font image at $000. It must fit below the program area."""
        font = bytes(font)
        if FONT_START + len(font) > PROGRAM_START:
            raise OutOfBounds(FONT_START, len(font), PROGRAM_START)
        self.mem.load(FONT_START, font)
        log.info("Font loaded: %d bytes at $%03X", len(font), FONT_START)

    def load_program(self, program):
        """Place a program image at $200 and point PC at it.

        Reloading into a VM that is already runnable resets the machine
        and wipes the old program first; the font stays in place.
        """
        program = bytes(program)
        if PROGRAM_START + len(program) > self.mem.size:
            raise OutOfBounds(PROGRAM_START, len(program), self.mem.size)
        if self.loaded():
            self._reset_machine()
            self.mem.write_block(PROGRAM_START, bytes(self.mem.size - PROGRAM_START))
        self.mem.load(PROGRAM_START, program)
        self.regs.PC = PROGRAM_START
        log.info("Program loaded: %d bytes at $%03X", len(program), PROGRAM_START)

    def load(self, program, font=FONTSET):
        self.load_font(font)
        self.load_program(program)

    def font_loaded(self) -> bool:
        return self.mem.font_loaded()

    def rom_loaded(self) -> bool:
        return self.mem.program_loaded()

    def loaded(self) -> bool:
        """Runnable only when both the font and program regions hold data."""
        return self.rom_loaded() and self.font_loaded()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> StepResult:
        """Execute exactly one instruction (or poll a pending key wait)."""
        if not self.loaded():
            return self._fault(NoProgramLoaded(self.font_loaded(), self.rom_loaded()))

        if self.state is MachineState.AWAITING_KEY:
            return self._poll_key()

        pc = self.regs.PC
        try:
            ins = decode_opcode(self.mem, pc)
            if self.trace:
                log.debug("$%03X: %04X %-7s %s", pc, ins.opcode, ins.mnemonic,
                          self.regs.display())
            next_pc = pc + INSTRUCTION_SIZE
            if next_pc >= self.mem.size and ins.mnemonic not in _NO_FALLTHROUGH:
                raise OutOfBounds(next_pc, INSTRUCTION_SIZE, self.mem.size)
            self.regs.PC = next_pc
            result = self._dispatch[ins.mnemonic](ins)
        except Chip8Error as e:
            # Handlers validate before writing, so only PC needs rolling back
            self.regs.PC = pc
            return self._fault(e)

        return result or _CONTINUE

    def run(self, max_steps: Optional[int] = None,
            on_key_wait: Optional[Callable[['Chip8Emulator'], None]] = None) -> StepResult:
        """Step until the exit trap fires or a fault occurs.

        Args:
            max_steps: stop with TIMEOUT after this many steps (None = no limit)
            on_key_wait: called with the emulator whenever FX0A is waiting;
                it is expected to feed the keypad. Without it, run() returns
                the KEY_WAIT result so the caller can supply input and resume.

        Returns:
            HALT, KEY_WAIT or TIMEOUT result. Faults are raised.
        """
        if not self.loaded():
            raise NoProgramLoaded(self.font_loaded(), self.rom_loaded())

        steps = 0
        while max_steps is None or steps < max_steps:
            result = self.step()
            steps += 1

            if result.kind is StopReason.CONTINUE:
                continue
            if result.kind is StopReason.FAULT:
                raise result.error
            if result.kind is StopReason.KEY_WAIT:
                if on_key_wait is None:
                    return result
                on_key_wait(self)
                continue
            log.info("Halted by exit trap $%03X after %d steps", result.value, steps)
            return result

        return StepResult(StopReason.TIMEOUT)

    def _fault(self, error: Chip8Error) -> StepResult:
        log.warning("Fault: %s | %s", error, self.regs.display())
        return StepResult(StopReason.FAULT, error=error)

    def _poll_key(self) -> StepResult:
        key = self.keypad.next_press()
        if key is None:
            return _KEY_WAIT
        self.regs.set(self.wait_register, key)
        log.debug("Key wait satisfied: V%X = %X", self.wait_register, key)
        self.state = MachineState.RUNNING
        self.wait_register = None
        return _CONTINUE

    # ══════════════════════════════════════════════
    # Collaborator interface
    # ══════════════════════════════════════════════

    def tick_timers(self, count: int = 1):
        """Decay delay/sound timers. Called by the 60 Hz clock driver."""
        self.timers.tick(count)

    def set_key(self, key: int, down: bool):
        self.keypad.set_key(key, down)

    def press_key(self, key: int):
        self.keypad.press(key)

    def release_key(self, key: int):
        self.keypad.release(key)

    def framebuffer(self) -> np.ndarray:
        """Copy of the 32x64 pixel grid (row-major: [y, x])."""
        return self.display.snapshot()

    @property
    def sound_active(self) -> bool:
        return self.timers.sound_active

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(ins) -> Optional[StepResult]
    # On entry PC already points at the next instruction.
    # Every bounds/stack check runs before the first write.

    def _build_dispatch(self) -> dict:
        return {
            # ── System / flow ──
            'CLS':     self._op_cls,
            'RET':     self._op_ret,
            'EXIT':    self._op_exit,
            'JP':      self._op_jp,
            'CALL':    self._op_call,
            'JP_V0':   self._op_jp_v0,

            # ── Skips ──
            'SE':      self._op_se,
            'SNE':     self._op_sne,
            'SE_REG':  self._op_se_reg,
            'SNE_REG': self._op_sne_reg,
            'SKP':     self._op_skp,
            'SKNP':    self._op_sknp,

            # ── Loads / ALU ──
            'LD':      self._op_ld,
            'ADD':     self._op_add,
            'MOV':     self._op_mov,
            'OR':      self._op_or,
            'AND':     self._op_and,
            'XOR':     self._op_xor,
            'ADD_REG': self._op_add_reg,
            'SUB':     self._op_sub,
            'SHR':     self._op_shr,
            'SUBN':    self._op_subn,
            'SHL':     self._op_shl,
            'RND':     self._op_rnd,

            # ── Index / memory ──
            'LD_I':    self._op_ld_i,
            'ADD_I':   self._op_add_i,
            'LD_FONT': self._op_ld_font,
            'BCD':     self._op_bcd,
            'STORE':   self._op_store,
            'LOAD':    self._op_load,

            # ── Display / timers / input ──
            'DRW':     self._op_drw,
            'LD_DT':   self._op_ld_dt,
            'SET_DT':  self._op_set_dt,
            'SET_ST':  self._op_set_st,
            'LD_KEY':  self._op_ld_key,
        }

    def _skip_if(self, condition: bool):
        if condition:
            target = self.regs.PC + INSTRUCTION_SIZE
            if target >= self.mem.size:
                raise OutOfBounds(target, INSTRUCTION_SIZE, self.mem.size)
            self.regs.PC = target

    # ── System / flow ──

    def _op_cls(self, ins: Instruction):
        self.display.clear()

    def _op_ret(self, ins: Instruction):
        self.regs.PC = self.regs.pop()

    def _op_exit(self, ins: Instruction):
        # A trap in the last word leaves PC on the trap itself
        if self.regs.PC >= self.mem.size:
            self.regs.PC -= INSTRUCTION_SIZE
        return StepResult(StopReason.HALT, value=ins.nnn)

    def _op_jp(self, ins: Instruction):
        self.regs.PC = ins.nnn

    def _op_call(self, ins: Instruction):
        self.regs.push(self.regs.PC)
        self.regs.PC = ins.nnn

    def _op_jp_v0(self, ins: Instruction):
        target = ins.nnn + self.regs.get(0)
        if target + INSTRUCTION_SIZE > self.mem.size:
            raise OutOfBounds(target, INSTRUCTION_SIZE, self.mem.size)
        self.regs.PC = target

    # ── Skips ──

    def _op_se(self, ins: Instruction):
        self._skip_if(self.regs.get(ins.x) == ins.nn)

    def _op_sne(self, ins: Instruction):
        self._skip_if(self.regs.get(ins.x) != ins.nn)

    def _op_se_reg(self, ins: Instruction):
        self._skip_if(self.regs.get(ins.x) == self.regs.get(ins.y))

    def _op_sne_reg(self, ins: Instruction):
        self._skip_if(self.regs.get(ins.x) != self.regs.get(ins.y))

    def _op_skp(self, ins: Instruction):
        self._skip_if(self.keypad.is_pressed(self.regs.get(ins.x) & 0xF))

    def _op_sknp(self, ins: Instruction):
        self._skip_if(not self.keypad.is_pressed(self.regs.get(ins.x) & 0xF))

    # ── Loads / ALU ──

    def _op_ld(self, ins: Instruction):
        self.regs.set(ins.x, ins.nn)

    def _op_add(self, ins: Instruction):
        # No flag effect
        self.regs.set(ins.x, self.regs.get(ins.x) + ins.nn)

    def _op_mov(self, ins: Instruction):
        self.regs.set(ins.x, self.regs.get(ins.y))

    def _op_or(self, ins: Instruction):
        self.regs.set(ins.x, self.regs.get(ins.x) | self.regs.get(ins.y))

    def _op_and(self, ins: Instruction):
        self.regs.set(ins.x, self.regs.get(ins.x) & self.regs.get(ins.y))

    def _op_xor(self, ins: Instruction):
        self.regs.set(ins.x, self.regs.get(ins.x) ^ self.regs.get(ins.y))

    def _set_with_flag(self, x: int, result_flag: tuple):
        result, flag = result_flag
        self.regs.set(x, result)
        self.regs.set_flag(flag)

    def _op_add_reg(self, ins: Instruction):
        self._set_with_flag(ins.x, alu.add8(self.regs.get(ins.x), self.regs.get(ins.y)))

    def _op_sub(self, ins: Instruction):
        self._set_with_flag(ins.x, alu.sub8(self.regs.get(ins.x), self.regs.get(ins.y)))

    def _op_subn(self, ins: Instruction):
        self._set_with_flag(ins.x, alu.sub8(self.regs.get(ins.y), self.regs.get(ins.x)))

    def _op_shr(self, ins: Instruction):
        self._set_with_flag(ins.x, alu.shr8(self.regs.get(ins.x)))

    def _op_shl(self, ins: Instruction):
        self._set_with_flag(ins.x, alu.shl8(self.regs.get(ins.x)))

    def _op_rnd(self, ins: Instruction):
        self.regs.set(ins.x, self.rng.randrange(256) & ins.nn)

    # ── Index / memory ──

    def _op_ld_i(self, ins: Instruction):
        self.regs.I = ins.nnn

    def _op_add_i(self, ins: Instruction):
        self.regs.I = (self.regs.I + self.regs.get(ins.x)) & 0xFFFF

    def _op_ld_font(self, ins: Instruction):
        digit = self.regs.get(ins.x) & 0xF
        self.regs.I = FONT_START + digit * FONT_GLYPH_SIZE

    def _op_bcd(self, ins: Instruction):
        self.mem.write_block(self.regs.I, alu.bcd(self.regs.get(ins.x)))

    def _op_store(self, ins: Instruction):
        values = [self.regs.get(r) for r in range(ins.x + 1)]
        self.mem.write_block(self.regs.I, values)

    def _op_load(self, ins: Instruction):
        data = self.mem.read_block(self.regs.I, ins.x + 1)
        for r, value in enumerate(data):
            self.regs.set(r, value)

    # ── Display / timers / input ──

    def _op_drw(self, ins: Instruction):
        x = self.regs.get(ins.x)
        y = self.regs.get(ins.y)
        sprite = self.mem.read_block(self.regs.I, ins.n)
        self.regs.set_flag(self.display.draw(x, y, sprite))

    def _op_ld_dt(self, ins: Instruction):
        self.regs.set(ins.x, self.timers.delay)

    def _op_set_dt(self, ins: Instruction):
        self.timers.delay = self.regs.get(ins.x)

    def _op_set_st(self, ins: Instruction):
        self.timers.sound = self.regs.get(ins.x)

    def _op_ld_key(self, ins: Instruction):
        self.regs.get(ins.x)  # validate before entering the wait state
        self.keypad.arm_key_wait()
        self.state = MachineState.AWAITING_KEY
        self.wait_register = ins.x
        log.debug("Waiting for key press into V%X", ins.x)
        return _KEY_WAIT

    # ══════════════════════════════════════════════
    # Reset
    # ══════════════════════════════════════════════

    def _reset_machine(self):
        self.regs.reset()
        self.timers.reset()
        self.display.reset()
        self.keypad.reset()
        self.state = MachineState.RUNNING
        self.wait_register = None

    def reset(self):
        """Full reset: registers, timers, display, keys and memory."""
        self._reset_machine()
        self.mem.clear()
        log.debug("Emulator reset")
