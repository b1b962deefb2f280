#!/usr/bin/env python3
"""
chip8run — headless CHIP-8 program runner

Usage:
    python chip8run.py [rom.ch8] [--ipf 10] [--max-steps N] [--seed N]
                       [--keys 1A3F] [--dump-display] [--dump-regs]
                       [--dump-mem START[:LEN]] [--verbose]

Runs the program with the built-in font until it hits an exit trap
(any 0NNN other than 00E0/00EE) and prints the trap value. Timers are
ticked once every --ipf instructions; there is no wall-clock pacing.

Key waits (FX0A) are fed from --keys, one hex digit per wait.

Exit status:
    0  halted via exit trap
    1  file / load / usage error (missing file, ROM too large or empty)
    2  machine fault (invalid opcode, stack imbalance, ...)
    3  program waited for a key and none was left
    4  --max-steps reached

Examples:
    python chip8run.py c8_test.c8
    python chip8run.py pong.ch8 --max-steps 50000 --dump-display
    python chip8run.py keytest.ch8 --keys 5A --verbose
    python chip8run.py bcd.ch8 --dump-mem 0x300:16
"""

import argparse
import logging
import sys
import os

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from chip8_vm import (
    Chip8Emulator, Chip8Error, NoProgramLoaded, StepResult, StopReason, __version__,
)
from chip8_vm.config import DEFAULT_INSTRUCTIONS_PER_FRAME, MEMORY_SIZE, TIMER_HZ
from chip8_vm.log_setup import setup_logging

log = logging.getLogger("chip8_vm.run")

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_FAULT = 2
EXIT_KEY_WAIT = 3
EXIT_TIMEOUT = 4


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.startswith("0x") or value.startswith("0X"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def parse_keys(value: str) -> list:
    """'1A 3' -> [0x1, 0xA, 0x3]"""
    keys = []
    for ch in value.replace(" ", "").replace(",", ""):
        try:
            keys.append(int(ch, 16))
        except ValueError:
            raise argparse.ArgumentTypeError(f"not a hex key: {ch!r}")
    return keys


def parse_mem_range(value: str) -> tuple:
    """'$200:32' -> (0x200, 32). Length defaults to 256 bytes."""
    start, _, length = value.partition(":")
    try:
        return parse_int_arg(start), (parse_int_arg(length) if length else 256)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an address range: {value!r}")


def run_headless(emu: Chip8Emulator, ipf: int, max_steps, keys: list):
    """Step the emulator, ticking timers every ipf instructions.

    Returns the final StepResult (HALT, KEY_WAIT or TIMEOUT). Faults raise.
    """
    pending = list(keys)
    steps = 0
    while max_steps is None or steps < max_steps:
        result = emu.step()
        steps += 1
        if steps % ipf == 0:
            emu.tick_timers()

        if result.kind is StopReason.CONTINUE:
            continue
        if result.kind is StopReason.FAULT:
            raise result.error
        if result.kind is StopReason.KEY_WAIT:
            if not pending:
                return result
            key = pending.pop(0)
            log.info("Feeding key %X", key)
            emu.press_key(key)
            emu.release_key(key)
            continue
        return result
    return StepResult(StopReason.TIMEOUT)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="chip8run",
        description="Run a CHIP-8 program headless until its exit trap",
    )
    parser.add_argument("rom", nargs="?", default="./c8_test.c8",
                        help="Program image (default: ./c8_test.c8)")
    parser.add_argument("--ipf", type=int, default=DEFAULT_INSTRUCTIONS_PER_FRAME,
                        help=f"Instructions per {TIMER_HZ} Hz timer tick (default: %(default)s)")
    parser.add_argument("--max-steps", type=parse_int_arg, default=None,
                        help="Give up after this many instructions")
    parser.add_argument("--seed", type=parse_int_arg, default=None,
                        help="Seed for the CXNN random source")
    parser.add_argument("--keys", type=parse_keys, default=[],
                        help="Hex keys fed to successive key waits (e.g. 1A3)")
    parser.add_argument("--dump-display", action="store_true",
                        help="Print the final framebuffer")
    parser.add_argument("--dump-regs", action="store_true",
                        help="Print the final register state")
    parser.add_argument("--dump-mem", type=parse_mem_range, default=None,
                        metavar="START[:LEN]",
                        help="Hex dump LEN bytes (default 256) of final memory from START")
    parser.add_argument("--log-file", default=None,
                        help="Also write a DEBUG log to this file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log progress and trace every instruction")
    parser.add_argument("--version", action="version",
                        version=f"chip8run {__version__}")

    args = parser.parse_args(argv)

    setup_logging(console_level=logging.DEBUG if args.verbose else logging.WARNING,
                  log_file=args.log_file)

    if args.ipf < 1:
        print("Error: --ipf must be at least 1", file=sys.stderr)
        return EXIT_USAGE

    if args.dump_mem is not None and (not 0 <= args.dump_mem[0] < MEMORY_SIZE
                                      or args.dump_mem[1] < 1):
        print(f"Error: --dump-mem needs a start below ${MEMORY_SIZE:03X} "
              f"and a positive length", file=sys.stderr)
        return EXIT_USAGE

    try:
        with open(args.rom, "rb") as f:
            rom = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.rom}", file=sys.stderr)
        return EXIT_USAGE
    except IOError as e:
        print(f"Error reading {args.rom}: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        emu = Chip8Emulator.from_rom(rom, seed=args.seed, trace=args.verbose)
        if not emu.loaded():
            raise NoProgramLoaded(emu.font_loaded(), emu.rom_loaded())
    except Chip8Error as e:
        print(f"Error loading {args.rom}: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        result = run_headless(emu, args.ipf, args.max_steps, args.keys)
    except Chip8Error as e:
        print(f"Machine fault: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return EXIT_FAULT

    if args.dump_display:
        print(emu.display.render_text())
    if args.dump_regs:
        print(emu.regs.display())
    if args.dump_mem is not None:
        start, length = args.dump_mem
        print(emu.mem.hexdump(start, length))

    if result.kind is StopReason.HALT:
        print(f"exit ${result.value:03X}")
        return EXIT_OK
    if result.kind is StopReason.KEY_WAIT:
        print(f"Program is waiting for a key press into V{emu.wait_register:X} "
              f"and no --keys are left", file=sys.stderr)
        return EXIT_KEY_WAIT
    print(f"Step limit reached at PC=${emu.regs.PC:03X}", file=sys.stderr)
    return EXIT_TIMEOUT


if __name__ == "__main__":
    sys.exit(main())
