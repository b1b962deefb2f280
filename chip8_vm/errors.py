"""
CHIP-8 Virtual Machine — Error Types

Every fault the core can raise derives from Chip8Error. Any of them aborts
the current run; the embedding program decides whether to reset and
reload or give up.
"""


class Chip8Error(Exception):
    """Base class for all virtual machine faults."""
    pass


class NoProgramLoaded(Chip8Error):
    """Run attempted before both the font and program regions hold data."""

    def __init__(self, font_loaded: bool = False, program_loaded: bool = False):
        self.font_loaded = font_loaded
        self.program_loaded = program_loaded
        missing = []
        if not font_loaded:
            missing.append("font")
        if not program_loaded:
            missing.append("program")
        super().__init__(f"No program loaded (missing: {', '.join(missing) or 'nothing'})")


class InvalidOpcode(Chip8Error):
    def __init__(self, pc: int, opcode: int):
        self.pc = pc
        self.opcode = opcode
        super().__init__(f"Invalid opcode: ${opcode:04X} at program counter ${pc:03X}")


class InvalidRegister(Chip8Error):
    """Register index outside V0–VF. Reaching this means a decode bug."""

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Invalid register {index}")


class InvalidKey(Chip8Error):
    def __init__(self, key: int):
        self.key = key
        super().__init__(f"Invalid key {key} (expected 0x0-0xF)")


class OutOfBounds(Chip8Error):
    """Address arithmetic escaped the memory array."""

    def __init__(self, addr: int, length: int = 1, size: int = 4096):
        self.addr = addr
        self.length = length
        self.size = size
        super().__init__(
            f"Memory access out of bounds: {length} byte(s) at ${addr:04X} "
            f"(memory size ${size:04X})")


class StackOverflow(Chip8Error):
    def __init__(self, depth: int):
        self.depth = depth
        super().__init__(f"Call stack overflow (capacity {depth})")


class StackUnderflow(Chip8Error):
    def __init__(self):
        super().__init__("Return with empty call stack")
