"""
CHIP-8 Virtual Machine — Machine Constants

Memory map:
  $000–$1FF  Interpreter area (built-in font lives at $000)
  $200–$FFF  Program image

Every other module reads its geometry from here, so a variant machine
(bigger stack, different program origin) only needs these values changed.
"""

# =============================================================================
#  MEMORY
# =============================================================================
MEMORY_SIZE = 4096
PROGRAM_START = 0x200     # Programs are loaded and started here
FONT_START = 0x000        # Built-in hex font base address
FONT_GLYPH_SIZE = 5       # Bytes per glyph (8x5 pixels)

# =============================================================================
#  CPU
# =============================================================================
NUM_REGISTERS = 16
FLAG_REGISTER = 0xF       # VF: carry / borrow / collision
STACK_DEPTH = 16          # Canonical call-stack capacity
INSTRUCTION_SIZE = 2

# =============================================================================
#  PERIPHERALS
# =============================================================================
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
NUM_KEYS = 16
TIMER_HZ = 60             # Delay/sound decay rate (driven externally)

# Instructions executed per timer tick by the bundled runner.
# ~600 instructions/s is the usual pacing for classic programs.
DEFAULT_INSTRUCTIONS_PER_FRAME = 10
