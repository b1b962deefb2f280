"""
Property tests: register-wide and arithmetic invariants checked over
generated operands.
"""

from hypothesis import given, settings, strategies as st

from chip8_vm import Chip8Emulator, InvalidOpcode
from chip8_vm.cpu.decoder import decode

registers = st.integers(0, 15)
bytes8 = st.integers(0, 0xFF)


def _emu(*words) -> Chip8Emulator:
    program = b''.join(w.to_bytes(2, 'big') for w in words)
    return Chip8Emulator.from_rom(program)


@given(x=registers, y=registers, values=st.lists(bytes8, min_size=16, max_size=16))
def test_mov_copies_prior_vy(x, y, values):
    emu = _emu(0x8000 | x << 8 | y << 4)
    for r, v in enumerate(values):
        emu.regs.set(r, v)
    emu.step()
    assert emu.regs.get(x) == values[y]


@given(a=bytes8, b=bytes8)
def test_add_carry(a, b):
    emu = _emu(0x8014)
    emu.regs.set(0, a)
    emu.regs.set(1, b)
    emu.step()
    assert emu.regs.get(0) == (a + b) % 256
    assert emu.regs.flag == (1 if a + b > 255 else 0)


@given(a=bytes8, b=bytes8)
def test_sub_borrow(a, b):
    emu = _emu(0x8015)
    emu.regs.set(0, a)
    emu.regs.set(1, b)
    emu.step()
    assert emu.regs.get(0) == (a - b) % 256
    assert emu.regs.flag == (1 if a >= b else 0)


@given(a=bytes8, nn=bytes8)
def test_add_immediate_leaves_flag(a, nn):
    emu = _emu(0x7000 | nn)
    emu.regs.set(0, a)
    emu.regs.set(0xF, 0x5A)
    emu.step()
    assert emu.regs.get(0) == (a + nn) % 256
    assert emu.regs.flag == 0x5A


@given(value=bytes8)
def test_bcd_digits(value):
    emu = _emu(0xA300, 0xF033)
    emu.regs.set(0, value)
    emu.step()
    emu.step()
    hundreds, tens, units = emu.mem.read_block(0x300, 3)
    assert hundreds * 100 + tens * 10 + units == value
    assert all(d < 10 for d in (hundreds, tens, units))


@given(x=registers, values=st.lists(bytes8, min_size=16, max_size=16),
       addr=st.integers(0x300, 0xFF0))
def test_store_load_round_trip(x, values, addr):
    emu = _emu(0xF055 | x << 8, 0xF065 | x << 8)
    for r, v in enumerate(values):
        emu.regs.set(r, v)
    emu.regs.I = addr
    emu.step()
    for r in range(16):
        emu.regs.set(r, 0)
    emu.step()
    assert emu.regs.V[:x + 1] == values[:x + 1]
    assert emu.regs.I == addr


@settings(max_examples=50)
@given(vx=bytes8, vy=bytes8, sprite=st.binary(min_size=1, max_size=15))
def test_double_draw_restores_display(vx, vy, sprite):
    n = len(sprite)
    emu = _emu(0xA300, 0xD010 | n, 0xD010 | n)
    emu.mem.write_block(0x300, sprite)
    emu.regs.set(0, vx)
    emu.regs.set(1, vy)
    emu.step()
    emu.step()
    first = emu.framebuffer()
    emu.step()
    assert not emu.framebuffer().any()
    assert emu.regs.flag == (1 if first.any() else 0)


@given(word=st.integers(0, 0xFFFF))
def test_decode_is_total(word):
    try:
        ins = decode(word, pc=0x200)
    except InvalidOpcode as e:
        assert e.opcode == word
        assert e.pc == 0x200
    else:
        assert ins.opcode == word
        assert ins.nnn == word & 0x0FFF


@given(word=st.integers(0, 0xFFFF), addr=st.sampled_from([0xFFA, 0xFFC, 0xFFE]),
       values=st.lists(bytes8, min_size=16, max_size=16))
def test_pc_stays_in_memory(word, addr, values):
    emu = _emu(0x1000 | addr)
    emu.mem.write_block(addr, word.to_bytes(2, 'big'))
    emu.step()
    for r, v in enumerate(values):
        emu.regs.set(r, v)
    emu.regs.I = 0x300
    emu.step()
    assert 0 <= emu.regs.PC < 4096
    assert all(ret < 4096 for ret in emu.regs.stack)
