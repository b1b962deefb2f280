"""
Tests for the chip8run command-line runner.
"""

import chip8run


def _rom(tmp_path, *words):
    path = tmp_path / "test.ch8"
    path.write_bytes(b''.join(w.to_bytes(2, 'big') for w in words))
    return str(path)


class TestRunner:

    def test_halt_prints_exit_value(self, tmp_path, capsys):
        rom = _rom(tmp_path, 0x6005, 0x0042)
        assert chip8run.main([rom]) == chip8run.EXIT_OK
        assert "exit $042" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert chip8run.main([str(tmp_path / "nope.ch8")]) == chip8run.EXIT_USAGE
        assert "File not found" in capsys.readouterr().err

    def test_fault(self, tmp_path, capsys):
        rom = _rom(tmp_path, 0x5001)
        assert chip8run.main([rom]) == chip8run.EXIT_FAULT
        assert "Invalid opcode: $5001" in capsys.readouterr().err

    def test_key_wait_without_keys(self, tmp_path, capsys):
        rom = _rom(tmp_path, 0xF20A, 0x0001)
        assert chip8run.main([rom]) == chip8run.EXIT_KEY_WAIT
        assert "V2" in capsys.readouterr().err

    def test_keys_feed_waits(self, tmp_path, capsys):
        rom = _rom(tmp_path, 0xF00A, 0xF10A, 0x0001)
        assert chip8run.main([rom, "--keys", "7C", "--dump-regs"]) == chip8run.EXIT_OK
        assert "V=[07 0C" in capsys.readouterr().out

    def test_step_limit(self, tmp_path, capsys):
        rom = _rom(tmp_path, 0x1200)
        assert chip8run.main([rom, "--max-steps", "0x100"]) == chip8run.EXIT_TIMEOUT

    def test_timers_tick_per_frame(self, tmp_path, capsys):
        # Set delay to 3, spin until it reads 0, then exit
        rom = _rom(tmp_path,
                   0x6003,  # $200 LD V0,3
                   0xF015,  # $202 LD DT,V0
                   0xF107,  # $204 LD V1,DT
                   0x3100,  # $206 SE V1,0
                   0x1204,  # $208 JP $204
                   0x0001)  # $20A EXIT 1
        assert chip8run.main([rom, "--ipf", "4", "--max-steps", "1000"]) == chip8run.EXIT_OK

    def test_dump_display(self, tmp_path, capsys):
        rom = _rom(tmp_path, 0xD005, 0x0001)
        assert chip8run.main([rom, "--dump-display"]) == chip8run.EXIT_OK
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("####....")
        assert out[-1] == "exit $001"

    def test_oversized_rom_is_a_load_error(self, tmp_path, capsys):
        path = tmp_path / "big.ch8"
        path.write_bytes(b'\x12\x00' * 2000)
        assert chip8run.main([str(path)]) == chip8run.EXIT_USAGE
        err = capsys.readouterr().err
        assert "Error loading" in err
        assert "Machine fault" not in err

    def test_empty_rom_is_a_load_error(self, tmp_path, capsys):
        path = tmp_path / "empty.ch8"
        path.write_bytes(b'')
        assert chip8run.main([str(path)]) == chip8run.EXIT_USAGE
        assert "Error loading" in capsys.readouterr().err

    def test_dump_mem(self, tmp_path, capsys):
        rom = _rom(tmp_path, 0x609D, 0xA300, 0xF033, 0x0001)   # BCD of 157 at $300
        assert chip8run.main([rom, "--dump-mem", "0x300:16"]) == chip8run.EXIT_OK
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("300  01 05 07 00")
        assert out[-1] == "exit $001"

    def test_dump_mem_start_out_of_range(self, tmp_path, capsys):
        rom = _rom(tmp_path, 0x0001)
        assert chip8run.main([rom, "--dump-mem", "0x1000"]) == chip8run.EXIT_USAGE

    def test_parse_int_arg(self):
        assert chip8run.parse_int_arg("0x10") == 16
        assert chip8run.parse_int_arg("$10") == 16
        assert chip8run.parse_int_arg("10") == 10

    def test_parse_keys(self):
        assert chip8run.parse_keys("1a, F") == [0x1, 0xA, 0xF]

    def test_parse_mem_range(self):
        assert chip8run.parse_mem_range("$200:32") == (0x200, 32)
        assert chip8run.parse_mem_range("0x300") == (0x300, 256)


class TestLogging:

    def test_setup_logging_writes_file(self, tmp_path):
        import logging
        from chip8_vm.log_setup import setup_logging

        log_file = tmp_path / "logs" / "vm.log"
        logger = setup_logging("chip8_vm_test_logfile", log_file=log_file)
        assert setup_logging("chip8_vm_test_logfile") is logger
        logger.info("hello from the test")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from the test" in log_file.read_text(encoding="utf-8")
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logging.getLogger("chip8_vm_test_logfile").setLevel(logging.NOTSET)
