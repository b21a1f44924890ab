"""
Intcode VM — Core Execution Tests

Opcode semantics, addressing modes, the suspend/resume contract and the
permanent failure state. Programs are small hand-written Intcode or
well-known examples with published results.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
from intcode import (
    Program, Status, run_source, parse_program,
    UnknownOpcode, UnknownMode, InvalidWriteMode, OutOfBoundsError,
    NoInputAvailable, DecodeError, ExecutionError, LoadError,
)


def _run(program, *inputs):
    """Run to completion, return (program, outputs)."""
    prog = Program(program, inputs=inputs)
    status = prog.run()
    assert status is Status.HALTED, prog.display()
    return prog, prog.drain_output()


EQUALS_8_POSITION = [3, 9, 8, 9, 10, 9, 4, 9, 99, -1, 8]
LESS_THAN_8_IMMEDIATE = [3, 3, 1107, -1, 8, 3, 4, 3, 99]
JUMP_POSITION = [3, 12, 6, 12, 15, 1, 13, 14, 13, 4, 13, 99, -1, 0, 1, 9]
JUMP_IMMEDIATE = [3, 3, 1105, -1, 9, 1101, 0, 0, 12, 4, 12, 99, 1]
QUINE = [109, 1, 204, -1, 1001, 100, 1, 100, 1008, 100, 16, 101, 1006, 101, 0, 99]


# ═══════════════════════════════════════════════
# Test Group 1: Arithmetic and memory
# ═══════════════════════════════════════════════

class TestArithmetic:
    def test_add_multiply_example(self):
        """1,9,10,3,2,3,11,0,99,30,40,50 → memory[0] = 3500"""
        prog, _ = _run([1, 9, 10, 3, 2, 3, 11, 0, 99, 30, 40, 50])
        assert prog.memory.get(0) == 3500
        assert prog.memory.get(3) == 70

    def test_multiply_with_immediate(self):
        """1002,4,3,4,33 → memory[4] = 99"""
        prog, _ = _run([1002, 4, 3, 4, 33])
        assert prog.memory.get(4) == 99
        assert prog.ip == 4

    def test_negative_operand(self):
        prog, _ = _run([1101, 100, -1, 4, 0])
        assert prog.memory.get(4) == 99

    @pytest.mark.parametrize("program,expected", [
        ([1, 0, 0, 0, 99], [2, 0, 0, 0, 99]),
        ([2, 3, 0, 3, 99], [2, 3, 0, 6, 99]),
        ([2, 4, 4, 5, 99, 0], [2, 4, 4, 5, 99, 9801]),
        ([1, 1, 1, 4, 99, 5, 6, 0, 99], [30, 1, 1, 4, 2, 5, 6, 0, 99]),
    ])
    def test_small_programs_final_memory(self, program, expected):
        prog, _ = _run(program)
        assert list(prog.memory.snapshot()) == expected

    def test_write_past_end_grows_tape(self):
        prog, _ = _run([1101, 2, 3, 100, 99])
        assert prog.memory.get(100) == 5
        assert prog.memory.get(50) == 0
        assert len(prog.memory) == 101

    def test_large_numbers(self):
        _, out = _run([1102, 34915192, 34915192, 7, 4, 7, 99, 0])
        assert out == [1219070632396864]
        _, out = _run([104, 1125899906842624, 99])
        assert out == [1125899906842624]

    def test_self_modifying(self):
        """First instruction rewrites the opcode of the next one (ADD → MUL)."""
        program = [1101, 1, 1, 4, 1, 2, 3, 0, 99]
        prog, _ = _run(program)
        # cell 4 became 2, so the second instruction is MUL [2]*[3] -> [0]
        assert prog.memory.get(4) == 2
        assert prog.memory.get(0) == 1 * 4

    def test_determinism(self):
        program = [1, 9, 10, 3, 2, 3, 11, 0, 99, 30, 40, 50]
        first, _ = _run(program)
        second, _ = _run(program)
        assert first.memory.snapshot() == second.memory.snapshot()
        assert first.steps == second.steps == 3


# ═══════════════════════════════════════════════
# Test Group 2: Comparisons and jumps
# ═══════════════════════════════════════════════

class TestComparisonsAndJumps:
    @pytest.mark.parametrize("value,expected", [(8, 1), (7, 0), (9, 0)])
    def test_equals_position(self, value, expected):
        _, out = _run(EQUALS_8_POSITION, value)
        assert out == [expected]

    @pytest.mark.parametrize("value,expected", [(7, 1), (8, 0), (-100, 1)])
    def test_less_than_immediate(self, value, expected):
        _, out = _run(LESS_THAN_8_IMMEDIATE, value)
        assert out == [expected]

    @pytest.mark.parametrize("program", [JUMP_POSITION, JUMP_IMMEDIATE])
    @pytest.mark.parametrize("value,expected", [(0, 0), (5, 1), (-3, 1)])
    def test_jumps(self, program, value, expected):
        _, out = _run(program, value)
        assert out == [expected]

    def test_jump_sets_ip(self):
        prog = Program([1105, 1, 7, 99, 0, 0, 0, 99])
        prog.step()
        assert prog.ip == 7

    def test_jump_not_taken_advances(self):
        prog = Program([1106, 1, 7, 99])
        prog.step()
        assert prog.ip == 3

    def test_jump_if_false_taken(self):
        prog = Program([1106, 0, 4, 0, 99])
        assert prog.run() is Status.HALTED
        assert prog.steps == 2


# ═══════════════════════════════════════════════
# Test Group 3: Relative base
# ═══════════════════════════════════════════════

class TestRelativeBase:
    def test_quine(self):
        _, out = _run(QUINE)
        assert out == QUINE

    def test_relative_vs_position_read(self):
        """109,3 sets rb=3; 204,1 reads [4]; 4,1 still reads [1]."""
        prog, out = _run([109, 3, 204, 1, 4, 1, 99])
        assert prog.relative_base == 3
        assert out == [4, 3]

    def test_relative_read_far(self):
        prog = Program([109, 2000, 109, 19, 204, -34, 99])
        prog.memory.set(1985, 42)
        prog.run()
        assert prog.relative_base == 2019
        assert prog.drain_output() == [42]

    def test_relative_write(self):
        prog, _ = _run([109, 10, 21101, 3, 4, 0, 99])
        assert prog.memory.get(10) == 7

    def test_relative_input(self):
        prog, out = _run([109, 5, 203, 2, 4, 7, 99], 11)
        assert prog.memory.get(7) == 11
        assert out == [11]

    def test_negative_relative_base_adjust(self):
        prog, _ = _run([109, 10, 109, -4, 99])
        assert prog.relative_base == 6


# ═══════════════════════════════════════════════
# Test Group 4: Input/output and suspension
# ═══════════════════════════════════════════════

class TestSuspendResume:
    def test_echo(self):
        _, out = _run([3, 0, 4, 0, 99], 123)
        assert out == [123]

    def test_input_suspends_without_side_effects(self):
        prog = Program([3, 3, 99, 0])
        before = prog.memory.snapshot()
        status = prog.run()
        assert status is Status.WAITING_FOR_INPUT
        assert prog.waiting
        assert prog.ip == 0
        assert prog.memory.snapshot() == before
        assert prog.steps == 0

    def test_resume_consumes_exactly_one_value(self):
        prog = Program([3, 3, 99, 0])
        prog.run()
        prog.push_input(7)
        status = prog.step()
        assert status is Status.RUNNING
        assert prog.memory.get(3) == 7
        assert prog.ip == 2
        assert len(prog.inputs) == 0
        assert prog.run() is Status.HALTED

    def test_extra_inputs_stay_queued(self):
        prog = Program([3, 0, 99], inputs=[1, 2, 3])
        prog.run()
        assert list(prog.inputs) == [2, 3]

    def test_resume_without_input_is_an_error(self):
        prog = Program([3, 0, 4, 0, 99])
        prog.run()
        with pytest.raises(NoInputAvailable) as exc:
            prog.run()
        assert exc.value.ip == 0
        # caller error, not a machine fault
        assert prog.status is Status.WAITING_FOR_INPUT
        prog.push_input(5)
        assert prog.run() is Status.HALTED
        assert prog.drain_output() == [5]

    def test_interactive_loop(self):
        """Sum inputs until a zero is read, then output the total."""
        program = parse_program(
            "3,100,1006,100,13,1,100,101,101,1105,1,0,99,4,101,99")
        prog = Program(program)
        fed = [4, 5, 6, 0]
        while prog.run() is Status.WAITING_FOR_INPUT:
            prog.push_input(fed.pop(0))
        assert prog.drain_output() == [15]
        assert fed == []

    def test_run_to_output(self):
        prog = Program([104, 1, 104, 2, 99])
        assert prog.run_to_output() == 1
        assert prog.ip == 2
        assert prog.status is Status.RUNNING
        assert prog.run_to_output() == 2
        assert prog.run_to_output() is None
        assert prog.halted

    def test_run_to_output_stops_for_input(self):
        prog = Program([3, 0, 4, 0, 99])
        assert prog.run_to_output() is None
        assert prog.waiting
        prog.push_input(9)
        assert prog.run_to_output() == 9
        assert list(prog.outputs) == []

    def test_iter_outputs(self):
        prog = Program(QUINE)
        assert list(prog.iter_outputs()) == QUINE

    def test_take_and_drain(self):
        prog = Program([104, 1, 104, 2, 104, 3, 99])
        prog.run()
        assert prog.take_output() == 1
        assert prog.drain_output() == [2, 3]
        assert prog.take_output() is None

    def test_halted_program_stays_halted(self):
        prog = Program([99])
        assert prog.run() is Status.HALTED
        assert prog.run() is Status.HALTED
        assert prog.steps == 1

    def test_step_one_at_a_time(self):
        prog = Program([1, 9, 10, 3, 2, 3, 11, 0, 99, 30, 40, 50])
        assert prog.step() is Status.RUNNING
        assert prog.ip == 4
        assert prog.step() is Status.RUNNING
        assert prog.ip == 8
        assert prog.step() is Status.HALTED


# ═══════════════════════════════════════════════
# Test Group 5: Failure state
# ═══════════════════════════════════════════════

class TestFailures:
    def test_unknown_opcode_is_permanent(self):
        prog = Program([1, 0, 0, 0, 5000])
        with pytest.raises(UnknownOpcode) as exc:
            prog.run()
        err = exc.value
        assert err.ip == 4
        assert err.raw == 5000
        assert isinstance(err, DecodeError)
        assert prog.status is Status.FAILED

        with pytest.raises(UnknownOpcode) as again:
            prog.run()
        assert again.value is err
        with pytest.raises(UnknownOpcode):
            prog.run_to_output()
        with pytest.raises(UnknownOpcode):
            prog.step()

    def test_failure_survives_new_input(self):
        prog = Program([3, 0, 98])
        prog.push_input(1, 2)
        with pytest.raises(UnknownOpcode):
            prog.run()
        prog.push_input(3)
        with pytest.raises(UnknownOpcode):
            prog.run()

    def test_unknown_mode(self):
        prog = Program([301, 0, 0, 0, 99])
        with pytest.raises(UnknownMode):
            prog.run()
        assert prog.status is Status.FAILED

    def test_immediate_write_target(self):
        prog = Program([11101, 1, 1, 5, 99])
        with pytest.raises(InvalidWriteMode) as exc:
            prog.run()
        assert exc.value.ip == 0
        assert exc.value.raw == 11101
        assert isinstance(exc.value, ExecutionError)
        assert prog.memory.snapshot() == (11101, 1, 1, 5, 99)

    def test_immediate_input_target_keeps_queue(self):
        prog = Program([103, 5, 99], inputs=[9])
        with pytest.raises(InvalidWriteMode):
            prog.run()
        assert list(prog.inputs) == [9]

    def test_negative_read_address(self):
        prog = Program([1, -1, 0, 0, 99])
        with pytest.raises(OutOfBoundsError) as exc:
            prog.run()
        assert exc.value.address == -1
        assert exc.value.ip == 0
        assert exc.value.raw == 1

    def test_negative_relative_write(self):
        prog = Program([109, -10, 21101, 1, 1, 0, 99])
        with pytest.raises(OutOfBoundsError) as exc:
            prog.run()
        assert exc.value.address == -10
        assert exc.value.ip == 2

    def test_negative_jump(self):
        prog = Program([1105, 1, -5, 99])
        with pytest.raises(OutOfBoundsError):
            prog.run()
        assert prog.ip == 0
        assert prog.status is Status.FAILED

    def test_clone_of_failed_program(self):
        prog = Program([1, 0, 0, 0, 5000])
        with pytest.raises(UnknownOpcode):
            prog.run()
        original = prog.error

        clone = prog.clone()
        assert clone.status is Status.FAILED
        assert clone.error is not original
        assert type(clone.error) is UnknownOpcode
        assert (clone.error.ip, clone.error.raw, clone.error.value) == (4, 5000, 5000)
        assert str(clone.error) == str(original)
        assert clone.error.__traceback__ is None

        with pytest.raises(UnknownOpcode) as exc:
            clone.run()
        assert exc.value is clone.error
        assert prog.error is original


# ═══════════════════════════════════════════════
# Test Group 6: Cloning, reset, trace, logging
# ═══════════════════════════════════════════════

class TestLifecycle:
    def test_clone_is_independent(self):
        prog = Program(EQUALS_8_POSITION)
        prog.run()
        a, b = prog.clone(), prog.clone()
        a.push_input(8)
        b.push_input(3)
        a.run()
        b.run()
        assert a.drain_output() == [1]
        assert b.drain_output() == [0]
        assert prog.waiting
        assert prog.memory.get(9) == -1

    def test_clones_across_threads(self):
        base = Program(LESS_THAN_8_IMMEDIATE)

        def worker(value):
            clone = base.clone()
            clone.push_input(value)
            clone.run()
            return clone.drain_output()[0]

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(worker, range(4, 12)))
        assert results == [1, 1, 1, 1, 0, 0, 0, 0]

    def test_reset(self):
        prog = Program([3, 0, 4, 0, 99], inputs=[6])
        prog.run()
        assert prog.halted
        prog.reset()
        assert prog.status is Status.RUNNING
        assert prog.memory.snapshot() == (3, 0, 4, 0, 99)
        assert prog.run() is Status.WAITING_FOR_INPUT

    def test_trace(self):
        prog = Program([1, 9, 10, 3, 2, 3, 11, 0, 99, 30, 40, 50])
        prog.enable_trace()
        prog.run()
        lines = prog.get_trace().split('\n')
        assert len(lines) == 3
        assert lines[0].startswith("0000: ADD [9] [10] -> [3]")
        assert "HLT" in lines[2]
        prog.clear_trace()
        assert prog.get_trace() == ""

    def test_injected_logger(self, caplog):
        log = logging.getLogger("test.vm.injected")
        caplog.set_level(logging.DEBUG, logger="test.vm.injected")
        Program([1101, 2, 3, 0, 99], logger=log).run()
        messages = [r.getMessage() for r in caplog.records if r.name == "test.vm.injected"]
        assert "[ADD] 2 + 3 = 5" in messages
        assert "[SET] [0] = 5" in messages

    def test_debug_records_use_lazy_arguments(self, caplog):
        log = logging.getLogger("test.vm.lazy")
        caplog.set_level(logging.DEBUG, logger="test.vm.lazy")
        Program([1101, 2, 3, 0, 99], logger=log).run()
        add = [r for r in caplog.records if r.getMessage().startswith("[ADD]")]
        assert add[0].msg == "[ADD] %s + %s = %s"
        assert add[0].args == (2, 3, 5)

    def test_quiet_logger_emits_nothing(self, caplog):
        log = logging.getLogger("test.vm.quiet")
        caplog.set_level(logging.WARNING, logger="test.vm.quiet")
        Program(QUINE, logger=log).run()
        assert [r for r in caplog.records if r.name == "test.vm.quiet"] == []


# ═══════════════════════════════════════════════
# Test Group 7: Construction from text and files
# ═══════════════════════════════════════════════

class TestConstruction:
    def test_from_text(self):
        prog = Program.from_text("1,9,10,3,2,3,11,0,99,30,40,50\n")
        assert prog.run() is Status.HALTED
        assert prog.memory.get(0) == 3500

    def test_from_text_passes_keywords(self, caplog):
        log = logging.getLogger("test.vm.from_text")
        caplog.set_level(logging.DEBUG, logger="test.vm.from_text")
        prog = Program.from_text("3,0,4,0,99", inputs=[17], logger=log)
        assert prog.log is log
        prog.run()
        assert prog.drain_output() == [17]
        assert any(r.name == "test.vm.from_text" for r in caplog.records)

    def test_from_text_rejects_garbage(self):
        with pytest.raises(LoadError):
            Program.from_text("1,2,x")

    def test_from_file(self, tmp_path):
        path = tmp_path / "quine.txt"
        path.write_text(",".join(str(v) for v in QUINE) + "\n", encoding="utf-8")
        prog = Program.from_file(path)
        prog.run()
        assert prog.drain_output() == QUINE

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(LoadError) as exc:
            Program.from_file(tmp_path / "nope.txt")
        assert "File not found" in str(exc.value)


class TestRunSource:
    def test_batch(self):
        assert run_source("3,9,8,9,10,9,4,9,99,-1,8", inputs=[8]) == [1]

    def test_batch_needs_enough_input(self):
        with pytest.raises(NoInputAvailable):
            run_source("3,0,3,0,99", inputs=[1])
