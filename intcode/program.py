"""
Intcode VM — Program (decode/execute loop + suspend/resume)

A Program owns one Memory tape, the instruction pointer, the relative
base, and a FIFO input/output queue pair. Clients push inputs, call one of
the run methods, and read outputs when control comes back.

State machine:

    RUNNING ──INPUT, queue empty──> WAITING_FOR_INPUT
       ^                                  │
       └──── push_input() + run*() ───────┘
    RUNNING ──TERMINATE──> HALTED    (terminal)
    any     ──decode/exec error──> FAILED    (terminal, error re-raised)

Run methods are all wrappers over run_until(stop):
  run()            until WAITING_FOR_INPUT or HALTED
  run_to_output()  as run(), but also stop right after an OUTPUT
  step()           exactly one instruction

There is no step limit and no timeout: a program that never halts and
never waits for input keeps the calling thread busy until it is killed.
"""

import copy
import logging
from collections import deque
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional

from .decoder import Instruction, Opcode, decode
from .errors import IntcodeError, NoInputAvailable
from .executor import Executor, Outcome
from .memory import Memory


class Status(Enum):
    RUNNING = 'RUNNING'
    WAITING_FOR_INPUT = 'WAITING_FOR_INPUT'
    HALTED = 'HALTED'
    FAILED = 'FAILED'


StopPredicate = Callable[[Instruction], bool]


def _stop_on_output(ins: Instruction) -> bool:
    return ins.opcode is Opcode.OUTPUT


class Program:
    """One running Intcode machine.

    Usage:
        prog = Program([3, 0, 4, 0, 99])
        prog.push_input(42)
        prog.run()                # Status.HALTED
        prog.drain_output()       # [42]

    The logger is injected so independent machines (e.g. one per worker
    thread) can log to separate destinations. Defaults to this module's
    logger.
    """

    def __init__(self, program: Iterable[int], inputs: Iterable[int] = (),
                 logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger(__name__)
        self._initial = tuple(program)
        self.memory = Memory(self._initial)
        self.ip = 0
        self.relative_base = 0
        self.inputs = deque(inputs)
        self.outputs = deque()
        self.status = Status.RUNNING
        self.error: Optional[IntcodeError] = None
        self.steps = 0

        self._executor = Executor(self.log)
        self._trace = False
        self._trace_output: List[str] = []

    # ══════════════════════════════════════════════
    # Construction helpers
    # ══════════════════════════════════════════════

    @classmethod
    def from_text(cls, text: str, **kwargs) -> 'Program':
        from .loader import parse_program
        return cls(parse_program(text), **kwargs)

    @classmethod
    def from_file(cls, path, **kwargs) -> 'Program':
        from .loader import load_program
        return cls(load_program(path), **kwargs)

    def clone(self, logger: Optional[logging.Logger] = None) -> 'Program':
        """Fully independent copy: memory, queues, registers and status.

        The copy shares nothing mutable with the original, so it can be
        handed to another thread. A failed program clones as failed, with
        its own copy of the stored error.
        """
        other = Program(self._initial, logger=logger or self.log)
        other.memory = self.memory.copy()
        other.ip = self.ip
        other.relative_base = self.relative_base
        other.inputs = deque(self.inputs)
        other.outputs = deque(self.outputs)
        other.status = self.status
        other.error = copy.copy(self.error)
        other.steps = self.steps
        other._trace = self._trace
        return other

    def reset(self):
        """Restore the freshly loaded state. Queues and trace are cleared."""
        self.memory = Memory(self._initial)
        self.ip = 0
        self.relative_base = 0
        self.inputs.clear()
        self.outputs.clear()
        self.status = Status.RUNNING
        self.error = None
        self.steps = 0
        self._trace_output.clear()

    # ══════════════════════════════════════════════
    # Queues
    # ══════════════════════════════════════════════

    def push_input(self, *values: int):
        self.inputs.extend(values)

    def take_output(self) -> Optional[int]:
        """Pop the oldest pending output, or None if there is none."""
        return self.outputs.popleft() if self.outputs else None

    def drain_output(self) -> List[int]:
        """Return every pending output in production order and clear them."""
        values = list(self.outputs)
        self.outputs.clear()
        return values

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    @property
    def halted(self) -> bool:
        return self.status is Status.HALTED

    @property
    def waiting(self) -> bool:
        return self.status is Status.WAITING_FOR_INPUT

    def run_until(self, stop: Optional[StopPredicate] = None) -> Status:
        """Decode/execute until the program waits, halts, or `stop` says so.

        `stop` is called with each executed instruction that left the
        program RUNNING. Returns the status at the point control comes
        back to the caller.
        """
        self._resume()
        while self.status is Status.RUNNING:
            ins = self._execute_one()
            if stop is not None and self.status is Status.RUNNING and stop(ins):
                break
        return self.status

    def run(self) -> Status:
        """Run until the program halts or needs input."""
        return self.run_until()

    def run_to_output(self) -> Optional[int]:
        """Run until the next OUTPUT executes and return its value.

        The returned value is taken off the output queue. Returns None if
        the program halted, or is waiting for input, without producing a
        new value.
        """
        produced = len(self.outputs)
        self.run_until(_stop_on_output)
        if len(self.outputs) > produced:
            return self.outputs.pop()
        return None

    def iter_outputs(self) -> Iterator[int]:
        """Yield output values one at a time until run_to_output() has none."""
        while True:
            value = self.run_to_output()
            if value is None:
                return
            yield value

    def step(self) -> Status:
        """Execute exactly one instruction."""
        return self.run_until(lambda ins: True)

    def _resume(self):
        if self.status is Status.FAILED:
            raise self.error
        if self.status is Status.WAITING_FOR_INPUT:
            if not self.inputs:
                raise NoInputAvailable(
                    "Program is waiting for input and the input queue is empty",
                    ip=self.ip, raw=self.memory.get(self.ip))
            self.status = Status.RUNNING

    def _execute_one(self) -> Instruction:
        ip = self.ip
        try:
            ins = decode(self.memory, ip)
            outcome = self._executor.execute(self, ins)
        except IntcodeError as e:
            self.error = e.with_context(ip, self.memory.get(ip))
            self.status = Status.FAILED
            self.log.debug("Program failed: %s", self.error)
            raise

        if self._trace:
            self._trace_output.append(
                f"{ins}  ; rb={self.relative_base} {outcome.value}")

        if outcome is Outcome.SUSPEND:
            self.status = Status.WAITING_FOR_INPUT
            return ins
        self.steps += 1
        if outcome is Outcome.HALT:
            self.status = Status.HALTED
        return ins

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one line per executed instruction."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def display(self) -> str:
        return (f"ip={self.ip} rb={self.relative_base} status={self.status.value} "
                f"in={list(self.inputs)} out={list(self.outputs)} steps={self.steps}")

    def __repr__(self) -> str:
        return f"Program({self.display()})"
