"""
Intcode VM
==========
A small stored-program virtual machine for Intcode: self-modifying integer
programs run against a growable memory tape, with cooperative suspension
at input/output boundaries.

Architecture:
    ┌───────────┐    ┌──────────┐    ┌──────────┐    ┌──────────┐
    │ Program   │───>│  Loader  │───>│ Decoder  │───>│ Executor │
    │ text      │    │ (ints)   │    │ (instr)  │    │ (state)  │
    └───────────┘    └──────────┘    └──────────┘    └──────────┘
                                           ^               │
                                           └── Program ────┘
                                       decode/execute loop,
                                       suspend on INPUT, stop on OUTPUT

    - memory.py:   zero-extended integer tape, rejects negative addresses
    - decoder.py:  opcode/mode digits → frozen Instruction
    - executor.py: one handler per opcode, operand resolution
    - program.py:  status machine, queues, run/run_to_output/step
    - loader.py:   comma-separated text → list of ints
    - errors.py:   LoadError / DecodeError / ExecutionError families
"""

__version__ = "0.3.0"

from .errors import (
    IntcodeError, LoadError,
    DecodeError, UnknownOpcode, UnknownMode,
    ExecutionError, InvalidWriteMode, OutOfBoundsError, NoInputAvailable,
)
from .memory import Memory
from .decoder import Opcode, Mode, Parameter, Instruction, decode
from .executor import Executor, Outcome
from .program import Program, Status
from .loader import parse_program, load_program, format_program


def run_source(source: str, inputs=(), logger=None) -> list:
    """Run program text to completion and return everything it output.

    Convenience for batch clients: all inputs are supplied up front, so
    the program must not ask for more than it is given.

    Raises NoInputAvailable if the program waits for input after the
    supplied values run out.
    """
    prog = Program.from_text(source, inputs=inputs, logger=logger)
    status = prog.run()
    if status is Status.WAITING_FOR_INPUT:
        raise NoInputAvailable("Program asked for more input than was supplied",
                               ip=prog.ip, raw=prog.memory.get(prog.ip))
    return prog.drain_output()
