"""
Intcode VM — Instruction Decoder

An instruction is one cell holding the opcode and its parameter modes,
followed by one cell per parameter:

    1002,4,3,4
    ││││
    ││└┴─ opcode 02 (MUL)
    │└─── mode of parameter 1: 0 (position)
    └──── mode of parameter 2: 1 (immediate)
          parameter 3: no digit → 0 (position)

The two lowest decimal digits select the opcode. The remaining digits,
read least-significant first, give one mode per parameter; missing
digits mean position mode.

Addressing modes:
  POSITION   (0)  raw value is an address to read
  IMMEDIATE  (1)  raw value is the operand itself
  RELATIVE   (2)  raw value is an offset from the relative base

decode() is a pure function of (memory, ip). Instructions are frozen
dataclasses, so two decodes of unchanged memory compare equal.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Dict, Tuple

from .errors import UnknownOpcode, UnknownMode


# ──────────────────────────────────────────────
# Opcodes and addressing modes
# ──────────────────────────────────────────────

class Opcode(enum.Enum):
    ADD = 1
    MULTIPLY = 2
    INPUT = 3
    OUTPUT = 4
    JUMP_IF_TRUE = 5
    JUMP_IF_FALSE = 6
    LESS_THAN = 7
    EQUALS = 8
    ADJUST_RELATIVE_BASE = 9
    TERMINATE = 99


class Mode(enum.Enum):
    POSITION = 0
    IMMEDIATE = 1
    RELATIVE = 2


# Format: opcode -> (mnemonic, parameter_count, last_param_is_write_target)
OPCODES: Dict[Opcode, Tuple[str, int, bool]] = {
    Opcode.ADD:                  ('ADD', 3, True),
    Opcode.MULTIPLY:             ('MUL', 3, True),
    Opcode.INPUT:                ('IN',  1, True),
    Opcode.OUTPUT:               ('OUT', 1, False),
    Opcode.JUMP_IF_TRUE:         ('JNZ', 2, False),
    Opcode.JUMP_IF_FALSE:        ('JZ',  2, False),
    Opcode.LESS_THAN:            ('LT',  3, True),
    Opcode.EQUALS:               ('EQ',  3, True),
    Opcode.ADJUST_RELATIVE_BASE: ('ARB', 1, False),
    Opcode.TERMINATE:            ('HLT', 0, False),
}

_BY_VALUE = {op.value: op for op in Opcode}
_MODE_BY_DIGIT = {m.value: m for m in Mode}


def parameter_count(opcode: Opcode) -> int:
    return OPCODES[opcode][1]


def mnemonic(opcode: Opcode) -> str:
    return OPCODES[opcode][0]


# ──────────────────────────────────────────────
# Decoded forms
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Parameter:
    mode: Mode
    raw: int

    def __str__(self) -> str:
        if self.mode is Mode.IMMEDIATE:
            return f"#{self.raw}"
        if self.mode is Mode.RELATIVE:
            return f"[rb{self.raw:+d}]"
        return f"[{self.raw}]"


@dataclass(frozen=True)
class Instruction:
    """One decoded instruction: where it sits, its raw cell, what it does."""
    ip: int
    raw: int
    opcode: Opcode
    params: Tuple[Parameter, ...] = ()

    @property
    def size(self) -> int:
        """Cells occupied: the opcode cell plus one per parameter."""
        return 1 + len(self.params)

    @property
    def next_ip(self) -> int:
        return self.ip + self.size

    def __str__(self) -> str:
        mnem, _, writes = OPCODES[self.opcode]
        operands = [str(p) for p in self.params]
        if writes and operands:
            target = operands.pop()
            body = ' '.join(operands + ['->', target])
        else:
            body = ' '.join(operands)
        return f"{self.ip:04d}: {mnem:4s}{body}".rstrip()


# ──────────────────────────────────────────────
# Decoder
# ──────────────────────────────────────────────

def decode_opcode(value: int, ip: int = None) -> Opcode:
    """Map the low two digits of an instruction cell to an Opcode."""
    if value < 0 or value % 100 not in _BY_VALUE:
        raise UnknownOpcode(value, ip=ip)
    return _BY_VALUE[value % 100]


def decode(memory, ip: int) -> Instruction:
    """Decode the instruction at `ip`.

    Raises UnknownOpcode if the opcode digits are not in the instruction
    set, UnknownMode if a mode digit is not 0, 1 or 2.
    """
    raw = memory.get(ip)
    opcode = decode_opcode(raw, ip)

    modes = raw // 100
    params = []
    for offset in range(1, parameter_count(opcode) + 1):
        digit = modes % 10
        modes //= 10
        mode = _MODE_BY_DIGIT.get(digit)
        if mode is None:
            raise UnknownMode(digit, ip=ip, raw=raw)
        params.append(Parameter(mode, memory.get(ip + offset)))

    return Instruction(ip=ip, raw=raw, opcode=opcode, params=tuple(params))
