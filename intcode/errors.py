"""
Intcode VM — Error Taxonomy

Every failure the interpreter can report is an IntcodeError. Errors raised
while a program is running carry the instruction pointer and the raw
instruction value so the caller can say exactly where execution died.

    IntcodeError
    ├── LoadError            malformed program text, unreadable file
    ├── DecodeError
    │   ├── UnknownOpcode    opcode digits not in the instruction set
    │   └── UnknownMode      mode digit not 0, 1 or 2
    └── ExecutionError
        ├── InvalidWriteMode   immediate parameter used as a write target
        ├── OutOfBoundsError   negative memory address
        └── NoInputAvailable   resumed while waiting with an empty queue

None of these are retried. A running Program that hits a DecodeError or
ExecutionError (other than NoInputAvailable) is marked failed for good.
"""

from __future__ import annotations
from typing import Optional

__all__ = [
    'IntcodeError', 'LoadError',
    'DecodeError', 'UnknownOpcode', 'UnknownMode',
    'ExecutionError', 'InvalidWriteMode', 'OutOfBoundsError',
    'NoInputAvailable',
]


class IntcodeError(Exception):
    """Base class for all interpreter errors."""
    def __init__(self, message: str, ip: Optional[int] = None,
                 raw: Optional[int] = None):
        self.message = message
        self.ip = ip
        self.raw = raw
        super().__init__(self._format())

    def _format(self) -> str:
        if self.ip is None:
            return self.message
        if self.raw is None:
            return f"ip={self.ip}: {self.message}"
        return f"ip={self.ip} (raw={self.raw}): {self.message}"

    def with_context(self, ip: int, raw: Optional[int]) -> 'IntcodeError':
        """Attach ip/raw if not already set. Returns self for re-raising."""
        if self.ip is None:
            self.ip = ip
            self.raw = raw
            self.args = (self._format(),)
        return self

    def __str__(self) -> str:
        return self._format()

    def __copy__(self) -> 'IntcodeError':
        """Same type, message and context; no traceback or chained cause."""
        other = Exception.__new__(type(self), *self.args)
        other.__dict__.update(self.__dict__)
        return other


class LoadError(IntcodeError):
    """Program text could not be turned into a list of integers."""
    pass


# ──────────────────────────────────────────────
# Decode errors
# ──────────────────────────────────────────────

class DecodeError(IntcodeError):
    pass


class UnknownOpcode(DecodeError):
    def __init__(self, value: int, ip: Optional[int] = None):
        self.value = value
        super().__init__(f"Unknown opcode in instruction {value}",
                         ip=ip, raw=value)


class UnknownMode(DecodeError):
    def __init__(self, digit: int, ip: Optional[int] = None,
                 raw: Optional[int] = None):
        self.digit = digit
        super().__init__(f"Unknown parameter mode {digit}", ip=ip, raw=raw)


# ──────────────────────────────────────────────
# Execution errors
# ──────────────────────────────────────────────

class ExecutionError(IntcodeError):
    pass


class InvalidWriteMode(ExecutionError):
    pass


class OutOfBoundsError(ExecutionError):
    def __init__(self, address: int, ip: Optional[int] = None,
                 raw: Optional[int] = None):
        self.address = address
        super().__init__(f"Negative memory address {address}", ip=ip, raw=raw)


class NoInputAvailable(ExecutionError):
    pass
