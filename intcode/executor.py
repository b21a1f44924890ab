"""
Intcode VM — Instruction Executor

Applies one decoded instruction to the machine state: memory, instruction
pointer, relative base and the input/output queues. The executor does not
loop; Program drives decode → execute and interprets the Outcome.

Operand resolution:

    mode        as a value                        as a write target
    ─────────   ───────────────────────────────   ────────────────────
    POSITION    memory[raw]                       raw
    IMMEDIATE   raw                               InvalidWriteMode
    RELATIVE    memory[relative_base + raw]       relative_base + raw

Outcomes:
  ADVANCE   ip moves past the instruction (1 + parameter count)
  JUMPED    the handler already set ip
  SUSPEND   INPUT found the queue empty; ip and memory are untouched
  HALT      TERMINATE executed; ip is left on the TERMINATE cell
"""

import enum
import logging

from .decoder import Instruction, Mode, Opcode, Parameter
from .errors import InvalidWriteMode, OutOfBoundsError


class Outcome(enum.Enum):
    ADVANCE = 'ADVANCE'
    JUMPED = 'JUMPED'
    SUSPEND = 'SUSPEND'
    HALT = 'HALT'


class Executor:
    """Opcode semantics for a single machine.

    `state` passed to execute() must expose `memory`, `ip`,
    `relative_base`, `inputs` (a deque) and `outputs` (a deque).
    """

    def __init__(self, logger: logging.Logger = None):
        self.log = logger or logging.getLogger(__name__)
        self._dispatch = self._build_dispatch()

    def _build_dispatch(self) -> dict:
        """Opcode → handler. One entry per Opcode member."""
        return {
            Opcode.ADD:                  self._op_add,
            Opcode.MULTIPLY:             self._op_mul,
            Opcode.INPUT:                self._op_input,
            Opcode.OUTPUT:               self._op_output,
            Opcode.JUMP_IF_TRUE:         self._op_jump_if_true,
            Opcode.JUMP_IF_FALSE:        self._op_jump_if_false,
            Opcode.LESS_THAN:            self._op_less_than,
            Opcode.EQUALS:               self._op_equals,
            Opcode.ADJUST_RELATIVE_BASE: self._op_adjust_relative_base,
            Opcode.TERMINATE:            self._op_terminate,
        }

    def execute(self, state, ins: Instruction) -> Outcome:
        handler = self._dispatch[ins.opcode]
        outcome = handler(state, ins)
        if outcome is Outcome.ADVANCE:
            state.ip = ins.next_ip
        return outcome

    # ══════════════════════════════════════════════
    # Operand resolution
    # ══════════════════════════════════════════════

    @staticmethod
    def value(state, param: Parameter) -> int:
        if param.mode is Mode.IMMEDIATE:
            return param.raw
        if param.mode is Mode.RELATIVE:
            return state.memory.get(state.relative_base + param.raw)
        return state.memory.get(param.raw)

    @staticmethod
    def target(state, param: Parameter) -> int:
        if param.mode is Mode.IMMEDIATE:
            raise InvalidWriteMode(
                f"Immediate parameter {param.raw} used as a write target")
        if param.mode is Mode.RELATIVE:
            return state.relative_base + param.raw
        return param.raw

    def _write(self, state, param: Parameter, value: int):
        address = self.target(state, param)
        self.log.debug("[SET] [%s] = %s", address, value)
        state.memory.set(address, value)

    def _jump(self, state, destination: int) -> Outcome:
        if destination < 0:
            raise OutOfBoundsError(destination)
        self.log.debug("[JMP] -> %s", destination)
        state.ip = destination
        return Outcome.JUMPED

    # ══════════════════════════════════════════════
    # Handlers
    # ══════════════════════════════════════════════

    def _op_add(self, state, ins):
        a, b = self.value(state, ins.params[0]), self.value(state, ins.params[1])
        self.log.debug("[ADD] %s + %s = %s", a, b, a + b)
        self._write(state, ins.params[2], a + b)
        return Outcome.ADVANCE

    def _op_mul(self, state, ins):
        a, b = self.value(state, ins.params[0]), self.value(state, ins.params[1])
        self.log.debug("[MUL] %s * %s = %s", a, b, a * b)
        self._write(state, ins.params[2], a * b)
        return Outcome.ADVANCE

    def _op_input(self, state, ins):
        # Resolve the target before touching the queue so a bad mode
        # does not swallow an input value.
        self.target(state, ins.params[0])
        if not state.inputs:
            self.log.debug("[INP] queue empty at ip=%s, suspending", ins.ip)
            return Outcome.SUSPEND
        value = state.inputs.popleft()
        self.log.debug("[INP] %s", value)
        self._write(state, ins.params[0], value)
        return Outcome.ADVANCE

    def _op_output(self, state, ins):
        value = self.value(state, ins.params[0])
        self.log.debug("[OUT] %s", value)
        state.outputs.append(value)
        return Outcome.ADVANCE

    def _op_jump_if_true(self, state, ins):
        if self.value(state, ins.params[0]) != 0:
            return self._jump(state, self.value(state, ins.params[1]))
        return Outcome.ADVANCE

    def _op_jump_if_false(self, state, ins):
        if self.value(state, ins.params[0]) == 0:
            return self._jump(state, self.value(state, ins.params[1]))
        return Outcome.ADVANCE

    def _op_less_than(self, state, ins):
        a, b = self.value(state, ins.params[0]), self.value(state, ins.params[1])
        self._write(state, ins.params[2], 1 if a < b else 0)
        return Outcome.ADVANCE

    def _op_equals(self, state, ins):
        a, b = self.value(state, ins.params[0]), self.value(state, ins.params[1])
        self._write(state, ins.params[2], 1 if a == b else 0)
        return Outcome.ADVANCE

    def _op_adjust_relative_base(self, state, ins):
        delta = self.value(state, ins.params[0])
        state.relative_base += delta
        self.log.debug("[ARB] %+d -> %s", delta, state.relative_base)
        return Outcome.ADVANCE

    def _op_terminate(self, state, ins):
        self.log.debug("[HLT] at ip=%s", ins.ip)
        return Outcome.HALT
