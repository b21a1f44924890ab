"""
Intcode VM — Run Configuration
==============================

Settings for the command-line runner. Library code (Program, Executor)
takes no configuration beyond an optional logger; everything here is read
by icvm.py.

Precedence: command-line flags override environment variables, which
override the defaults below.

Environment:
    ICVM_LOG_LEVEL   DEBUG / INFO / WARNING / ERROR   (default WARNING)
    ICVM_TRACE       1 / true / yes to dump the instruction trace
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

# =============================================================================
#  DEFAULTS
# =============================================================================
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Prompt written to stdout before reading an interactive input line
INPUT_PROMPT = "Input: "

ENV_LOG_LEVEL = "ICVM_LOG_LEVEL"
ENV_TRACE = "ICVM_TRACE"

_TRUE_WORDS = ("1", "true", "yes", "on")


@dataclass
class RunConfig:
    """Everything the CLI needs to load and drive one program."""
    program_path: Optional[str] = None
    inputs: List[int] = field(default_factory=list)
    patches: Dict[int, int] = field(default_factory=dict)
    read_addresses: List[int] = field(default_factory=list)
    interactive: bool = True
    trace: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def log_level_value(self) -> int:
        """Numeric logging level; unknown names fall back to the default."""
        level = logging.getLevelName(self.log_level.upper())
        if isinstance(level, int):
            return level
        return logging.getLevelName(DEFAULT_LOG_LEVEL)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'RunConfig':
        env = os.environ if environ is None else environ
        return cls(
            log_level=env.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL),
            trace=env.get(ENV_TRACE, "").strip().lower() in _TRUE_WORDS,
        )


def parse_patch(text: str) -> tuple:
    """Parse an ADDR=VALUE patch argument into (addr, value)."""
    addr, sep, value = text.partition("=")
    if not sep:
        raise ValueError(f"Patch must look like ADDR=VALUE, got {text!r}")
    address = int(addr.strip())
    if address < 0:
        raise ValueError(f"Patch address must be non-negative, got {address}")
    return address, int(value.strip())
