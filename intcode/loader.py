"""
Intcode program loader.

Program text is one line (or a whitespace-trimmed blob) of comma-separated
base-10 integers, each optionally signed:

    1,9,10,3,2,3,11,0,99,30,40,50
    109,-1,204,1,99

Any token that is not an integer, including an empty one from a stray
comma, aborts loading with a LoadError naming the token.
"""

import re
from pathlib import Path
from typing import List, Union

from .errors import LoadError

__all__ = ['parse_program', 'load_program', 'format_program']

_INT_RE = re.compile(r'[+-]?[0-9]+')


def parse_program(text: str) -> List[int]:
    """Parse comma-separated integers into a list."""
    text = text.strip()
    if not text:
        raise LoadError("Program text is empty")

    program = []
    for index, token in enumerate(text.split(',')):
        token = token.strip()
        if not _INT_RE.fullmatch(token):
            raise LoadError(f"Token {index} is not an integer: {token!r}")
        program.append(int(token))
    return program


def load_program(path: Union[str, Path]) -> List[int]:
    """Read and parse a program file (UTF-8)."""
    try:
        text = Path(path).read_text(encoding='utf-8')
    except FileNotFoundError:
        raise LoadError(f"File not found: {path}") from None
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Error reading {path}: {e}") from e
    return parse_program(text)


def format_program(program) -> str:
    """Inverse of parse_program: join cells back into program text."""
    return ','.join(str(v) for v in program)
