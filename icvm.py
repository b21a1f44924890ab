#!/usr/bin/env python3
"""
icvm — Intcode VM runner

Usage:
    python icvm.py <program.txt> [-i VALUE ...] [--patch ADDR=VALUE ...]
                                 [--read ADDR ...] [--no-interactive]
                                 [--trace] [--verbose]

Loads a comma-separated Intcode program, runs it to completion and prints
each output value on its own line as it is produced. When the program asks
for input and the -i values are used up, the runner prompts "Input: " and
reads one integer per line from stdin (unless --no-interactive is given,
in which case running out of input is an error).

Examples:
    python icvm.py input.txt --patch 1=12 --patch 2=2 --read 0
    python icvm.py input.txt -i 1
    python icvm.py input.txt -i 5 --no-interactive --trace
    ICVM_LOG_LEVEL=DEBUG python icvm.py input.txt

Exit codes:
    0  program halted normally
    1  load, decode or execution error (message on stderr)
    2  internal error
"""

import argparse
import logging
import sys
from pathlib import Path

from intcode import (
    __version__, Program, IntcodeError, LoadError, DecodeError,
    ExecutionError, NoInputAvailable,
)
from intcode.config import RunConfig, INPUT_PROMPT, LOG_FORMAT, parse_patch


def parse_int_arg(value: str) -> int:
    """Parse a signed decimal integer argument."""
    try:
        return int(value.strip(), 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")


def parse_address_arg(value: str) -> int:
    """Parse a memory address argument (non-negative integer)."""
    address = parse_int_arg(value)
    if address < 0:
        raise argparse.ArgumentTypeError(f"address must be non-negative: {address}")
    return address


def parse_patch_arg(value: str) -> tuple:
    try:
        return parse_patch(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="icvm",
        description="Run an Intcode program",
    )
    parser.add_argument("program", help="Program file (comma-separated integers)")
    parser.add_argument("-i", "--input", dest="inputs", action="append",
                        type=parse_int_arg, default=[], metavar="VALUE",
                        help="Queue an input value before running (repeatable)")
    parser.add_argument("--patch", action="append", type=parse_patch_arg,
                        default=[], metavar="ADDR=VALUE",
                        help="Overwrite a memory cell before running (repeatable)")
    parser.add_argument("--read", action="append", type=parse_address_arg,
                        default=[], metavar="ADDR",
                        help="Print a memory cell after the program halts (repeatable)")
    parser.add_argument("--no-interactive", action="store_true",
                        help="Fail instead of prompting when input runs out")
    parser.add_argument("--trace", action="store_true",
                        help="Dump the instruction trace to stderr after the run")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging to stderr")
    parser.add_argument("--version", action="version",
                        version=f"icvm {__version__}")
    return parser


def config_from_args(args, environ=None) -> RunConfig:
    """Environment defaults, overridden by whatever flags were given."""
    config = RunConfig.from_env(environ)
    config.program_path = args.program
    config.inputs = list(args.inputs)
    config.patches = dict(args.patch)
    config.read_addresses = list(args.read)
    config.interactive = not args.no_interactive
    config.trace = config.trace or args.trace
    if args.verbose:
        config.log_level = "DEBUG"
    return config


def read_input_line(stdin=None, stdout=None) -> int:
    """Prompt for and read one integer from stdin."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stdout.write(INPUT_PROMPT)
    stdout.flush()
    line = stdin.readline()
    if not line:
        raise NoInputAvailable("End of input while the program was waiting for a value")
    try:
        return int(line.strip(), 10)
    except ValueError:
        raise ExecutionError(f"Input is not an integer: {line.strip()!r}") from None


def execute(config: RunConfig, log: logging.Logger) -> Program:
    """Load, patch and drive one program until it halts.

    Output values are printed as they appear. Raises IntcodeError on any
    failure; the caller turns that into an exit code.
    """
    prog = Program.from_file(config.program_path, inputs=config.inputs,
                             logger=log)
    prog.enable_trace(config.trace)
    for addr, value in config.patches.items():
        log.debug("Patch [%s] = %s", addr, value)
        prog.memory.set(addr, value)

    try:
        while not prog.halted:
            value = prog.run_to_output()
            if value is not None:
                print(value, flush=True)
                continue
            if prog.waiting:
                if not config.interactive:
                    raise NoInputAvailable(
                        "Program needs more input than was supplied",
                        ip=prog.ip, raw=prog.memory.get(prog.ip))
                prog.push_input(read_input_line())
    finally:
        if config.trace:
            print(prog.get_trace(), file=sys.stderr)

    log.info("Halted after %s instructions", prog.steps)
    for addr in config.read_addresses:
        print(f"{addr}: {prog.memory.get(addr)}")
    return prog


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    logging.basicConfig(level=config.log_level_value, format=LOG_FORMAT,
                        stream=sys.stderr)
    log = logging.getLogger(f"icvm.{Path(config.program_path).stem}")

    if args.verbose:
        print(f"[icvm] Program: {config.program_path}", file=sys.stderr)
        print(f"[icvm] Inputs:  {config.inputs}", file=sys.stderr)
        if config.patches:
            print(f"[icvm] Patches: {config.patches}", file=sys.stderr)

    try:
        execute(config, log)
    except LoadError as e:
        print(f"Load error: {e}", file=sys.stderr)
        return 1
    except DecodeError as e:
        print(f"Decode error: {e}", file=sys.stderr)
        return 1
    except ExecutionError as e:
        print(f"Execution error: {e}", file=sys.stderr)
        return 1
    except IntcodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
