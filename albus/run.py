#!/usr/bin/env python3

import albusinterpreter
import albusisa
import albusparser

import optparse
import sys

from typing import Optional

def parse_args(argv: list[str]) -> tuple[optparse.Values, list[str]]:
    usage = 'usage: %prog [options] filename'
    p = optparse.OptionParser(usage=usage)
    p.add_option('--dis',
                 action='store_true',
                 default=False,
                 help='disassemble program'
                 )
    p.add_option('--trace',
                 action='store_true',
                 default=False,
                 help='display executed instructions step by step'
                 )
    p.add_option('--strict',
                 action='store_true',
                 default=False,
                 help='reject unknown and truncated instructions'
                 )
    return p.parse_args(argv)

def read_source(filename: str) -> str:
    with open(filename, 'r', newline='') as f:
        return f.read()

def format_outcome(outcome: albusinterpreter.Outcome) -> str:
    stack = ', '.join(str(v) for v in outcome.stack)
    heap = ', '.join(f'{k}: {v}' for k, v in outcome.heap.items())
    return f'stack: [{stack}]\nheap: {{{heap}}}\ninsns: {outcome.count}'

def run(filename: str, strict: bool, trace: bool) -> Optional[int]:
    src = read_source(filename)
    prog, labels = albusparser.parse_program(src, strict)
    vm = albusinterpreter.Vm(prog, labels, src)
    outcome = vm.run(trace=sys.stderr if trace else None)
    if vm.tail and vm.tail != '\n':
        print()
    print(format_outcome(outcome))

def dis(filename: str, strict: bool) -> Optional[int]:
    prog, _ = albusparser.parse_program(read_source(filename), strict)
    for line in albusparser.disassemble(prog):
        print(line)

def main(argv: list[str]) -> Optional[int]:
    options, args = parse_args(argv)
    try:
        filename = args[1]
    except IndexError:
        print('error: no file provided', file=sys.stderr)
        return 1
    try:
        if options.dis:
            return dis(filename, options.strict)
        else:
            return run(filename, options.strict, options.trace)
    except OSError as os_err:
        print(f'error: {os_err.filename}: {os_err.strerror}', file=sys.stderr)
        return 1
    except albusisa.AlbusError as e:
        sys.stdout.flush()
        print(f'{filename}:{e.args[0]}', file=sys.stderr)
        return 1

if __name__ == '__main__':
    status = main(sys.argv)
    sys.exit(status)
