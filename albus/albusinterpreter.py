#!/usr/bin/env python3

import codecs
import pyparsing as pp
import sys

from typing import NamedTuple, NoReturn, Optional, TextIO

from albusisa import *

_signed_integer = pp.pyparsing_common.signed_integer.copy()

def tdiv(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return -quotient if (left < 0) != (right < 0) else quotient

def tmod(left: int, right: int) -> int:
    return left - right * tdiv(left, right)

class Outcome(NamedTuple):
    stack: list[int]
    heap: dict[int, int]
    count: int

class Vm:
    def __init__(self, prog: list[Inst], labels: dict[int, int], src: str = ''):
        self.prog = prog
        self.labels = labels
        self.src = src
        self.tail = ''

    def run(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None,
            trace: Optional[TextIO] = None) -> Outcome:
        prog = self.prog
        labels = self.labels
        istream = sys.stdin if stdin is None else stdin
        ostream = sys.stdout if stdout is None else stdout
        # character I/O is bytewise over the streams' text encodings
        iencoding = getattr(istream, 'encoding', None) or 'utf-8'
        oencoding = getattr(ostream, 'encoding', None) or 'utf-8'
        decoder = codecs.getincrementaldecoder(oencoding)(errors='replace')
        pending = bytearray()
        tail = ''
        stack: list[int] = []
        calls: list[int] = []
        heap: dict[int, int] = {}
        ip = 0
        count = 0
        length = len(prog)
        def die(cls: type[AlbusError], msg: str) -> NoReturn:
            error(cls, self.src, inst.loc, f'{ip:04x} {mnemonic(inst)}: {msg}')
        def need(n: int):
            if len(stack) < n:
                die(StackUnderflowError, f'needs {n} stack value(s), found {len(stack)}')
        def pop() -> int:
            need(1)
            return stack.pop()
        def target() -> int:
            try:
                return labels[inst.arg]
            except KeyError:
                die(UndefinedLabelError, f'undefined label {inst.arg}')
        def nop():
            pass
        def push():
            stack.append(inst.arg)
        def dup():
            need(1)
            stack.append(stack[-1])
        def copy():
            n = inst.arg
            if n < 0 or n >= len(stack):
                die(StackUnderflowError, f'offset {n} outside stack of depth {len(stack)}')
            stack.append(stack[-1 - n])
        def swap():
            need(2)
            stack[-1], stack[-2] = stack[-2], stack[-1]
        def pop_():
            pop()
        def slide():
            n = inst.arg
            if n < 0 or n >= len(stack):
                die(StackUnderflowError, f'cannot slide {n} value(s) off stack of depth {len(stack)}')
            del stack[-1 - n:-1]
        def add():
            need(2)
            value = stack.pop()
            stack[-1] = stack[-1] + value
        def sub():
            need(2)
            value = stack.pop()
            stack[-1] = stack[-1] - value
        def mul():
            need(2)
            value = stack.pop()
            stack[-1] = stack[-1] * value
        def div():
            need(2)
            value = stack.pop()
            if value == 0:
                die(DivideByZeroError, f'division of {stack[-1]} by zero')
            stack[-1] = tdiv(stack[-1], value)
        def mod():
            need(2)
            value = stack.pop()
            if value == 0:
                die(DivideByZeroError, f'modulo of {stack[-1]} by zero')
            stack[-1] = tmod(stack[-1], value)
        def store():
            need(2)
            value = stack.pop()
            key = stack.pop()
            heap[key] = value
        def load():
            key = pop()
            try:
                stack.append(heap[key])
            except KeyError:
                die(MissingHeapKeyError, f'heap key {key} is not set')
        def call():
            nonlocal ip
            dest = target()
            calls.append(ip)
            ip = dest
        def jmp():
            nonlocal ip
            ip = target()
        def jz():
            nonlocal ip
            if pop() == 0:
                ip = target()
        def jn():
            nonlocal ip
            if pop() < 0:
                ip = target()
        def ret():
            nonlocal ip
            if not calls:
                die(EmptyCallStackError, 'return without a pending call')
            ip = calls.pop()
        def exit_():
            nonlocal ip
            ip = length
        def emit(text: str):
            nonlocal tail
            if text:
                ostream.write(text)
                tail = text[-1]
        def ochr():
            value = pop()
            if not 0 <= value <= 0xff:
                die(CharacterRangeError, f'{value} is not a byte')
            emit(decoder.decode(bytes([value])))
        def onum():
            emit(str(pop()))
        def ichr():
            key = pop()
            if not pending:
                pending.extend(istream.read(1).encode(iencoding, errors='replace'))
            heap[key] = pending.pop(0) if pending else 0
        def inum():
            key = pop()
            line = pending.decode(iencoding, errors='replace') + istream.readline()
            pending.clear()
            try:
                value, = _signed_integer.parse_string(line, parse_all=True)
            except pp.exceptions.ParseBaseException:
                die(InputParseError, f'cannot read {line!r} as a number')
            heap[key] = value
        code: list = [None] * len(Opcode)
        code[Opcode.NOP] = nop
        code[Opcode.PUSH] = push
        code[Opcode.DUP] = dup
        code[Opcode.COPY] = copy
        code[Opcode.SWAP] = swap
        code[Opcode.POP] = pop_
        code[Opcode.SLIDE] = slide
        code[Opcode.ADD] = add
        code[Opcode.SUB] = sub
        code[Opcode.MUL] = mul
        code[Opcode.DIV] = div
        code[Opcode.MOD] = mod
        code[Opcode.STORE] = store
        code[Opcode.LOAD] = load
        code[Opcode.LABEL] = nop
        code[Opcode.CALL] = call
        code[Opcode.JMP] = jmp
        code[Opcode.JZ] = jz
        code[Opcode.JN] = jn
        code[Opcode.RET] = ret
        code[Opcode.EXIT] = exit_
        code[Opcode.OCHR] = ochr
        code[Opcode.ONUM] = onum
        code[Opcode.ICHR] = ichr
        code[Opcode.INUM] = inum
        while ip < length:
            inst = prog[ip]
            if trace is not None:
                print(f'{ip:04x} {mnemonic(inst)} stack={stack}', file=trace)
            if inst.op != Opcode.LABEL and inst.op != Opcode.NOP:
                count += 1
            code[inst.op]()
            ip += 1
        emit(decoder.decode(b'', final=True))
        self.tail = tail
        return Outcome(stack, heap, count)
