#!/usr/bin/env python3

import pyparsing
import sys

from typing import NamedTuple, NoReturn
from enum import IntEnum, auto, unique

SPACE = ' '
TAB = '\t'
LF = '\n'

TOKEN_CODES = { SPACE: 1, TAB: 2, LF: 3 }

# numbers are unbounded, and so is their decimal text
if hasattr(sys, 'set_int_max_str_digits'):
    sys.set_int_max_str_digits(0)

@unique
class Opcode(IntEnum):
    NOP = 0             # incomplete, never emitted
    PUSH = auto()       # push arg
    DUP = auto()        # push stack[-1]
    COPY = auto()       # push stack[-1-arg]
    SWAP = auto()       # stack[-1], stack[-2] <- stack[-2], stack[-1]
    POP = auto()        # drop stack[-1]
    SLIDE = auto()      # del stack[-1-arg:-1]
    ADD = auto()        # stack[-1] <- stack[-1] + value
    SUB = auto()        # stack[-1] <- stack[-1] - value
    MUL = auto()        # stack[-1] <- stack[-1] * value
    DIV = auto()        # stack[-1] <- stack[-1] / value, truncated
    MOD = auto()        # stack[-1] <- stack[-1] % value, sign of stack[-1]
    STORE = auto()      # heap[key] <- value
    LOAD = auto()       # push heap[key]
    LABEL = auto()      # labels[arg] = ip
    CALL = auto()       # calls.append(ip); ip = labels[arg]
    JMP = auto()        # ip = labels[arg]
    JZ = auto()         # if stack.pop() == 0 goto labels[arg]
    JN = auto()         # if stack.pop() < 0 goto labels[arg]
    RET = auto()        # ip = calls.pop()
    EXIT = auto()       # halt
    OCHR = auto()       # write chr(stack.pop())
    ONUM = auto()       # write str(stack.pop())
    ICHR = auto()       # heap[stack.pop()] <- ord(read(1))
    INUM = auto()       # heap[stack.pop()] <- int(readline())

class Inst(NamedTuple):
    op: Opcode
    arg: int = 0
    loc: int = 0

# accumulator value after the complete token run, two bits per token
OPCODES = {
    0b01_01:       Opcode.PUSH,
    0b01_11_01:    Opcode.DUP,
    0b01_10_01:    Opcode.COPY,
    0b01_11_10:    Opcode.SWAP,
    0b01_11_11:    Opcode.POP,
    0b01_10_11:    Opcode.SLIDE,
    0b10_01_01_01: Opcode.ADD,
    0b10_01_01_10: Opcode.SUB,
    0b10_01_01_11: Opcode.MUL,
    0b10_01_10_01: Opcode.DIV,
    0b10_01_10_10: Opcode.MOD,
    0b10_10_01:    Opcode.STORE,
    0b10_10_10:    Opcode.LOAD,
    0b11_01_01:    Opcode.LABEL,
    0b11_01_10:    Opcode.CALL,
    0b11_01_11:    Opcode.JMP,
    0b11_10_01:    Opcode.JZ,
    0b11_10_10:    Opcode.JN,
    0b11_10_11:    Opcode.RET,
    0b11_11_11:    Opcode.EXIT,
    0b10_11_01_01: Opcode.OCHR,
    0b10_11_01_10: Opcode.ONUM,
    0b10_11_10_01: Opcode.ICHR,
    0b10_11_10_10: Opcode.INUM,
}

ARG_OPCODES = frozenset({
    Opcode.PUSH, Opcode.COPY, Opcode.SLIDE,
    Opcode.LABEL, Opcode.CALL, Opcode.JMP, Opcode.JZ, Opcode.JN,
})

def _prefixes(codes) -> frozenset[int]:
    ret = set()
    for code in codes:
        code >>= 2
        while code:
            ret.add(code)
            code >>= 2
    return frozenset(ret)

PREFIXES = _prefixes(OPCODES)

def mnemonic(inst: Inst) -> str:
    if inst.op in ARG_OPCODES:
        return f'{inst.op.name} {inst.arg}'
    return inst.op.name

def locate(src: str, loc: int) -> str:
    return f'{pyparsing.lineno(loc, src)}:{pyparsing.col(loc, src)}'

class AlbusError(RuntimeError):
    pass

class MalformedArgumentError(AlbusError):
    pass

class UnknownOpcodeError(AlbusError):
    pass

class UndefinedLabelError(AlbusError):
    pass

class StackUnderflowError(AlbusError):
    pass

class EmptyCallStackError(AlbusError):
    pass

class MissingHeapKeyError(AlbusError):
    pass

class DivideByZeroError(AlbusError):
    pass

class InputParseError(AlbusError):
    pass

class CharacterRangeError(AlbusError):
    pass

def error(cls: type[AlbusError], src: str, loc: int, msg: str) -> NoReturn:
    if src:
        raise cls(f'{locate(src, loc)}: error: {msg}')
    raise cls(f'error: {msg}')
