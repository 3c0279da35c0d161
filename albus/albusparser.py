#!/usr/bin/env python3

from typing import Iterator, Optional

from albusisa import *

Tokens = Iterator[tuple[int, str]]

def tokenize(src: str) -> Tokens:
    return ((loc, c) for loc, c in enumerate(src) if c in TOKEN_CODES)

def spell(src: str) -> str:
    return ''.join('STL'[TOKEN_CODES[c] - 1] for c in src if c in TOKEN_CODES)

class __Context:
    def __init__(self, src: str, strict: bool):
        self.src = src
        self.strict = strict
        self.prog: list[Inst] = []
        self.labels: dict[int, int] = {}

    def fail(self, cls: type[AlbusError], loc: int, msg: str) -> None:
        if self.strict:
            error(cls, self.src, loc, msg)

    def parse_arg(self, tokens: Tokens, start: int) -> Optional[int]:
        sign = next(tokens, None)
        if sign is None:
            self.fail(MalformedArgumentError, start, 'missing argument at end of input')
            return None
        loc, negative = sign[0], sign[1] == TAB
        if sign[1] == LF:
            self.fail(MalformedArgumentError, loc, 'expected sign before argument terminator')
        value = 0
        for _, tok in tokens:
            if tok == LF:
                return -value if negative else value
            value = value * 2 + (1 if tok == TAB else 0)
        self.fail(MalformedArgumentError, start, 'unterminated argument at end of input')
        return None

    def parse(self) -> tuple[list[Inst], dict[int, int]]:
        tokens = tokenize(self.src)
        code = 0
        start = 0
        for loc, tok in tokens:
            if code == 0:
                start = loc
            code = code * 4 + TOKEN_CODES[tok]
            op = OPCODES.get(code, Opcode.NOP)
            if op == Opcode.NOP:
                if not code in PREFIXES:
                    run = spell(self.src[start:loc + 1])
                    self.fail(UnknownOpcodeError, start, f'unknown instruction `{run}`')
                    code = 0
                continue
            code = 0
            arg = 0
            if op in ARG_OPCODES:
                parsed = self.parse_arg(tokens, start)
                if parsed is None:
                    break
                arg = parsed
            if op == Opcode.LABEL:
                self.labels[arg] = len(self.prog)
            self.prog.append(Inst(op, arg, start))
        else:
            if code != 0:
                run = spell(self.src[start:])
                self.fail(MalformedArgumentError, start, f'incomplete instruction `{run}` at end of input')
        return self.prog, self.labels

def parse_program(src: str, strict: bool = False) -> tuple[list[Inst], dict[int, int]]:
    ctx = __Context(src, strict)
    return ctx.parse()

def disassemble(prog: list[Inst]) -> list[str]:
    return [f'{i:04x} {mnemonic(inst)}' for i, inst in enumerate(prog)]
