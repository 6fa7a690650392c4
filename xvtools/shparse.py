"""Tokenizer and parser for the small command shell language.

The grammar covers commands with arguments, ``<``, ``>`` and ``>>``
redirections, pipes ``|``, sequences ``;``, background jobs ``&`` and
parenthesised blocks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from xvtools.openflags import OpenFlag

__all__ = [
    "ShellSyntaxError",
    "Token",
    "ExecCmd",
    "RedirCmd",
    "PipeCmd",
    "ListCmd",
    "BackCmd",
    "tokenize",
    "parse_command",
    "parse_builtin_cd",
]

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"
MAXARGS = 10


class ShellSyntaxError(ValueError):
    """Raised when a command line cannot be parsed."""


@dataclass(frozen=True)
class Token:
    """A lexical token: ``kind`` is ``'a'`` for a word, ``'+'`` for ``>>``,
    or the symbol character itself."""

    kind: str
    text: str


@dataclass
class ExecCmd:
    """A program invocation with its argument vector."""

    argv: List[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """A command whose descriptor ``fd`` is redirected to ``file``."""

    cmd: "Command"
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCmd:
    """Two commands joined by a pipe."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """Two commands run one after the other."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """A command run in the background."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


class _Scanner:
    def __init__(self, line: str) -> None:
        self.line = line
        self.pos = 0

    def skip_space(self) -> None:
        while self.pos < len(self.line) and self.line[self.pos] in WHITESPACE:
            self.pos += 1

    def at_end(self) -> bool:
        return self.pos >= len(self.line)

    def peek(self, toks: str) -> bool:
        self.skip_space()
        return not self.at_end() and self.line[self.pos] in toks

    def next(self) -> Optional[Token]:
        self.skip_space()
        if self.at_end():
            return None
        line = self.line
        start = self.pos
        ch = line[start]
        if ch in "|();&<":
            self.pos += 1
            kind = ch
        elif ch == ">":
            self.pos += 1
            if self.pos < len(line) and line[self.pos] == ">":
                self.pos += 1
                kind = "+"
            else:
                kind = ">"
        else:
            kind = "a"
            while (
                self.pos < len(line)
                and line[self.pos] not in WHITESPACE
                and line[self.pos] not in SYMBOLS
            ):
                self.pos += 1
        token = Token(kind, line[start:self.pos])
        self.skip_space()
        return token


def tokenize(line: str) -> List[Token]:
    """Split ``line`` into tokens."""
    scanner = _Scanner(line)
    tokens = []
    while (token := scanner.next()) is not None:
        tokens.append(token)
    return tokens


def _parse_line(sc: _Scanner) -> Command:
    cmd = _parse_pipe(sc)
    while sc.peek("&"):
        sc.next()
        cmd = BackCmd(cmd)
    if sc.peek(";"):
        sc.next()
        cmd = ListCmd(cmd, _parse_line(sc))
    return cmd


def _parse_pipe(sc: _Scanner) -> Command:
    cmd = _parse_exec(sc)
    if sc.peek("|"):
        sc.next()
        cmd = PipeCmd(cmd, _parse_pipe(sc))
    return cmd


def _parse_redirs(cmd: Command, sc: _Scanner) -> Command:
    while sc.peek("<>"):
        op = sc.next()
        target = sc.next()
        if target is None or target.kind != "a":
            raise ShellSyntaxError("missing file for redirection")
        if op.kind == "<":
            cmd = RedirCmd(cmd, target.text, OpenFlag.RDONLY, 0)
        else:
            cmd = RedirCmd(cmd, target.text, OpenFlag.WRONLY | OpenFlag.CREATE, 1)
    return cmd


def _parse_block(sc: _Scanner) -> Command:
    if not sc.peek("("):
        raise ShellSyntaxError("parseblock")
    sc.next()
    cmd = _parse_line(sc)
    if not sc.peek(")"):
        raise ShellSyntaxError("syntax - missing )")
    sc.next()
    return _parse_redirs(cmd, sc)


def _parse_exec(sc: _Scanner) -> Command:
    if sc.peek("("):
        return _parse_block(sc)
    exec_cmd = ExecCmd()
    ret = _parse_redirs(exec_cmd, sc)
    while not sc.peek("|)&;"):
        token = sc.next()
        if token is None:
            break
        if token.kind != "a":
            raise ShellSyntaxError("syntax")
        exec_cmd.argv.append(token.text)
        if len(exec_cmd.argv) >= MAXARGS:
            raise ShellSyntaxError("too many args")
        ret = _parse_redirs(ret, sc)
    return ret


def parse_command(line: str) -> Command:
    """Parse a whole command line into a command tree."""
    sc = _Scanner(line)
    cmd = _parse_line(sc)
    sc.skip_space()
    if not sc.at_end():
        raise ShellSyntaxError(f"syntax: leftovers: {line[sc.pos:]}")
    return cmd


def parse_builtin_cd(line: str) -> Optional[str]:
    """Return the directory named by a ``cd`` line, or None for other lines."""
    if not line.startswith("cd "):
        return None
    target = line[3:]
    if target.endswith("\n"):
        target = target[:-1]
    return target