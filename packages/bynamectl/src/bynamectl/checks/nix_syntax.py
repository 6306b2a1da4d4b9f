"""Lexical helpers for package-definition sources.

This is not a parser. It knows enough of the token structure (comments,
both string flavours with their interpolations, path literals, URIs and
brackets) to find path-like tokens and to recognise one binding shape:

    <attr> = callPackage <path> { ... };
"""

from __future__ import annotations

import bisect
import posixpath
import re
from dataclasses import dataclass
from typing import Iterator

PATH_KIND_SEARCH = "search-path"
PATH_KIND_INTERPOLATION = "interpolation"
PATH_KIND_STATIC = "static-literal"

_PATH_CHARS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789._-+")
_PATH_PREFIX_RE = re.compile(r"[A-Za-z0-9._\-+]*/")
_PATH_SEGMENT_RE = re.compile(r"[A-Za-z0-9._\-+]+")
_SEARCH_PATH_RE = re.compile(r"<[A-Za-z0-9._\-+]+(?:/[A-Za-z0-9._\-+]+)*>")
_HOME_PATH_RE = re.compile(r"~(?:/[A-Za-z0-9._\-+]+)+")
_URI_RE = re.compile(r"[a-zA-Z][a-zA-Z0-9+\-.]*:[a-zA-Z0-9%/?:@&=+$,\-_.!~*']+")
_IDENT_RE = re.compile(r"[A-Za-z0-9_'\-.]+")
_WS_RE = re.compile(r"\s+")

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())
_TRIVIA = frozenset({"ws", "comment"})


@dataclass(frozen=True)
class Token:
    kind: str
    start: int
    end: int
    interpolations: tuple[tuple[int, int], ...] = ()


@dataclass(frozen=True)
class PathToken:
    kind: str
    text: str
    line: int
    offset: int


@dataclass(frozen=True)
class Binding:
    attrpath: str
    value: str
    definition: str
    line: int
    column: int


@dataclass(frozen=True)
class CallPackageMatch:
    path: str
    empty_arg: bool


@dataclass(frozen=True)
class _Term:
    kind: str
    text: str
    inner: str = ""


class _Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.n = len(text)

    def tokens(self, start: int = 0, end: int | None = None) -> Iterator[Token]:
        stop = self.n if end is None else end
        i = start
        while i < stop:
            tok = self.next_token(i)
            yield tok
            i = tok.end

    def next_token(self, i: int) -> Token:
        t = self.text
        c = t[i]
        if c.isspace():
            return Token("ws", i, _WS_RE.match(t, i).end())
        if c == "#":
            j = t.find("\n", i)
            return Token("comment", i, self.n if j < 0 else j)
        if t.startswith("/*", i):
            j = t.find("*/", i + 2)
            return Token("comment", i, self.n if j < 0 else j + 2)
        if c == '"':
            return self._string(i)
        if t.startswith("''", i):
            return self._indented_string(i)
        if t.startswith("${", i):
            k = self._interpolation_end(i + 2)
            if k < 0:
                return Token("interpolation", i, self.n, ((i + 2, self.n),))
            return Token("interpolation", i, k, ((i + 2, k - 1),))
        if c == "<":
            m = _SEARCH_PATH_RE.match(t, i)
            if m:
                return Token("search-path", i, m.end())
        if c == "~":
            m = _HOME_PATH_RE.match(t, i)
            if m:
                return Token("path", i, m.end())
        if c.isalpha():
            m = _URI_RE.match(t, i)
            if m:
                return Token("uri", i, m.end())
        if t.startswith("//", i):
            return Token("punct", i, i + 2)
        if c in _PATH_CHARS or c == "/":
            path = self._path(i)
            if path is not None:
                return path
        m = _IDENT_RE.match(t, i)
        if m:
            return Token("ident", i, m.end())
        return Token("punct", i, i + 1)

    def _path(self, i: int) -> Token | None:
        t = self.text
        m = _PATH_PREFIX_RE.match(t, i)
        if not m:
            return None
        j = m.end()
        interpolated = False
        first = True
        while True:
            progressed = False
            while j < self.n:
                if t.startswith("${", j):
                    k = self._interpolation_end(j + 2)
                    if k < 0:
                        break
                    interpolated = True
                    progressed = True
                    j = k
                    continue
                seg = _PATH_SEGMENT_RE.match(t, j)
                if not seg:
                    break
                progressed = True
                j = seg.end()
            if not progressed:
                if first:
                    return None
                break
            first = False
            if j + 1 < self.n and t[j] == "/" and (t[j + 1] in _PATH_CHARS or t.startswith("${", j + 1)):
                j += 1
                continue
            break
        return Token("interpolated-path" if interpolated else "path", i, j)

    def _interpolation_end(self, i: int) -> int:
        """Index just past the ``}`` closing an interpolation whose body starts at ``i``."""
        depth = 0
        j = i
        while j < self.n:
            tok = self.next_token(j)
            if tok.kind == "punct":
                ch = self.text[tok.start]
                if ch == "{":
                    depth += 1
                elif ch == "}":
                    if depth == 0:
                        return tok.end
                    depth -= 1
            j = tok.end
        return -1

    def _string(self, i: int) -> Token:
        t = self.text
        j = i + 1
        spans: list[tuple[int, int]] = []
        while j < self.n:
            c = t[j]
            if c == "\\":
                j += 2
                continue
            if c == '"':
                return Token("string", i, j + 1, tuple(spans))
            if t.startswith("$${", j):
                j += 3
                continue
            if t.startswith("${", j):
                k = self._interpolation_end(j + 2)
                if k < 0:
                    spans.append((j + 2, self.n))
                    break
                spans.append((j + 2, k - 1))
                j = k
                continue
            j += 1
        return Token("string", i, self.n, tuple(spans))

    def _indented_string(self, i: int) -> Token:
        t = self.text
        j = i + 2
        spans: list[tuple[int, int]] = []
        while j < self.n:
            if t.startswith("'''", j) or t.startswith("''$", j):
                j += 3
                continue
            if t.startswith("''\\", j):
                j += 4
                continue
            if t.startswith("''", j):
                return Token("indstring", i, j + 2, tuple(spans))
            if t.startswith("$${", j):
                j += 3
                continue
            if t.startswith("${", j):
                k = self._interpolation_end(j + 2)
                if k < 0:
                    spans.append((j + 2, self.n))
                    break
                spans.append((j + 2, k - 1))
                j = k
                continue
            j += 1
        return Token("indstring", i, self.n, tuple(spans))


class NixSource:
    def __init__(self, text: str) -> None:
        self.text = text
        self._lexer = _Lexer(text)
        self._line_starts = [0] + [m.end() for m in re.finditer(r"\n", text)]

    def line_of(self, offset: int) -> int:
        return bisect.bisect_right(self._line_starts, offset)

    def offset_of(self, line: int, column: int) -> int | None:
        if line < 1 or line > len(self._line_starts) or column < 1:
            return None
        offset = self._line_starts[line - 1] + column - 1
        line_end = self.text.find("\n", self._line_starts[line - 1])
        if offset > (len(self.text) if line_end < 0 else line_end):
            return None
        return offset

    def path_tokens(self) -> list[PathToken]:
        found: list[PathToken] = []
        self._collect_paths(0, len(self.text), found)
        return sorted(found, key=lambda tok: tok.offset)

    def _collect_paths(self, start: int, end: int, found: list[PathToken]) -> None:
        for tok in self._lexer.tokens(start, end):
            kind = {
                "search-path": PATH_KIND_SEARCH,
                "interpolated-path": PATH_KIND_INTERPOLATION,
                "path": PATH_KIND_STATIC,
            }.get(tok.kind)
            if kind is not None:
                found.append(PathToken(kind=kind, text=self.text[tok.start : tok.end], line=self.line_of(tok.start), offset=tok.start))
            for inner_start, inner_end in tok.interpolations:
                self._collect_paths(inner_start, inner_end, found)

    def binding_at(self, line: int, column: int) -> Binding | None:
        """Return the ``attrpath = value;`` binding whose attribute path starts at the position."""
        start = self.offset_of(line, column)
        if start is None or start >= len(self.text):
            return None
        t = self.text
        j = start
        attr_end = -1
        expect_part = True
        value_start = -1
        while j < len(t):
            tok = self._lexer.next_token(j)
            j = tok.end
            if tok.kind in _TRIVIA:
                continue
            if expect_part and tok.kind in ("ident", "string", "interpolation"):
                expect_part = False
                attr_end = tok.end
                continue
            if not expect_part and tok.kind == "punct" and t[tok.start] == ".":
                expect_part = True
                continue
            if not expect_part and tok.kind == "punct" and t[tok.start] == "=" and not t.startswith("==", tok.start):
                value_start = tok.end
            break
        if value_start < 0:
            return None
        depth = 0
        pending = 0
        lets = 0
        j = value_start
        while j < len(t):
            tok = self._lexer.next_token(j)
            j = tok.end
            if tok.kind == "punct":
                ch = t[tok.start]
                if ch in _OPENERS:
                    depth += 1
                elif ch in _CLOSERS:
                    if depth == 0:
                        return None
                    depth -= 1
                elif ch == ";" and depth == 0 and lets == 0:
                    if pending:
                        pending -= 1
                        continue
                    return Binding(
                        attrpath=t[start:attr_end],
                        value=t[value_start : tok.start].strip(),
                        definition=t[start : tok.end],
                        line=line,
                        column=column,
                    )
            elif tok.kind == "ident" and depth == 0:
                word = t[tok.start : tok.end]
                if word in ("with", "assert"):
                    pending += 1
                elif word == "let":
                    lets += 1
                elif word == "in" and lets:
                    lets -= 1
        return None

    def line_text_from(self, line: int, column: int) -> str:
        start = self.offset_of(line, column)
        if start is None:
            return ""
        end = self.text.find("\n", start)
        return self.text[start:] if end < 0 else self.text[start:end]


def _terms(text: str) -> list[_Term]:
    lexer = _Lexer(text)
    terms: list[_Term] = []
    stack: list[tuple[str, int]] = []
    for tok in lexer.tokens():
        if tok.kind in _TRIVIA:
            continue
        ch = text[tok.start] if tok.kind == "punct" else ""
        if ch in _OPENERS:
            stack.append((ch, tok.start))
            continue
        if ch in _CLOSERS and stack:
            opener, begin = stack.pop()
            if not stack:
                kind = {"(": "group", "[": "list", "{": "attrset"}[opener]
                terms.append(_Term(kind, text[begin : tok.end], text[begin + 1 : tok.start]))
            continue
        if not stack:
            terms.append(_Term(tok.kind, text[tok.start : tok.end]))
    if stack:
        return []
    return terms


def _is_blank(text: str) -> bool:
    return all(tok.kind in _TRIVIA for tok in _Lexer(text).tokens())


def match_call_package(value: str, function_name: str = "callPackage") -> CallPackageMatch | None:
    """Match ``callPackage <path> { ... }`` exactly; anything else is ``None``."""
    terms = _terms(value)
    if len(terms) != 3:
        return None
    function, path_arg, args = terms
    if function.kind != "ident" or function.text.split(".")[-1] != function_name:
        return None
    if path_arg.kind != "path" or args.kind != "attrset":
        return None
    return CallPackageMatch(path=path_arg.text, empty_arg=_is_blank(args.inner))


def resolve_relative(defining_file: str, path_text: str) -> str:
    """Normalise a path literal written in ``defining_file`` to a repository-relative path."""
    if path_text.startswith(("/", "~")):
        return path_text
    joined = posixpath.join(posixpath.dirname(defining_file), path_text)
    return posixpath.normpath(joined)
