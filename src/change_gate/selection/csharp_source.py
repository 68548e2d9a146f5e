"""Test class detection for C# sources.

Comments and string literals are blanked first (newlines preserved), so
brace matching and keyword search operate on code only. A class is a test
class when it carries a fixture attribute, declares a test method, or is
named ``*Test``/``*Tests``.

Example:
    >>> source = 'public class BarTests\\n{\\n    [Fact]\\n    public void Works() { }\\n}\\n'
    >>> [(c.name, c.start, c.end) for c in CSharpTestClassDetector().detect(source)]
    [('BarTests', 1, 5)]
"""

from __future__ import annotations

import bisect
import logging
import re

from change_gate.selection.models import MethodSpan, TestClassSpan


logger = logging.getLogger(__name__)

CLASS_ATTRIBUTES = frozenset(('TestClass', 'TestFixture'))
METHOD_ATTRIBUTES = frozenset(
    ('Fact', 'Theory', 'Test', 'TestCase', 'TestCaseSource', 'TestMethod', 'DataTestMethod')
)

_CLASS_PATTERN = re.compile(r'\bclass\s+([A-Za-z_]\w*)')
_METHOD_NAME_PATTERN = re.compile(r'([A-Za-z_]\w*)\s*(?:<[^<>()]*>)?\s*\(')
_ATTRIBUTE_NAME_PATTERN = re.compile(r'([A-Za-z_][\w.]*)\s*(?=[(,\]]|$)')
_NOT_CLASS_NAMES = frozenset(('where', 'new'))
_MEMBER_BOUNDARIES = frozenset('{};]')


class UnbalancedSourceError(ValueError):
    """Braces, brackets or parentheses do not balance."""


def blank_literals(source: str) -> str:
    """Replace comments and string/char literals with spaces, keeping newlines.

    The result has the same length and line structure as ``source``.
    """
    out = list(source)
    length = len(source)

    def blank(start: int, end: int) -> None:
        for k in range(start, end):
            if out[k] != '\n':
                out[k] = ' '

    i = 0
    while i < length:
        char = source[i]
        if source.startswith('//', i):
            end = source.find('\n', i)
            end = length if end == -1 else end
        elif source.startswith('/*', i):
            end = source.find('*/', i + 2)
            end = length if end == -1 else end + 2
        elif source.startswith('"""', i):
            end = source.find('"""', i + 3)
            end = length if end == -1 else end + 3
        elif char == '"':
            verbatim = source[max(0, i - 2) : i].count('@') > 0
            end = _string_end(source, i + 1, verbatim=verbatim)
        elif char == "'":
            end = i + 1
            while end < length and source[end] not in "'\n":
                end += 2 if source[end] == '\\' else 1
            end = min(end + 1, length)
        else:
            i += 1
            continue
        blank(i, end)
        i = end
    return ''.join(out)


def _string_end(source: str, start: int, *, verbatim: bool) -> int:
    i = start
    while i < len(source):
        char = source[i]
        if verbatim:
            if char == '"':
                if source.startswith('""', i):
                    i += 2
                    continue
                return i + 1
        elif char == '\\':
            i += 2
            continue
        elif char == '"':
            return i + 1
        elif char == '\n':
            return i
        i += 1
    return len(source)


def _matching(text: str, open_pos: int, opener: str, closer: str) -> int:
    depth = 0
    for i in range(open_pos, len(text)):
        if text[i] == opener:
            depth += 1
        elif text[i] == closer:
            depth -= 1
            if depth == 0:
                return i
    raise UnbalancedSourceError(f'Unbalanced {opener}{closer} at offset {open_pos}')


def _first_of(text: str, start: int, end: int, needles: tuple[str, ...]) -> tuple[int, str]:
    found = [(pos, needle) for needle in needles if (pos := text.find(needle, start, end)) != -1]
    return min(found) if found else (-1, '')


def _attribute_names(group: str) -> set[str]:
    names = set()
    for qualified in _ATTRIBUTE_NAME_PATTERN.findall(group):
        name = qualified.rsplit('.', 1)[-1]
        names.add(name.removesuffix('Attribute') or name)
    return names


class _SourceIndex:
    """Maps character offsets to one-based line numbers."""

    def __init__(self, text: str) -> None:
        self._starts = [0] + [m.end() for m in re.finditer('\n', text)]

    def line_of(self, offset: int) -> int:
        return bisect.bisect_right(self._starts, offset)


class CSharpTestClassDetector:
    """Detects MSTest, NUnit and xUnit test classes in C# files."""

    @property
    def name(self) -> str:
        return 'csharp'

    def supports(self, path: str) -> bool:
        return path.endswith('.cs')

    def detect(self, source: str) -> list[TestClassSpan]:
        text = blank_literals(source)
        index = _SourceIndex(text)
        try:
            return self._detect(text, index)
        except UnbalancedSourceError as exc:
            logger.debug('Cannot scan C# source: %s', exc)
            return []

    def _detect(self, text: str, index: _SourceIndex) -> list[TestClassSpan]:
        classes: list[TestClassSpan] = []
        for match in _CLASS_PATTERN.finditer(text):
            name = match.group(1)
            if name in _NOT_CLASS_NAMES:
                continue
            body_open, delimiter = _first_of(text, match.end(), len(text), ('{', ';'))
            if delimiter != '{':
                continue
            body_close = _matching(text, body_open, '{', '}')

            declaration_start = self._declaration_start(text, match.start())
            attributes = _attribute_names(text[declaration_start : match.start()])
            methods = tuple(self._test_methods(text, body_open, body_close, index))

            if attributes & CLASS_ATTRIBUTES or methods or name.endswith(('Test', 'Tests')):
                classes.append(
                    TestClassSpan(name, index.line_of(declaration_start), index.line_of(body_close), methods)
                )
        return classes

    @staticmethod
    def _declaration_start(text: str, keyword_pos: int) -> int:
        boundary = max(text.rfind(char, 0, keyword_pos) for char in '{};')
        start = boundary + 1
        while start < keyword_pos and text[start].isspace():
            start += 1
        return start

    def _test_methods(self, text: str, body_open: int, body_close: int, index: _SourceIndex) -> list[MethodSpan]:
        methods: list[MethodSpan] = []
        depth = 0
        i = body_open + 1
        while i < body_close:
            char = text[i]
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
            elif char == '[' and depth == 0 and self._at_member_start(text, i, body_open):
                attributes_start = i
                attributes: set[str] = set()
                while i < body_close and text[i] == '[':
                    close = _matching(text, i, '[', ']')
                    attributes |= _attribute_names(text[i + 1 : close])
                    i = close + 1
                    while i < body_close and text[i].isspace():
                        i += 1
                member_end = self._method_end(text, i, body_close)
                if member_end is not None and attributes & METHOD_ATTRIBUTES:
                    method_name, end = member_end
                    methods.append(MethodSpan(method_name, index.line_of(attributes_start), index.line_of(end)))
                if member_end is not None:
                    i = member_end[1] + 1
                continue
            i += 1
        return methods

    @staticmethod
    def _at_member_start(text: str, pos: int, body_open: int) -> bool:
        k = pos - 1
        while k > body_open and text[k].isspace():
            k -= 1
        return text[k] in _MEMBER_BOUNDARIES

    @staticmethod
    def _method_end(text: str, start: int, limit: int) -> tuple[str, int] | None:
        match = _METHOD_NAME_PATTERN.search(text, start, limit)
        if match is None or any(char in text[start : match.start()] for char in '{;='):
            return None
        params_close = _matching(text, match.end() - 1, '(', ')')
        pos, delimiter = _first_of(text, params_close + 1, limit, ('{', '=>', ';'))
        if delimiter == '{':
            return match.group(1), _matching(text, pos, '{', '}')
        if delimiter == '=>':
            semicolon = text.find(';', pos, limit)
            return match.group(1), semicolon if semicolon != -1 else limit - 1
        if delimiter == ';':
            return match.group(1), pos
        return None
