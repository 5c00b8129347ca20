"""Line dispatcher: recognizes directive lines and routes them to handlers."""

from __future__ import annotations

from dataclasses import dataclass, replace
import re
from typing import Iterable, Optional

from ..constants import DIRECTIVE_KEYWORDS, DIRECTIVE_MARKER, OUTPUT_PARAM_PREFIX
from .core import FunctionSignature
from .diagnostics import (
    Diagnostic,
    MalformedDirective,
    TranslationError,
    UnterminatedFunction,
)
from .handlers import HANDLERS, Directive
from .registry import FunctionRegistry

KEYWORD_PATTERN = re.compile(r"^\s*(?P<keyword>[A-Za-z_]\w*)(?P<body>.*)$", re.S)


@dataclass(frozen=True)
class LineResult:
    """Outcome of translating one input line."""

    line_number: int
    source: str
    output: Optional[str]
    diagnostic: Optional[Diagnostic] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


@dataclass(frozen=True)
class CallSite:
    caller: Optional[str]
    callee: str
    line_number: int


@dataclass(frozen=True)
class TranslationResult:
    """Result of translating a whole input."""

    source: tuple[str, ...]
    output: tuple[str, ...]
    diagnostics: tuple[Diagnostic, ...]
    registry: FunctionRegistry
    calls: tuple[CallSite, ...]
    completed: bool = True
    trailing_newline: bool = True

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    @property
    def text(self) -> str:
        body = "\n".join(self.output)
        if self.output and self.trailing_newline:
            body += "\n"
        return body

    def signatures(self) -> list[FunctionSignature]:
        return list(self.registry)


class Translator:
    """Stateful one-pass translator for tuple-function directives.

    Holds the registry, the active function slot and the line counter. Use a
    fresh instance per input.
    """

    def __init__(
        self,
        *,
        registry: Optional[FunctionRegistry] = None,
        marker: str = DIRECTIVE_MARKER,
        output_prefix: str = OUTPUT_PARAM_PREFIX,
        require_end: bool = False,
    ):
        if not marker or marker != marker.strip():
            raise ValueError(f"Directive marker must be non-blank text: {marker!r}")
        if not re.fullmatch(r"[A-Za-z_]\w*", output_prefix or ""):
            raise ValueError(f"Output parameter prefix must be an identifier: {output_prefix!r}")
        self.registry = registry if registry is not None else FunctionRegistry()
        self.marker = marker
        self.output_prefix = output_prefix
        self.require_end = require_end
        self.active: Optional[FunctionSignature] = None
        self.line_number = 0
        self.calls: list[CallSite] = []
        self._unclosed_calls: list[int] = []

    def open_function(self, signature: FunctionSignature):
        """Make ``signature`` the active function.

        Calls recorded under a function that was never closed with ``%end``
        are moved to the top level, since its body extent is unknown.
        """

        self._detach_unclosed_calls()
        self.active = signature

    def close_function(self):
        self._unclosed_calls = []
        self.active = None

    def _detach_unclosed_calls(self):
        for index in self._unclosed_calls:
            self.calls[index] = replace(self.calls[index], caller=None)
        self._unclosed_calls = []

    def record_call(self, callee, line_number):
        caller = self.active.name if self.active is not None else None
        self.calls.append(CallSite(caller, callee, line_number))
        if caller is not None:
            self._unclosed_calls.append(len(self.calls) - 1)

    def parse_directive(self, line) -> Optional[Directive]:
        """Split a marked line into keyword and body; ``None`` for plain lines."""

        stripped = line.lstrip()
        if not stripped.startswith(self.marker):
            return None
        indent = line[: len(line) - len(stripped)]
        body = stripped
        while body.startswith(self.marker):
            body = body[len(self.marker):]
        match = KEYWORD_PATTERN.match(body)
        if not match:
            raise MalformedDirective("directive marker without a keyword")
        keyword = match.group("keyword")
        if keyword not in HANDLERS:
            expected = ", ".join(self.marker + k for k in DIRECTIVE_KEYWORDS)
            raise MalformedDirective(
                f"unknown directive '{self.marker}{keyword}' (expected one of {expected})"
            )
        return Directive(
            keyword=keyword,
            body=match.group("body"),
            line_number=self.line_number,
            source=line,
            indent=indent,
        )

    def translate_line(self, line) -> LineResult:
        self.line_number += 1
        line = line.rstrip("\r\n")
        try:
            directive = self.parse_directive(line)
            if directive is None:
                return LineResult(self.line_number, line, line)
            output = directive.indent + HANDLERS[directive.keyword](self, directive)
        except TranslationError as exc:
            if not exc.line_number:
                exc.line_number = self.line_number
            if not exc.source:
                exc.source = line
            return LineResult(self.line_number, line, None, exc.diagnostic)
        return LineResult(self.line_number, line, output)

    def finish(self) -> Optional[Diagnostic]:
        """Check end-of-input state; only strict scoping can fail here."""

        if self.require_end and self.active is not None:
            return UnterminatedFunction(
                f"tuple function '{self.active.name}' is never closed with {self.marker}end",
                line_number=self.active.line_number,
                source=self.active.origin_text,
            ).diagnostic
        return None

    def translate(self, lines: Iterable[str], *, fail_fast: bool = True) -> TranslationResult:
        """Translate every line.

        With ``fail_fast`` the first diagnostic stops the run and nothing after
        it is emitted. Otherwise failing lines are echoed unchanged and every
        diagnostic is collected.
        """

        source = [line.rstrip("\r\n") for line in lines]
        output: list[str] = []
        diagnostics: list[Diagnostic] = []
        completed = True
        for line in source:
            result = self.translate_line(line)
            if result.ok:
                output.append(result.output)
                continue
            diagnostics.append(result.diagnostic)
            if fail_fast:
                completed = False
                break
            output.append(result.source)
        else:
            closing = self.finish()
            if closing is not None:
                diagnostics.append(closing)
        self._detach_unclosed_calls()

        return TranslationResult(
            source=tuple(source),
            output=tuple(output),
            diagnostics=tuple(diagnostics),
            registry=self.registry,
            calls=tuple(self.calls),
            completed=completed,
        )


def translate_source(src, *, fail_fast=True, **options) -> TranslationResult:
    """Translate a whole source string in one call.

    Lines are split on ``\\n`` only; form feeds and other characters that
    :meth:`str.splitlines` treats as breaks stay inside their line.
    """

    lines = src.split("\n") if src else []
    if src.endswith("\n"):
        lines.pop()
    result = Translator(**options).translate(lines, fail_fast=fail_fast)
    return replace(result, trailing_newline=src.endswith("\n"))


__all__ = [
    "CallSite",
    "LineResult",
    "TranslationResult",
    "Translator",
    "translate_source",
]
