"""Diagnostics raised while translating tuple-function directives."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Diagnostic:
    """A translation failure pinned to one input line."""

    kind: str
    message: str
    line_number: int
    source: str
    context: tuple[str, ...] = ()

    def format(self, filename=None):
        where = f"{filename}:{self.line_number}" if filename else f"line {self.line_number}"
        lines = [f"{where}: error: {self.message} [{self.kind}]"]
        lines.append(f"    {self.source.strip()}")
        lines.extend(f"    {entry}" for entry in self.context)
        return "\n".join(lines)

    def to_dict(self):
        return {
            "kind": self.kind,
            "message": self.message,
            "line": self.line_number,
            "source": self.source,
            "context": list(self.context),
        }

    def __str__(self):
        return self.format()


class TranslationError(ValueError):
    """Base class for every directive-level failure."""

    kind = "TranslationError"

    def __init__(self, message, *, line_number=0, source="", context=()):
        super().__init__(message)
        self.message = message
        self.line_number = line_number
        self.source = source
        self.context = tuple(context)

    @property
    def diagnostic(self) -> Diagnostic:
        return Diagnostic(
            kind=self.kind,
            message=self.message,
            line_number=self.line_number,
            source=self.source,
            context=self.context,
        )

    def __str__(self):
        return self.diagnostic.format()


class MalformedDirective(TranslationError):
    kind = "MalformedDirective"


class DuplicateDefinition(TranslationError):
    kind = "DuplicateDefinition"


class ConflictingDeclaration(TranslationError):
    kind = "ConflictingDeclaration"


class ReturnOutsideFunction(TranslationError):
    kind = "ReturnOutsideFunction"


class ReturnArityMismatch(TranslationError):
    kind = "ReturnArityMismatch"


class UnknownTupleFunction(TranslationError):
    kind = "UnknownTupleFunction"


class ArgumentArityMismatch(TranslationError):
    kind = "ArgumentArityMismatch"


class TupleArityMismatch(TranslationError):
    kind = "TupleArityMismatch"


class TupleTypeMismatch(TranslationError):
    kind = "TupleTypeMismatch"


class EndOutsideFunction(TranslationError):
    kind = "EndOutsideFunction"


class UnterminatedFunction(TranslationError):
    kind = "UnterminatedFunction"


class TranslationFailed(RuntimeError):
    """Raised by the file driver when a translation produced diagnostics."""

    def __init__(self, diagnostics, filename=None, result=None):
        self.diagnostics = tuple(diagnostics)
        self.filename = filename
        self.result = result
        count = len(self.diagnostics)
        noun = "error" if count == 1 else "errors"
        super().__init__(f"translation failed with {count} {noun}")

    def report(self):
        return "\n".join(d.format(self.filename) for d in self.diagnostics)


ERROR_KINDS = {
    cls.kind: cls
    for cls in (
        MalformedDirective,
        DuplicateDefinition,
        ConflictingDeclaration,
        ReturnOutsideFunction,
        ReturnArityMismatch,
        UnknownTupleFunction,
        ArgumentArityMismatch,
        TupleArityMismatch,
        TupleTypeMismatch,
        EndOutsideFunction,
        UnterminatedFunction,
    )
}


__all__ = [
    "Diagnostic",
    "TranslationError",
    "TranslationFailed",
    "ERROR_KINDS",
] + sorted(ERROR_KINDS)
