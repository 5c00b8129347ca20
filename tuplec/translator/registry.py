"""Registry of tuple-function signatures seen during one translation."""

from __future__ import annotations

from typing import Iterator, Optional

from .core import FunctionSignature
from .diagnostics import ConflictingDeclaration, DuplicateDefinition


class FunctionRegistry:
    """Name → signature mapping owned by a single translator.

    A name carries at most one definition. Declarations may repeat as long
    as they agree with everything already recorded for that name.
    """

    def __init__(self, signatures=None):
        self._signatures: dict[str, FunctionSignature] = {}
        for signature in signatures or ():
            if signature.defined:
                self.define(signature)
            else:
                self.declare(signature)

    def lookup(self, name) -> Optional[FunctionSignature]:
        return self._signatures.get(name)

    def define(self, signature: FunctionSignature) -> FunctionSignature:
        existing = self._signatures.get(signature.name)
        if existing is not None:
            if existing.defined:
                raise DuplicateDefinition(
                    f"tuple function '{signature.name}' is already defined",
                    context=[existing.describe()],
                )
            self._check_compatible(existing, signature)
        signature.defined = True
        self._signatures[signature.name] = signature
        return signature

    def declare(self, signature: FunctionSignature) -> FunctionSignature:
        existing = self._signatures.get(signature.name)
        if existing is not None:
            self._check_compatible(existing, signature)
            return existing
        signature.defined = False
        self._signatures[signature.name] = signature
        return signature

    @staticmethod
    def _check_compatible(existing, signature):
        if not existing.matches(signature):
            raise ConflictingDeclaration(
                f"signature of '{signature.name}' conflicts with an earlier declaration",
                context=[existing.describe()],
            )

    def snapshot(self) -> dict[str, FunctionSignature]:
        """Return a shallow copy of the registered signatures."""

        return dict(self._signatures)

    def defined_names(self) -> list[str]:
        return [name for name, sig in self._signatures.items() if sig.defined]

    def __contains__(self, name) -> bool:
        return name in self._signatures

    def __len__(self) -> int:
        return len(self._signatures)

    def __iter__(self) -> Iterator[FunctionSignature]:
        return iter(self._signatures.values())


__all__ = ["FunctionRegistry"]
