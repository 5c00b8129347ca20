"""Rewrite rules for each directive keyword.

Every handler takes the owning translator and a parsed :class:`Directive`,
checks it against the registry and the active function, and returns the
plain C text for the line. Failures are raised as ``TranslationError``
subclasses; the dispatcher stamps the line number onto them.
"""

from __future__ import annotations

from dataclasses import dataclass

from .core import output_param_name
from .diagnostics import (
    ArgumentArityMismatch,
    EndOutsideFunction,
    MalformedDirective,
    ReturnArityMismatch,
    ReturnOutsideFunction,
    TupleArityMismatch,
    TupleTypeMismatch,
    UnknownTupleFunction,
    UnterminatedFunction,
)
from .parsing import parse_call, parse_return_values, parse_signature


@dataclass(frozen=True)
class Directive:
    keyword: str
    body: str
    line_number: int
    source: str
    indent: str = ""


def _echo(directive):
    text = directive.source.strip().replace("*/", "* /")
    return f"/* {text} */"


def _plural(count, noun):
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _given(count, noun=None):
    subject = _plural(count, noun) if noun else str(count)
    return f"{subject} {'was' if count == 1 else 'were'} given"


def handle_func(translator, directive):
    """Register a definition and emit its header with output parameters."""

    current = translator.active
    if translator.require_end and current is not None:
        raise UnterminatedFunction(
            f"tuple function '{current.name}' is still open; "
            f"close it with {translator.marker}end first",
            context=[current.describe()],
        )
    signature, tail = parse_signature(
        directive.body,
        defined=True,
        line_number=directive.line_number,
        origin_text=directive.source,
    )
    translator.registry.define(signature)
    translator.open_function(signature)
    header = signature.header(translator.output_prefix)
    return f"{header} {{" if tail == "{" else header


def handle_decl(translator, directive):
    signature, tail = parse_signature(
        directive.body,
        defined=False,
        line_number=directive.line_number,
        origin_text=directive.source,
    )
    if tail == "{":
        raise MalformedDirective("a prototype declaration cannot open a body")
    translator.registry.declare(signature)
    return f"{signature.header(translator.output_prefix)};"


def handle_return(translator, directive):
    """Assign slots 1..N-1 through the output parameters, return slot 0."""

    function = translator.active
    if function is None:
        raise ReturnOutsideFunction("tuple return outside of a tuple function")
    values = parse_return_values(directive.body)
    if len(values) != function.arity:
        raise ReturnArityMismatch(
            f"'{function.name}' returns {_plural(function.arity, 'value')} "
            f"but {_given(len(values))}",
            context=[function.describe()],
        )
    statements = [
        f"*{output_param_name(slot, translator.output_prefix)} = {value};"
        for slot, value in enumerate(values)
        if slot > 0
    ]
    statements.append(f"return {values[0]};")
    return f"{{ {' '.join(statements)} }} {_echo(directive)}"


def handle_call(translator, directive):
    """Declare the bindings and call with the address of every extra slot."""

    bindings, name, args = parse_call(directive.body)
    signature = translator.registry.lookup(name)
    if signature is None:
        raise UnknownTupleFunction(f"'{name}' is not a known tuple function")
    if len(args) != signature.param_count:
        raise ArgumentArityMismatch(
            f"'{name}' takes {_plural(signature.param_count, 'argument')} "
            f"but {_given(len(args))}",
            context=[signature.describe()],
        )
    if len(bindings) != signature.arity:
        raise TupleArityMismatch(
            f"'{name}' returns {_plural(signature.arity, 'value')} "
            f"but {_given(len(bindings), 'binding')}",
            context=[signature.describe()],
        )
    for position, (binding, expected) in enumerate(zip(bindings, signature.return_tuple)):
        if binding.declared and binding.type != expected:
            raise TupleTypeMismatch(
                f"binding {position} ('{binding.name}') is declared as "
                f"'{binding.type}' but '{name}' returns '{expected}' in that slot",
                context=[signature.describe()],
            )

    statements = [f"{b.type.declare(b.name)};" for b in bindings if b.declared]
    call_args = list(args) + [f"&{b.name}" for b in bindings[1:]]
    statements.append(f"{bindings[0].name} = {name}({', '.join(call_args)});")
    translator.record_call(name, directive.line_number)
    return f"{' '.join(statements)} {_echo(directive)}"


def handle_end(translator, directive):
    if directive.body.strip() not in ("", ";"):
        raise MalformedDirective(f"{translator.marker}end takes no arguments")
    if translator.active is None:
        raise EndOutsideFunction(f"{translator.marker}end without an open tuple function")
    translator.close_function()
    return "}"


HANDLERS = {
    "func": handle_func,
    "decl": handle_decl,
    "return": handle_return,
    "call": handle_call,
    "end": handle_end,
}


__all__ = [
    "Directive",
    "HANDLERS",
    "handle_func",
    "handle_decl",
    "handle_return",
    "handle_call",
    "handle_end",
]
