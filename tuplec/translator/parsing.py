"""Token-level parsers for tuple-function directives.

None of these build an expression tree. Type lists and parameter lists use a
flat ``identifier + stars`` grammar and stop quietly at the first fragment
they do not understand; value and argument lists are only split on their
outermost commas.
"""

from __future__ import annotations

import re
from typing import Optional

from .core import Binding, FunctionSignature, Param, SimpleType
from .diagnostics import MalformedDirective

_IDENT = r"[A-Za-z_]\w*"
_STARS = r"(?:\s*\*)*"

TUPLE_TYPE_PATTERN = re.compile(rf"\s*(?P<base>{_IDENT})(?P<stars>{_STARS})\s*,?\s*")

PARAM_PATTERN = re.compile(
    rf"\s*(?P<base>{_IDENT})(?P<sep>\s*\*{_STARS}\s*|\s+)(?P<name>{_IDENT})\s*,?\s*"
)

BINDING_PATTERN = re.compile(
    rf"\s*(?:(?P<base>{_IDENT})(?P<sep>\s*\*{_STARS}\s*|\s+))?(?P<name>{_IDENT})\s*,?\s*"
)

SIMPLE_TYPE_PATTERN = re.compile(rf"^\s*(?P<base>{_IDENT})(?P<stars>{_STARS})\s*$")

SIGNATURE_PATTERN = re.compile(
    rf"^(?P<static>static\b\s*)?\((?P<returns>[^()]*)\)\s*(?P<name>{_IDENT})\s*"
    r"\((?P<params>[^()]*)\)\s*(?P<tail>[;{]?)\s*$"
)

CALL_TARGET_PATTERN = re.compile(rf"\s*=\s*(?P<name>{_IDENT})\s*")

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {close: open_ for open_, close in _OPENERS.items()}


def _scan_matches(pattern, text):
    pos = 0
    while pos < len(text):
        match = pattern.match(text, pos)
        if not match or match.end() == pos:
            break
        yield match
        pos = match.end()


def parse_tuple_type(text) -> list[SimpleType]:
    """Parse ``int, char *, double`` into simple types; leftovers are ignored."""

    return [
        SimpleType(m.group("base"), m.group("stars").count("*"))
        for m in _scan_matches(TUPLE_TYPE_PATTERN, text or "")
    ]


def parse_params(text) -> list[Param]:
    """Parse ``double a, char *s`` into parameters."""

    if (text or "").strip() == "void":
        return []
    return [
        Param(SimpleType(m.group("base"), m.group("sep").count("*")), m.group("name"))
        for m in _scan_matches(PARAM_PATTERN, text or "")
    ]


def parse_tuple_assign(text) -> list[Binding]:
    """Parse a call's destructure list.

    ``int x, char *s`` declares fresh variables; a bare ``x`` assigns to a
    variable that already exists.
    """

    bindings = []
    for m in _scan_matches(BINDING_PATTERN, text or ""):
        if m.group("base") is None:
            bindings.append(Binding(None, m.group("name")))
        else:
            stars = m.group("sep").count("*")
            bindings.append(Binding(SimpleType(m.group("base"), stars), m.group("name")))
    return bindings


def parse_simple_type(text) -> Optional[SimpleType]:
    match = SIMPLE_TYPE_PATTERN.match(text or "")
    if not match:
        return None
    return SimpleType(match.group("base"), match.group("stars").count("*"))


def _iter_structure(text, start=0):
    """Yield ``(index, char, depth)`` for characters outside literals.

    ``depth`` is the bracket nesting after ``char`` has been applied.
    """

    stack = []
    quote = None
    index = start
    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
            index += 1
            continue
        if char in "\"'":
            quote = char
        elif char in _OPENERS:
            stack.append(char)
        elif char in _CLOSERS:
            if not stack or stack[-1] != _CLOSERS[char]:
                raise MalformedDirective(f"unbalanced '{char}'")
            stack.pop()
        yield index, char, len(stack)
        index += 1
    if quote:
        raise MalformedDirective(f"unterminated {quote} literal")
    if stack:
        raise MalformedDirective(f"unclosed '{stack[-1]}'")


def split_top_level(text) -> list[str]:
    """Split on commas that sit outside brackets and string literals."""

    if not (text or "").strip():
        return []
    pieces = []
    start = 0
    for index, char, depth in _iter_structure(text):
        if char == "," and depth == 0:
            pieces.append(text[start:index].strip())
            start = index + 1
    pieces.append(text[start:].strip())
    for position, piece in enumerate(pieces):
        if not piece:
            raise MalformedDirective(f"empty expression at position {position}")
    return pieces


def take_parenthesized(text, pos=0):
    """Return the inside of the balanced group starting at ``pos`` and its end."""

    while pos < len(text) and text[pos].isspace():
        pos += 1
    if pos >= len(text) or text[pos] != "(":
        raise MalformedDirective("expected '('")
    for index, char, depth in _iter_structure(text, pos):
        if depth == 0:
            return text[pos + 1:index], index + 1
    raise MalformedDirective("unclosed '('")


def _expect_terminator(text, pos):
    rest = text[pos:].strip()
    if rest not in ("", ";"):
        raise MalformedDirective(f"unexpected text after directive: {rest!r}")


def parse_signature(body, *, defined, line_number=0, origin_text=""):
    """Parse ``[static] (T0, T1) name(params)`` into a signature.

    Returns the signature and the trailing ``;``/``{`` (or ``""``).
    """

    match = SIGNATURE_PATTERN.match(body.strip())
    if not match:
        raise MalformedDirective(
            "expected '[static] (types) name(params)' in tuple function header"
        )
    return_tuple = parse_tuple_type(match.group("returns"))
    if not return_tuple:
        raise MalformedDirective(
            f"tuple function {match.group('name')} must return at least one type"
        )
    signature = FunctionSignature(
        name=match.group("name"),
        is_static=match.group("static") is not None,
        return_tuple=tuple(return_tuple),
        params=tuple(parse_params(match.group("params"))),
        origin_text=origin_text,
        line_number=line_number,
        defined=defined,
    )
    return signature, match.group("tail")


def parse_return_values(body) -> list[str]:
    inner, end = take_parenthesized(body)
    _expect_terminator(body, end)
    return split_top_level(inner)


def parse_call(body):
    """Parse ``(bindings) = name(args)`` into its three parts."""

    binding_text, end = take_parenthesized(body)
    target = CALL_TARGET_PATTERN.match(body, end)
    if not target:
        raise MalformedDirective("expected '= name(args)' after the binding list")
    arg_text, end = take_parenthesized(body, target.end())
    _expect_terminator(body, end)
    return parse_tuple_assign(binding_text), target.group("name"), split_top_level(arg_text)


__all__ = [
    "parse_tuple_type",
    "parse_params",
    "parse_tuple_assign",
    "parse_simple_type",
    "split_top_level",
    "take_parenthesized",
    "parse_signature",
    "parse_return_values",
    "parse_call",
]
