"""Shared constant values for the tuplec translator."""

DIRECTIVE_MARKER = "%"

DIRECTIVE_KEYWORDS = ("func", "decl", "return", "call", "end")

OUTPUT_PARAM_PREFIX = "tuple_out_"

LOGBOOK_FILE = "tuplec.logbook.jsonl"
KEY_FILE = "tuplec_private_key.pem"
PUB_FILE = "tuplec_public_key.pem"
LOGBOOK_SHOW_LIMIT = 10

DEFAULT_COMPILER = "cc"
COMPILER_ENV_VAR = "CC"

TOPLEVEL_CALLER = "<toplevel>"

NODE_COLORS = {
    "defined": "#8BC34A",
    "declared": "#FFEB3B",
    "toplevel": "#B0BEC5",
    "recursive": "#FF7043",
}

__all__ = [
    "DIRECTIVE_MARKER",
    "DIRECTIVE_KEYWORDS",
    "OUTPUT_PARAM_PREFIX",
    "LOGBOOK_FILE",
    "KEY_FILE",
    "PUB_FILE",
    "LOGBOOK_SHOW_LIMIT",
    "DEFAULT_COMPILER",
    "COMPILER_ENV_VAR",
    "TOPLEVEL_CALLER",
    "NODE_COLORS",
]
