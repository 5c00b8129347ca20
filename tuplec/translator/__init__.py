"""
tuplec translator: tuple-returning functions for C.

  %func   [static] (T0, T1, ...) name(params);   define, emit header
  %decl   [static] (T0, T1, ...) name(params);   prototype only
  %return (e0, e1, ...);                          assign outputs, return e0
  %call   (T0 v0, T1 v1, ...) = name(args);       declare, call, destructure
  %end                                            close the active body

Slot 0 of a tuple is the function's real return value; slots 1..N-1 travel
through synthetic pointer parameters appended to the parameter list.
"""

from . import core as _core
from . import parsing as _parsing
from . import diagnostics as _diagnostics
from . import registry as _registry
from . import handlers as _handlers
from . import dispatcher as _dispatcher
from . import callgraph as _callgraph
from . import crypto as _crypto
from . import ledger as _ledger
from . import driver as _driver
from .cli import main, parse_args

from .core import *
from .parsing import *
from .diagnostics import *
from .registry import *
from .handlers import *
from .dispatcher import *
from .callgraph import *
from .crypto import *
from .ledger import *
from .driver import *

__all__ = []
for module in (
    _core,
    _parsing,
    _diagnostics,
    _registry,
    _handlers,
    _dispatcher,
    _callgraph,
    _crypto,
    _ledger,
    _driver,
):
    __all__.extend(getattr(module, "__all__", []))
__all__ += ["main", "parse_args"]
__all__ = list(dict.fromkeys(__all__))
