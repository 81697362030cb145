"""
esmdev - a development-time ES module server.

The package serves a project's source tree to the browser as native ES
modules.  Nothing is bundled ahead of time; each request is mapped to one
logical module and transformed just enough for the browser to load it.

The code is organised into several modules:

* ``address`` – the parsed form of a request URL (path, kind, query and,
  for single-file components, the requested sub-view).
* ``lexer`` / ``rewriter`` – a superficial ES module lexer and the
  bare-import rewrite pass applied to every piece of emitted JavaScript.
* ``css`` – wraps stylesheets into self-injecting JavaScript modules.
* ``sfc`` – splits ``.vue`` single-file components into script, template
  and style sub-modules.
* ``packages`` – bundles installed dependencies into browser-loadable ESM
  files on demand.
* ``router`` – dispatches an address to the matching pipeline.
* ``server`` / ``cli`` – the FastAPI application and command line entry
  point that tie everything together.
"""

__version__ = "0.3.0"

from .address import ModuleAddress, ModuleKind
from .errors import (
    AddressError,
    CompileError,
    ModuleServerError,
    NotFoundError,
    ResolutionError,
)
from .router import ModuleResponse, ModuleRouter

__all__ = [
    "__version__",
    "ModuleAddress",
    "ModuleKind",
    "ModuleResponse",
    "ModuleRouter",
    "ModuleServerError",
    "NotFoundError",
    "AddressError",
    "CompileError",
    "ResolutionError",
]
