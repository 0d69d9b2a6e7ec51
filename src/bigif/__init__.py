"""BigIF: compile branching, stateful scripts into graphs of reachable story states."""

from bigif.compiler import compile_script, compile_to_json
from bigif.errors import CompileError, ScriptParseError, StructuralError
from bigif.parser import parse_script

__version__ = "0.3.0"

__all__ = [
    "CompileError",
    "ScriptParseError",
    "StructuralError",
    "__version__",
    "compile_script",
    "compile_to_json",
    "parse_script",
]
