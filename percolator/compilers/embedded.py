from pathlib import Path
from threading import local

import dukpy
from dukpy.coffee import COFFEE_COMPILER

from percolator.compilers.base import CompilerBackendBase
from percolator.exceptions import CompileError
from percolator.line_numbers import extract_line_number
from percolator.logging import LOGGER

# The compiler reads process.stdout while building syntax errors, and Duktape
# has no `process` object
PROCESS_STUB = "var process = {stdout: {isTTY: false}, env: {}, argv: []};"

# The compiler attaches a zero-indexed `location` to its syntax errors but
# leaves it out of the message, so we fold it back in
COMPILE_SNIPPET = """
(function () {
    try {
        return CoffeeScript.compile(dukpy.source, {filename: dukpy.filename});
    } catch (err) {
        if (err && err.location) {
            throw new Error(err.message + " on line " + (err.location.first_line + 1));
        }
        throw err;
    }
}())
"""


class EmbeddedCompiler(CompilerBackendBase):
    """
    Compile in-process with the CoffeeScript compiler that ships inside dukpy,
    running on an embedded Duktape engine.

    A Duktape context isn't safe to enter from two threads at once, so every
    worker thread lazily gets its own interpreter with the compiler preloaded.
    The interpreter then lives as long as the thread does.

    """

    def __init__(self):
        self._local = local()

    @property
    def interpreter(self) -> dukpy.JSInterpreter:
        interpreter = getattr(self._local, "interpreter", None)
        if interpreter is None:
            LOGGER.debug("Loading CoffeeScript compiler for worker thread")
            interpreter = dukpy.JSInterpreter()
            with open(COFFEE_COMPILER, encoding="utf-8") as compiler_file:
                # Trailing null keeps the evaluation result JSON-serializable
                interpreter.evaljs((PROCESS_STUB, compiler_file.read(), "null"))
            self._local.interpreter = interpreter
        return interpreter

    def compile(self, source_path: Path, source_text: str) -> str:
        try:
            return self.interpreter.evaljs(
                COMPILE_SNIPPET,
                source=source_text,
                filename=source_path.name,
            )
        except dukpy.JSRuntimeError as e:
            message = str(e)
            raise CompileError(
                source_path, message, line_number=extract_line_number(message)
            ) from e
