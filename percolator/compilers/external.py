from pathlib import Path

from percolator.compilers.base import CompilerBackendBase
from percolator.compilers.process import run_process
from percolator.exceptions import CompileError, ExternalProcessError
from percolator.line_numbers import extract_line_number
from percolator.logging import LOGGER


class ExternalCompiler(CompilerBackendBase):
    """
    Shell out to a native `coffee` executable. The binary reads the file itself,
    so `source_text` is only used by the embedded backend.

    """

    def __init__(self, executable: str, timeout: float | None = None):
        self.executable = executable
        self.timeout = timeout

    def compile(self, source_path: Path, source_text: str) -> str:
        command = [self.executable, "-p", str(source_path)]

        try:
            result = run_process(command, timeout=self.timeout)
        except ExternalProcessError as e:
            # Nothing sensible to serve for an uncompiled source, so this fails
            # the same way a syntax error does
            LOGGER.error(f"Native coffee compiler failed for {source_path}: {e}")
            raise CompileError(source_path, str(e)) from e

        # coffee prints deprecation notices and the like to stderr, even on success
        if result.stderr.strip():
            LOGGER.warning(result.stderr)

        if result.returncode != 0:
            message = (
                result.stderr.strip()
                or f"{self.executable} exited with status {result.returncode}"
            )
            raise CompileError(
                source_path, message, line_number=extract_line_number(message)
            )

        return result.stdout
