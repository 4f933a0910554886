from pathlib import Path

from pydantic import BaseModel


class PercolatorError(Exception):
    """
    Base class for every failure raised by the compilation layer. Anything that
    crosses into the request-serving or precompilation code is one of these.

    """


class CompileDiagnostic(BaseModel):
    """
    Structured payload handed to the error page renderer.

    """

    source_path: str
    message: str

    # 0 when the compiler didn't tell us, not "line zero"
    line_number: int = 0

    # Our compilers never report columns
    column_start: int = -1
    column_end: int = -1


class CompileError(PercolatorError):
    """
    The source failed to compile. Always recoverable: rendered to the requester
    and never cached.

    """

    def __init__(self, source_path: Path | str, message: str, line_number: int = 0):
        super().__init__(message)
        self.source_path = Path(source_path)
        self.message = message
        self.line_number = line_number
        self.column_start = -1
        self.column_end = -1

    def __str__(self):
        location = f"{self.source_path}"
        if self.line_number:
            location += f":{self.line_number}"
        return f"{location}: {self.message}"

    def to_diagnostic(self) -> CompileDiagnostic:
        return CompileDiagnostic(
            source_path=str(self.source_path),
            message=self.message,
            line_number=self.line_number,
            column_start=self.column_start,
            column_end=self.column_end,
        )


class ExternalProcessError(PercolatorError):
    """
    Launching or talking to a native compiler or minifier process failed,
    including running past its timeout.

    """

    def __init__(self, command: list[str], message: str):
        super().__init__(f"{command[0]}: {message}")
        self.command = command
        self.message = message


class ArtifactStoreError(PercolatorError):
    """
    Reading or writing the compiled artifact tree failed.

    """
