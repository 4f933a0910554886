import sys
from pathlib import Path
from threading import Lock
from time import sleep

from percolator.compilers.base import CompilerBackendBase
from percolator.exceptions import CompileError

SQUARE_SOURCE = "square = (x) -> x * x\n"

# Valid for six lines, then an unmatched paren on line 7
BROKEN_SOURCE = """\
numbers = [1, 2, 3]

double = (x) -> x * 2

doubled = (double n for n in numbers)

broken = (x) -> )
"""

UPPERCASE_SCRIPT = """\
import sys

sys.stdout.write(sys.stdin.read().upper())
"""


def write_executable(path: Path, body: str) -> Path:
    """
    Write a small python program that can be launched directly, standing in for
    a native binary like `coffee` or `uglifyjs`.

    """
    path.write_text(f"#!{sys.executable}\n{body}")
    path.chmod(0o755)
    return path


def write_source(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class CountingCompiler(CompilerBackendBase):
    """
    Test double that records every compilation. Sources containing "FAIL" raise
    a compile error on line 1.

    """

    def __init__(self, delay: float = 0):
        self.delay = delay
        self.calls: list[Path] = []
        self._lock = Lock()

    def compile(self, source_path: Path, source_text: str) -> str:
        with self._lock:
            self.calls.append(source_path)
        if self.delay:
            sleep(self.delay)
        if "FAIL" in source_text:
            raise CompileError(source_path, "unexpected FAIL on line 1", line_number=1)
        return f"// {source_path.name}\nvar compiled = {len(source_text)};\n"
