from abc import ABC, abstractmethod

from percolator.compilers.process import run_process
from percolator.config import PercolatorConfig
from percolator.exceptions import ExternalProcessError
from percolator.logging import LOGGER


class MinifierBase(ABC):
    @abstractmethod
    def minify(self, js_text: str) -> str:
        pass


class NoopMinifier(MinifierBase):
    def minify(self, js_text: str) -> str:
        return js_text


class ExternalMinifier(MinifierBase):
    """
    Pipe compiled JavaScript through an `uglifyjs`-compatible executable that
    reads stdin and writes stdout.

    Minification is only an optimization, so any failure falls back to the
    unminified input instead of failing the request.

    """

    def __init__(self, executable: str, timeout: float | None = None):
        self.executable = executable
        self.timeout = timeout

    def minify(self, js_text: str) -> str:
        try:
            result = run_process(
                [self.executable], input_text=js_text, timeout=self.timeout
            )
        except ExternalProcessError as e:
            LOGGER.warning(f"Minification failed, serving unminified output: {e}")
            return js_text

        if result.stderr.strip():
            LOGGER.warning(result.stderr)

        if result.returncode != 0:
            LOGGER.warning(
                f"{self.executable} exited with status {result.returncode}, serving unminified output"
            )
            return js_text

        return result.stdout


def minifier_from_config(config: PercolatorConfig) -> MinifierBase:
    if config.UGLIFYJS_PATH and config.is_production:
        return ExternalMinifier(config.UGLIFYJS_PATH, timeout=config.PROCESS_TIMEOUT)
    return NoopMinifier()
