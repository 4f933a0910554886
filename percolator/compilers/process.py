from contextlib import contextmanager
from dataclasses import dataclass
from subprocess import DEVNULL, PIPE, Popen, TimeoutExpired
from typing import Iterator

from percolator.exceptions import ExternalProcessError
from percolator.logging import LOGGER


@dataclass
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str


@contextmanager
def managed_process(command: list[str], *, pipe_stdin: bool = False) -> Iterator[Popen]:
    """
    Launch a child process that's guaranteed to be killed and reaped when the
    block exits, whether it finished normally or raised.

    """
    try:
        process = Popen(
            command,
            stdin=PIPE if pipe_stdin else DEVNULL,
            stdout=PIPE,
            stderr=PIPE,
            encoding="utf-8",
        )
    except OSError as e:
        raise ExternalProcessError(command, f"unable to launch: {e}") from e

    # Popen's own exit closes the pipes and waits on the child
    with process:
        try:
            yield process
        finally:
            if process.poll() is None:
                LOGGER.debug(f"Killing unfinished process: {command}")
                process.kill()


def run_process(
    command: list[str],
    *,
    input_text: str | None = None,
    timeout: float | None = None,
) -> ProcessResult:
    """
    Run a command to completion, optionally feeding it `input_text` on stdin. Both
    output streams are drained in full.

    :raises ExternalProcessError: if the process couldn't be launched, the pipes
        failed, its output wasn't valid UTF-8, or it ran longer than `timeout` seconds

    """
    with managed_process(command, pipe_stdin=input_text is not None) as process:
        try:
            stdout, stderr = process.communicate(input=input_text, timeout=timeout)
        except TimeoutExpired as e:
            raise ExternalProcessError(
                command, f"timed out after {timeout} seconds"
            ) from e
        except OSError as e:
            raise ExternalProcessError(command, f"communication failed: {e}") from e
        except UnicodeError as e:
            raise ExternalProcessError(
                command, f"output is not valid UTF-8: {e}"
            ) from e

    return ProcessResult(
        returncode=process.returncode,
        stdout=stdout,
        stderr=stderr,
    )
