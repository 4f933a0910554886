from pathlib import Path
from unittest.mock import patch

import pytest

from percolator.__tests__.common import write_executable, write_source
from percolator.compilers import (
    EmbeddedCompiler,
    ExternalCompiler,
    compiler_from_config,
)
from percolator.config import PercolatorConfig
from percolator.exceptions import CompileError

# Stands in for `coffee -p <file>`: echoes the file back as a JS comment
FAKE_COFFEE = """\
import sys

assert sys.argv[1] == "-p"
with open(sys.argv[2]) as source_file:
    source = source_file.read()
if "FAIL" in source:
    sys.stderr.write("Error: In " + sys.argv[2] + ", unexpected FAIL on line 4")
    sys.exit(1)
sys.stderr.write("(node) deprecation warning")
sys.stdout.write("// " + source)
"""


@pytest.fixture
def fake_coffee(tmp_path: Path) -> Path:
    return write_executable(tmp_path / "coffee", FAKE_COFFEE)


def test_external_compile(fake_coffee: Path, asset_root: Path):
    source_path = write_source(asset_root / "app.coffee", "app = 1\n")

    with patch("percolator.compilers.external.LOGGER") as mock_logger:
        output = ExternalCompiler(str(fake_coffee)).compile(source_path, "app = 1\n")

    assert output == "// app = 1\n"
    # stderr on a successful run is only a warning
    mock_logger.warning.assert_called_once_with("(node) deprecation warning")


def test_external_compile_error(fake_coffee: Path, asset_root: Path):
    source_path = write_source(asset_root / "bad.coffee", "x = 1\nFAIL\n")

    with pytest.raises(CompileError) as exc_info:
        ExternalCompiler(str(fake_coffee)).compile(source_path, "x = 1\nFAIL\n")

    assert exc_info.value.source_path == source_path
    assert exc_info.value.line_number == 4
    assert "unexpected FAIL" in exc_info.value.message


def test_external_compile_silent_failure(tmp_path: Path, asset_root: Path):
    coffee = write_executable(tmp_path / "coffee", "import sys\nsys.exit(5)\n")
    source_path = write_source(asset_root / "app.coffee", "app = 1\n")

    with pytest.raises(CompileError) as exc_info:
        ExternalCompiler(str(coffee)).compile(source_path, "app = 1\n")

    assert exc_info.value.line_number == 0
    assert "exited with status 5" in exc_info.value.message


def test_external_compile_missing_binary(tmp_path: Path, asset_root: Path):
    source_path = write_source(asset_root / "app.coffee", "app = 1\n")

    with pytest.raises(CompileError) as exc_info:
        ExternalCompiler(str(tmp_path / "no-coffee")).compile(source_path, "app = 1\n")

    assert exc_info.value.line_number == 0
    assert "unable to launch" in exc_info.value.message


def test_external_compile_timeout(tmp_path: Path, asset_root: Path):
    coffee = write_executable(tmp_path / "coffee", "import time\ntime.sleep(30)\n")
    source_path = write_source(asset_root / "app.coffee", "app = 1\n")

    with pytest.raises(CompileError, match="timed out"):
        ExternalCompiler(str(coffee), timeout=0.5).compile(source_path, "app = 1\n")


def test_external_compile_invalid_utf8_output(tmp_path: Path, asset_root: Path):
    coffee = write_executable(
        tmp_path / "coffee", "import sys\nsys.stdout.buffer.write(b'\\xff')\n"
    )
    source_path = write_source(asset_root / "app.coffee", "app = 1\n")

    with pytest.raises(CompileError, match="not valid UTF-8"):
        ExternalCompiler(str(coffee)).compile(source_path, "app = 1\n")


@pytest.mark.parametrize(
    "coffee_native,expected_type",
    [
        ("/usr/local/bin/coffee", ExternalCompiler),
        ("", EmbeddedCompiler),
    ],
)
def test_compiler_from_config(coffee_native: str, expected_type: type):
    config = PercolatorConfig(COFFEE_NATIVE=coffee_native, PROCESS_TIMEOUT=5)
    compiler = compiler_from_config(config)

    assert isinstance(compiler, expected_type)
    if isinstance(compiler, ExternalCompiler):
        assert compiler.executable == "/usr/local/bin/coffee"
        assert compiler.timeout == 5
