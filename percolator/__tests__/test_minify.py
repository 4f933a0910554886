from pathlib import Path
from unittest.mock import patch

import pytest

from percolator.__tests__.common import UPPERCASE_SCRIPT, write_executable
from percolator.config import PercolatorConfig
from percolator.minify import (
    ExternalMinifier,
    NoopMinifier,
    minifier_from_config,
)


@pytest.mark.parametrize(
    "js_text",
    [
        "",
        "var a = 1;",
        "(function() {\n  var square;\n\n  square = function(x) {\n    return x * x;\n  };\n\n}).call(this);\n",
        "// ünïcödé\n",
    ],
)
def test_noop_minifier_is_identity(js_text: str):
    assert NoopMinifier().minify(js_text) == js_text


@pytest.mark.parametrize(
    "environment,uglify_path,expected_type",
    [
        ("production", "/usr/bin/uglifyjs", ExternalMinifier),
        ("production", "", NoopMinifier),
        ("development", "/usr/bin/uglifyjs", NoopMinifier),
        ("development", "", NoopMinifier),
    ],
)
def test_minifier_from_config(
    environment: str, uglify_path: str, expected_type: type
):
    config = PercolatorConfig(ENVIRONMENT=environment, UGLIFYJS_PATH=uglify_path)
    assert isinstance(minifier_from_config(config), expected_type)


def test_external_minifier(tmp_path: Path):
    minifier = ExternalMinifier(
        str(write_executable(tmp_path / "uglifyjs", UPPERCASE_SCRIPT))
    )
    assert minifier.minify("var square;\n") == "VAR SQUARE;\n"


def test_external_minifier_logs_stderr(tmp_path: Path):
    script = write_executable(
        tmp_path / "uglifyjs",
        "import sys\n"
        "sys.stderr.write('WARN: dropping unused variable')\n"
        "sys.stdout.write('var a;')\n",
    )

    with patch("percolator.minify.LOGGER") as mock_logger:
        output = ExternalMinifier(str(script)).minify("var a; var unused;")

    # Warnings alone don't reject the output
    assert output == "var a;"
    mock_logger.warning.assert_called_once_with("WARN: dropping unused variable")


def test_external_minifier_nonzero_exit(tmp_path: Path):
    script = write_executable(
        tmp_path / "uglifyjs", "import sys\nsys.stdout.write('garbage')\nsys.exit(1)\n"
    )
    assert ExternalMinifier(str(script)).minify("var a;") == "var a;"


def test_external_minifier_missing_executable(tmp_path: Path):
    minifier = ExternalMinifier(str(tmp_path / "does-not-exist"))
    assert minifier.minify("var a;") == "var a;"


def test_external_minifier_timeout(tmp_path: Path):
    script = write_executable(
        tmp_path / "uglifyjs", "import time\ntime.sleep(30)\n"
    )
    minifier = ExternalMinifier(str(script), timeout=0.5)
    assert minifier.minify("var a;") == "var a;"


def test_external_minifier_invalid_utf8_output(tmp_path: Path):
    script = write_executable(
        tmp_path / "uglifyjs", "import sys\nsys.stdout.buffer.write(b'\\xff')\n"
    )
    assert ExternalMinifier(str(script)).minify("var a;") == "var a;"
