from os import fstat, replace, utime
from pathlib import Path
from shutil import rmtree
from tempfile import NamedTemporaryFile

from pydantic import BaseModel

from percolator.config import PercolatorConfig
from percolator.exceptions import ArtifactStoreError
from percolator.logging import LOGGER

COMPILED_SUFFIX = ".js"


class CompiledArtifact(BaseModel):
    source_path: Path

    # Nanosecond mtime of the source this output was compiled from
    source_modified_at: int

    compiled_text: str

    model_config = {"frozen": True}


class ArtifactStore:
    """
    Compiled output persisted as a directory tree that mirrors the application's
    source tree:

        <compiled_root>/<source dir relative to application root>/<name>.coffee.js

    There's no separate index. When an artifact is written we stamp the compiled
    file's mtime with the mtime of the source it came from, so the file itself
    records which version of the source it belongs to and survives restarts.

    Writes land in a temporary sibling file that's renamed into place, so a
    concurrent reader sees either the previous artifact or the new one, never
    a partial file.

    """

    def __init__(self, application_root: Path, compiled_root: Path):
        self.application_root = application_root.resolve()
        self.compiled_root = compiled_root.resolve()

    @classmethod
    def from_config(cls, config: PercolatorConfig):
        return cls(
            application_root=config.APPLICATION_ROOT,
            compiled_root=config.compiled_root,
        )

    def artifact_path(self, source_path: Path) -> Path:
        source_path = source_path.resolve()
        try:
            relative_path = source_path.relative_to(self.application_root)
        except ValueError as e:
            raise ArtifactStoreError(
                f"{source_path} is outside of the application root {self.application_root}"
            ) from e

        # Append rather than replace the extension, so foo.coffee -> foo.coffee.js
        return (
            self.compiled_root
            / relative_path.parent
            / f"{relative_path.name}{COMPILED_SUFFIX}"
        )

    def lookup(self, source_path: Path) -> CompiledArtifact | None:
        compiled_path = self.artifact_path(source_path)

        try:
            # Stat through the open descriptor so the timestamp belongs to the
            # same file version as the text we read
            with open(compiled_path, encoding="utf-8", newline="") as compiled_file:
                modified_at = fstat(compiled_file.fileno()).st_mtime_ns
                compiled_text = compiled_file.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ArtifactStoreError(
                f"Unable to read compiled artifact {compiled_path}: {e}"
            ) from e

        return CompiledArtifact(
            source_path=source_path,
            source_modified_at=modified_at,
            compiled_text=compiled_text,
        )

    def put(self, artifact: CompiledArtifact):
        compiled_path = self.artifact_path(artifact.source_path)

        try:
            compiled_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_file = NamedTemporaryFile(
                "w",
                encoding="utf-8",
                newline="",
                dir=compiled_path.parent,
                prefix=f".{compiled_path.name}.",
                delete=False,
            )
            try:
                with tmp_file:
                    tmp_file.write(artifact.compiled_text)
                utime(
                    tmp_file.name,
                    ns=(artifact.source_modified_at, artifact.source_modified_at),
                )
                replace(tmp_file.name, compiled_path)
            except OSError:
                Path(tmp_file.name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ArtifactStoreError(
                f"Unable to write compiled artifact {compiled_path}: {e}"
            ) from e

    def is_stale(self, artifact: CompiledArtifact, source_modified_at: int) -> bool:
        # The artifact carries the exact source mtime, so any difference, including
        # a source restored to an older version, means it was built from other text
        return artifact.source_modified_at != source_modified_at

    def purge_all(self):
        if not self.compiled_root.exists():
            return

        LOGGER.info(
            f"Deleting all the compiled CoffeeScript files in {self.compiled_root}"
        )
        try:
            rmtree(self.compiled_root)
        except OSError as e:
            raise ArtifactStoreError(
                f"Unable to purge compiled artifacts in {self.compiled_root}: {e}"
            ) from e
