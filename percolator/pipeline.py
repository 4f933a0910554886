from pathlib import Path
from threading import Lock
from weakref import WeakValueDictionary

from percolator.compilers.base import CompilerBackendBase
from percolator.exceptions import CompileError
from percolator.minify import MinifierBase, NoopMinifier
from percolator.store import ArtifactStore, CompiledArtifact


def read_source(source_path: Path) -> str:
    """
    Read a .coffee source as UTF-8. Undecodable bytes are the source's problem, so
    they surface as a compile error rather than an internal failure.

    """
    try:
        return source_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise CompileError(source_path, f"source is not valid UTF-8: {e}") from e


class CompilePipeline:
    """
    Single entrypoint for turning a .coffee source into servable JavaScript. Both the
    request path and the startup precompilation go through here, and this is the
    only object that reads from or writes to the artifact store.

    Compilation for a given source path is serialized, so concurrent first requests
    for the same stale file only compile it once. Different paths compile in parallel.

    """

    def __init__(
        self,
        store: ArtifactStore,
        compiler: CompilerBackendBase,
        minifier: MinifierBase | None = None,
        production: bool = False,
    ):
        self.store = store
        self.compiler = compiler
        self.minifier = minifier or NoopMinifier()
        self.production = production

        # Entries disappear once no caller holds the lock
        self._path_locks: WeakValueDictionary[Path, Lock] = WeakValueDictionary()
        self._path_locks_guard = Lock()

    def get_compiled_output(
        self, source_path: Path, source_text: str, source_modified_at: int
    ) -> str:
        """
        Return the JavaScript for `source_path`, compiling only when there's no
        artifact for the given source timestamp.

        Compile errors propagate to the caller and nothing is cached for them, so
        the next request gets a fresh attempt.

        :raises CompileError: the source failed to compile
        :raises ArtifactStoreError: the compiled artifact couldn't be read or written

        """
        cached = self._fresh_artifact(source_path, source_modified_at)
        if cached is not None:
            return cached.compiled_text

        with self._lock_for(source_path):
            # Someone else may have compiled while we waited on the lock
            cached = self._fresh_artifact(source_path, source_modified_at)
            if cached is not None:
                return cached.compiled_text

            compiled_text = self.compiler.compile(source_path, source_text)
            if self.production:
                compiled_text = self.minifier.minify(compiled_text)

            self.store.put(
                CompiledArtifact(
                    source_path=source_path,
                    source_modified_at=source_modified_at,
                    compiled_text=compiled_text,
                )
            )
            return compiled_text

    def compile_file(self, source_path: Path) -> str:
        """
        Convenience wrapper that snapshots the file's contents and mtime from disk.

        """
        modified_at = source_path.stat().st_mtime_ns
        source_text = read_source(source_path)
        return self.get_compiled_output(source_path, source_text, modified_at)

    def _fresh_artifact(
        self, source_path: Path, source_modified_at: int
    ) -> CompiledArtifact | None:
        artifact = self.store.lookup(source_path)
        if artifact is None or self.store.is_stale(artifact, source_modified_at):
            return None
        return artifact

    def _lock_for(self, source_path: Path) -> Lock:
        with self._path_locks_guard:
            lock = self._path_locks.get(source_path)
            if lock is None:
                lock = Lock()
                self._path_locks[source_path] = lock
            return lock
