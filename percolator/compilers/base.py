from abc import ABC, abstractmethod
from pathlib import Path


class CompilerBackendBase(ABC):
    """
    Base class for the strategies that turn CoffeeScript into JavaScript. Backends
    are stateless from the caller's point of view and never touch the artifact store;
    the pipeline decides when to call them and what to do with the output.

    """

    @abstractmethod
    def compile(self, source_path: Path, source_text: str) -> str:
        """
        Compile the given source. Implementations must be safe to call from multiple
        worker threads at once.

        :param source_path: Absolute path of the .coffee file, used for diagnostics
            and by backends that read the file themselves
        :param source_text: Contents of the file as of the caller's timestamp

        :raises CompileError: if the source can't be compiled for any reason

        """
        pass
