from percolator.compilers.base import CompilerBackendBase as CompilerBackendBase
from percolator.compilers.embedded import EmbeddedCompiler as EmbeddedCompiler
from percolator.compilers.external import ExternalCompiler as ExternalCompiler
from percolator.config import PercolatorConfig


def compiler_from_config(config: PercolatorConfig) -> CompilerBackendBase:
    """
    A configured native binary wins over the bundled compiler.

    """
    if config.COFFEE_NATIVE:
        return ExternalCompiler(config.COFFEE_NATIVE, timeout=config.PROCESS_TIMEOUT)
    return EmbeddedCompiler()
