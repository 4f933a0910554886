from percolator.app import AssetController as AssetController
from percolator.compilers import (
    EmbeddedCompiler as EmbeddedCompiler,
    ExternalCompiler as ExternalCompiler,
    compiler_from_config as compiler_from_config,
)
from percolator.config import PercolatorConfig as PercolatorConfig
from percolator.exceptions import (
    ArtifactStoreError as ArtifactStoreError,
    CompileError as CompileError,
    ExternalProcessError as ExternalProcessError,
    PercolatorError as PercolatorError,
)
from percolator.line_numbers import extract_line_number as extract_line_number
from percolator.minify import (
    ExternalMinifier as ExternalMinifier,
    NoopMinifier as NoopMinifier,
    minifier_from_config as minifier_from_config,
)
from percolator.pipeline import CompilePipeline as CompilePipeline
from percolator.precompile import BulkPrecompiler as BulkPrecompiler
from percolator.static import CoffeeStaticFiles as CoffeeStaticFiles
from percolator.store import (
    ArtifactStore as ArtifactStore,
    CompiledArtifact as CompiledArtifact,
)
