from dataclasses import dataclass, field
from pathlib import Path

from percolator.config import PercolatorConfig
from percolator.exceptions import PercolatorError
from percolator.logging import LOGGER, log_time_duration, pluralize
from percolator.pipeline import CompilePipeline
from percolator.static import SOURCE_SUFFIX


@dataclass
class PrecompileReport:
    compiled: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.compiled)


class BulkPrecompiler:
    """
    Compile every .coffee file under the asset root before we start serving, so
    the first request in production doesn't pay for compilation.

    """

    def __init__(self, pipeline: CompilePipeline, config: PercolatorConfig):
        self.pipeline = pipeline
        self.config = config

    @property
    def should_run(self) -> bool:
        # Reused artifacts from a previous build are already in place
        return self.config.is_production and not self.config.USE_PRECOMPILED

    def find_sources(self) -> list[Path]:
        asset_root = self.config.asset_root
        if not asset_root.is_dir():
            LOGGER.warning(f"Asset root {asset_root} doesn't exist, nothing to compile")
            return []
        return sorted(
            path for path in asset_root.rglob(f"*{SOURCE_SUFFIX}") if path.is_file()
        )

    def run(self) -> PrecompileReport:
        """
        Compile all sources. A file that fails is logged and skipped; it never
        aborts the rest of the pass.

        """
        report = PrecompileReport()
        LOGGER.info("Compiling coffee scripts...")

        with log_time_duration("Precompile coffee scripts"):
            for source_path in self.find_sources():
                try:
                    self.pipeline.compile_file(source_path)
                except (PercolatorError, OSError) as e:
                    LOGGER.error(f"{source_path} failed to compile: {e}")
                    report.failed.append(source_path)
                    continue

                LOGGER.info(f"{source_path} compiled.")
                report.compiled.append(source_path)

        LOGGER.info(
            f"Done. {report.count} {pluralize(report.count, 'file', 'files')} compiled."
        )
        if report.failed:
            LOGGER.error(
                f"{len(report.failed)} {pluralize(len(report.failed), 'file', 'files')} failed to compile."
            )
        return report
