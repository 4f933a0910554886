from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from percolator.compilers import compiler_from_config
from percolator.config import PercolatorConfig, get_config
from percolator.exceptions import ArtifactStoreError
from percolator.logging import LOGGER
from percolator.minify import minifier_from_config
from percolator.pipeline import CompilePipeline
from percolator.precompile import BulkPrecompiler, PrecompileReport
from percolator.render import ErrorPageRenderer
from percolator.static import CoffeeStaticFiles
from percolator.store import ArtifactStore


class AssetController:
    """
    Wires the compilation layer together from one config and attaches it to a
    FastAPI app. The store, pipeline and precompiler are built exactly once here
    and shared between the startup pass and request serving.

    ```python
    config = PercolatorConfig(ENVIRONMENT="production")
    assets = AssetController(config)

    app = FastAPI(lifespan=assets.lifespan)
    assets.mount(app)
    ```

    """

    def __init__(self, config: PercolatorConfig | None = None):
        if config is None:
            registered = get_config()
            if not isinstance(registered, PercolatorConfig):
                raise ValueError(
                    f"Registered config must be a PercolatorConfig, got {type(registered)}"
                )
            config = registered

        self.config = config
        self.store = ArtifactStore.from_config(config)
        self.pipeline = CompilePipeline(
            store=self.store,
            compiler=compiler_from_config(config),
            minifier=minifier_from_config(config),
            production=config.is_production,
        )
        self.renderer = ErrorPageRenderer()
        self.precompiler = BulkPrecompiler(self.pipeline, config)

    def build_static_files(self) -> CoffeeStaticFiles:
        return CoffeeStaticFiles(
            directory=str(self.config.asset_root),
            pipeline=self.pipeline,
            renderer=self.renderer,
            config=self.config,
        )

    def mount(self, app: FastAPI, path: str = "/public/javascripts"):
        app.mount(path, self.build_static_files(), name="coffee-assets")

    def startup(self) -> PrecompileReport | None:
        """
        Drop leftovers from a previous run, then precompile when in production.
        Has to finish before the first request is served.

        """
        if not self.config.USE_PRECOMPILED:
            try:
                self.store.purge_all()
            except ArtifactStoreError as e:
                # Stale artifacts still get recompiled on access, so keep going
                LOGGER.error(f"Unable to purge compiled artifacts: {e}")

        if not self.precompiler.should_run:
            return None
        return self.precompiler.run()

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        await run_in_threadpool(self.startup)
        yield
