from os import stat_result
from pathlib import Path
from stat import S_ISREG

from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool
from starlette.responses import HTMLResponse, Response
from starlette.types import Scope

from percolator.config import PercolatorConfig
from percolator.exceptions import CompileError, PercolatorError
from percolator.logging import LOGGER
from percolator.pipeline import CompilePipeline, read_source
from percolator.render import ErrorPageRenderer

SOURCE_SUFFIX = ".coffee"
JAVASCRIPT_MEDIA_TYPE = "text/javascript"


class CoffeeStaticFiles(StaticFiles):
    """
    Static file mount that serves compiled JavaScript in place of any .coffee file
    it's asked for. Every other path, including .coffee files that don't exist,
    falls through to the regular static file handling.

    ```python
    app.mount(
        "/public/javascripts",
        CoffeeStaticFiles(
            directory="public/javascripts",
            pipeline=pipeline,
            renderer=ErrorPageRenderer(),
            config=config,
        ),
    )
    ```

    Compilation blocks, so it's pushed off to the threadpool.

    """

    def __init__(
        self,
        *,
        pipeline: CompilePipeline,
        renderer: ErrorPageRenderer,
        config: PercolatorConfig,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.pipeline = pipeline
        self.renderer = renderer
        self.config = config

    async def get_response(self, path: str, scope: Scope) -> Response:
        if not path.endswith(SOURCE_SUFFIX) or scope["method"] not in {"GET", "HEAD"}:
            return await super().get_response(path, scope)

        full_path, stat = await run_in_threadpool(self.lookup_path, path)
        if stat is None or not S_ISREG(stat.st_mode):
            return await super().get_response(path, scope)

        return await run_in_threadpool(self.serve_source, Path(full_path), stat)

    def serve_source(self, source_path: Path, stat: stat_result) -> Response:
        source_text: str | None = None
        try:
            source_text = read_source(source_path)
            compiled_text = self.pipeline.get_compiled_output(
                source_path, source_text, stat.st_mtime_ns
            )
        except CompileError as e:
            LOGGER.error(f"Coffee compilation error: {e}")
            return HTMLResponse(
                self.renderer.render_compile_error(e.to_diagnostic(), source_text),
                status_code=500,
            )
        except (PercolatorError, OSError) as e:
            LOGGER.exception(f"Unable to serve {source_path}: {e}")
            return HTMLResponse(
                self.renderer.render_generic_error(
                    f"Unable to serve {source_path.name}"
                ),
                status_code=500,
            )

        headers = {}
        if self.config.is_production:
            headers["Cache-Control"] = f"max-age={self.config.cache_seconds}"

        return Response(
            compiled_text,
            status_code=200,
            media_type=JAVASCRIPT_MEDIA_TYPE,
            headers=headers,
        )
