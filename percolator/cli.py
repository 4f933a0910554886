from pathlib import Path

from click import Path as ClickPath
from click import group, option
from fastapi import FastAPI
from rich.traceback import install as rich_traceback_install
from uvicorn import Config
from uvicorn.server import Server

from percolator.app import AssetController
from percolator.config import PercolatorConfig
from percolator.console import CONSOLE, ERROR_CONSOLE
from percolator.logging import pluralize
from percolator.store import ArtifactStore

ROOT_OPTION = option(
    "--root",
    type=ClickPath(exists=True, file_okay=False, path_type=Path),
    default=Path("."),
    help="Application root containing the asset directory",
)


@group()
def main():
    pass


def handle_precompile(root: Path) -> int:
    """
    Build the `precompiled/` artifact tree for a deployment. Returns the number of
    files that failed to compile.

    """
    rich_traceback_install()

    config = PercolatorConfig(
        APPLICATION_ROOT=root,
        ENVIRONMENT="production",
        PRECOMPILING=True,
    )
    controller = AssetController(config)
    report = controller.startup()
    if report is None:
        return 0

    CONSOLE.print(
        f"[bold green]Compiled {report.count} {pluralize(report.count, 'file', 'files')} into {config.compiled_root}"
    )
    for failed_path in report.failed:
        ERROR_CONSOLE.print(f"[bold red]Failed: {failed_path}")

    return len(report.failed)


@main.command()
@ROOT_OPTION
def precompile(root: Path):
    failures = handle_precompile(root)
    if failures:
        raise SystemExit(1)


@main.command()
@ROOT_OPTION
@option(
    "--precompiled", is_flag=True, help="Purge the precompiled tree instead of tmp"
)
def purge(root: Path, precompiled: bool):
    config = PercolatorConfig(APPLICATION_ROOT=root, USE_PRECOMPILED=precompiled)
    ArtifactStore.from_config(config).purge_all()
    CONSOLE.print(f"[bold]Purged {config.compiled_root}")


@main.command()
@ROOT_OPTION
@option("--port", default=5006, help="Port to run the server on")
@option("--production", is_flag=True, help="Serve with production settings")
def serve(root: Path, port: int, production: bool):
    config = PercolatorConfig(
        APPLICATION_ROOT=root,
        ENVIRONMENT="production" if production else "development",
    )
    controller = AssetController(config)

    app = FastAPI(lifespan=controller.lifespan)
    controller.mount(app)

    CONSOLE.print(
        f"Serving {config.asset_root} at http://127.0.0.1:{port}/public/javascripts"
    )
    Server(Config(app, port=port)).run()
