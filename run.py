"""Entry-point for the Study Portal application."""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import uvicorn
import typer

from study_portal.bootstrap import initialize_app
from study_portal.logging_utils import build_default_handlers, configure_logging, get_log_file_path
from study_portal.services.catalog import JsonCatalogStore
from study_portal.services.lessons import LessonService
from study_portal.ui.console import ConsoleUI
from study_portal.ui.modern import ModernUI
from study_portal.web import create_app_from_config


LOGGER = logging.getLogger("study_portal.run")


cli = typer.Typer(add_completion=False, help="Study Portal management commands")


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000


def _prepare_logging(storage_root: Path) -> None:
    configure_logging(handlers=build_default_handlers(get_log_file_path(storage_root)))


class UIStyle(str, Enum):
    MODERN = "modern"
    CONSOLE = "console"


config_option = typer.Option(
    None,
    "--config",
    "-c",
    exists=True,
    dir_okay=False,
    resolve_path=True,
    envvar="STUDY_PORTAL_CONFIG",
    help="Path to a JSON configuration file (defaults to config/default.json).",
)

style_option = typer.Option(
    UIStyle.MODERN,
    "--style",
    "-s",
    help="Select the overview presentation style.",
    show_default=True,
)


@cli.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Launch the web server when no explicit command is provided."""

    if ctx.invoked_subcommand is None:
        ctx.invoke(serve, host=DEFAULT_HOST, port=DEFAULT_PORT, root_path=None, config_path=None)


def _normalize_root_path(root_path: Optional[str]) -> str:
    if root_path is None:
        return ""
    normalized = root_path.strip()
    if not normalized:
        return ""
    if not normalized.startswith("/"):
        normalized = f"/{normalized}"
    return normalized.rstrip("/")


@cli.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, help="Host interface for the web server"),
    port: int = typer.Option(DEFAULT_PORT, help="Port for the web server"),
    root_path: Optional[str] = typer.Option(
        None,
        help="Prefix the application expects when mounted behind a proxy",
        envvar="STUDY_PORTAL_ROOT_PATH",
    ),
    config_path: Optional[Path] = config_option,
) -> None:
    """Run the FastAPI-powered lesson backend."""

    app_config = initialize_app(config_path)
    _prepare_logging(app_config.storage_root)

    normalized_root = _normalize_root_path(root_path)
    app = create_app_from_config(app_config, root_path=normalized_root)

    config_kwargs = {}
    config_signature = inspect.signature(uvicorn.Config.__init__)
    if "limit_max_request_size" in config_signature.parameters:
        config_kwargs["limit_max_request_size"] = app_config.max_upload_bytes
    else:
        LOGGER.debug(
            "uvicorn.Config does not support 'limit_max_request_size'; "
            "relying on the upload size check only.",
        )

    server_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_config=None,
        root_path=normalized_root,
        **config_kwargs,
    )
    server = uvicorn.Server(server_config)
    app.state.server = server

    browser_host = host if host not in {"", "0.0.0.0", "::"} else "127.0.0.1"
    base_url = f"http://{browser_host}:{port}{normalized_root}"
    LOGGER.info("Student page:  %s/", base_url)
    LOGGER.info("Admin login:   %s/admin-login", base_url)

    server.run()


@cli.command()
def overview(
    style: UIStyle = style_option,
    config_path: Optional[Path] = config_option,
) -> None:
    """Render the stored lessons using the chosen UI style."""

    config = initialize_app(config_path)
    _prepare_logging(config.storage_root)

    service = LessonService(JsonCatalogStore(config.catalog_file))
    if style is UIStyle.MODERN:
        ui = ModernUI(service)
    else:
        ui = ConsoleUI(service, write=typer.echo)
    ui.run()


if __name__ == "__main__":
    cli()
