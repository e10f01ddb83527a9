"""CLI entry point for planets-admin."""

import json
import logging
from pathlib import Path

import click
import yaml

from planets_admin.app import CONTROLLERS, create_app
from planets_admin.config import Settings
from planets_admin.openapi.document import build_openapi_document

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@click.group()
@click.option("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL or INFO).")
@click.pass_context
def main(ctx: click.Context, log_level: str | None):
    """planets-admin: planets CRUD admin service with generated API docs."""
    settings = Settings.from_env()
    logging.basicConfig(level=(log_level or settings.log_level).upper(), format=LOG_FORMAT)
    ctx.obj = settings


@main.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind.")
@click.option("--port", default=8000, type=int, help="Port to listen on.")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
@click.pass_obj
def serve(settings: Settings, host: str, port: int, reload: bool):
    """Run the API server."""
    import uvicorn

    click.echo(f"Starting {settings.api_title} on {host}:{port}...")
    uvicorn.run(
        "planets_admin.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@main.command()
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the OpenAPI document.")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "yaml"]), help="Document format.")
@click.pass_obj
def openapi(settings: Settings, output: Path, fmt: str):
    """Write the OpenAPI document without starting a server."""
    app = create_app(settings=settings)
    doc = build_openapi_document(app, CONTROLLERS, settings)
    click.echo(f"Found {len(doc.get('paths', {}))} paths.")

    if fmt == "yaml":
        text = yaml.safe_dump(doc, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(doc, indent=2, ensure_ascii=False)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"OpenAPI document saved to {output}")
