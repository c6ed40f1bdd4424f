import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from scriptorium.bootstrap import ScriptoriumContext, build_context
from scriptorium.core.context import StoreMessage
from scriptorium.core.exceptions import ScriptoriumError
from scriptorium.core.logging import configure_logging
from scriptorium.core.types import ContentResponse, MediaFile, Record, UpdateOperation
from scriptorium.engine.media_data import media_data
from scriptorium.engine.post_content import post_content
from scriptorium.engine.post_data import post_data

app = typer.Typer(name="scriptorium", help="Scriptorium - post and media record lifecycle")
post_app = typer.Typer(name="post", help="Commands for posts.")
media_app = typer.Typer(name="media", help="Commands for media files.")
app.add_typer(post_app)
app.add_typer(media_app)

console = Console()

T = TypeVar("T")

SiteRoot = typer.Option(None, "--site-root", help="Site root containing .scriptorium.toml.")


def _parse_json(value: str, what: str) -> dict[str, Any]:
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        console.print(f"[bold red]Invalid {what} JSON:[/] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    if not isinstance(parsed, dict):
        console.print(f"[bold red]{what.capitalize()} must be a JSON object[/]")
        raise typer.Exit(code=2)
    return parsed


def _run(site_root: Path | None, action: Callable[[ScriptoriumContext], Awaitable[T]]) -> T:
    """Build the context, run ``action`` and map engine errors to an exit code."""
    try:
        ctx = build_context(site_root)
    except ScriptoriumError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/]")
        raise typer.Exit(code=1) from exc

    configure_logging(ctx.config.application.log_level)
    try:
        return asyncio.run(action(ctx))
    except ScriptoriumError as exc:
        console.print(f"[bold red]{exc.code}:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    finally:
        ctx.close()


def _print_record(record: Record) -> None:
    console.print_json(data=record.to_document())


def _print_response(response: ContentResponse) -> None:
    console.print(f"[bold green]{response.status}[/] {response.json_body.get('success_description', '')}")


@post_app.command("create")
def post_create(
    properties: str = typer.Argument(..., help="JF2 properties as a JSON object."),
    draft: bool = typer.Option(False, "--draft", help="Only create the post as a draft."),
    site_root: Path | None = SiteRoot,
):
    """
    Create a post and write its file.
    """
    props = _parse_json(properties, "properties")

    async def action(ctx: ScriptoriumContext) -> None:
        record = await post_data.create(ctx.application, ctx.publication, props, draft_mode=draft)
        response = await post_content.create(ctx.publication, record)
        _print_response(response)
        _print_record(record)

    _run(site_root, action)


@post_app.command("show")
def post_show(url: str = typer.Argument(..., help="Post URL."), site_root: Path | None = SiteRoot):
    """
    Show the stored record for a post.
    """

    async def action(ctx: ScriptoriumContext) -> None:
        _print_record(await post_data.read(ctx.application, url))

    _run(site_root, action)


@post_app.command("update")
def post_update(
    url: str = typer.Argument(..., help="Post URL."),
    operation: str = typer.Argument(..., help='Update as JSON, e.g. {"replace": {"name": ["New"]}}.'),
    site_root: Path | None = SiteRoot,
):
    """
    Apply add, replace and delete operations to a post.
    """
    try:
        update = UpdateOperation.model_validate(_parse_json(operation, "operation"))
    except ValidationError as exc:
        console.print(f"[bold red]Invalid operation:[/] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    async def action(ctx: ScriptoriumContext) -> None:
        record = await post_data.update(ctx.application, ctx.publication, url, update)
        if record is None:
            console.print(f"No changes to {url}")
            return
        response = await post_content.update(ctx.publication, record, url)
        _print_response(response)
        _print_record(record)

    _run(site_root, action)


@post_app.command("delete")
def post_delete(url: str = typer.Argument(..., help="Post URL."), site_root: Path | None = SiteRoot):
    """
    Delete a post, keeping its properties for a later undelete.
    """

    async def action(ctx: ScriptoriumContext) -> None:
        record = await post_data.delete(ctx.application, ctx.publication, url)
        _print_response(await post_content.delete(ctx.publication, record))

    _run(site_root, action)


@post_app.command("undelete")
def post_undelete(
    url: str = typer.Argument(..., help="Post URL."),
    draft: bool = typer.Option(False, "--draft", help="Only restore the post as a draft."),
    site_root: Path | None = SiteRoot,
):
    """
    Restore a deleted post.
    """

    async def action(ctx: ScriptoriumContext) -> None:
        record = await post_data.undelete(ctx.application, ctx.publication, url, draft_mode=draft)
        _print_response(await post_content.undelete(ctx.publication, record))
        _print_record(record)

    _run(site_root, action)


@media_app.command("upload")
def media_upload(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to upload."),
    content_type: str | None = typer.Option(None, "--content-type", help="MIME type (guessed if omitted)."),
    site_root: Path | None = SiteRoot,
):
    """
    Upload a media file.
    """
    file = MediaFile(filename=path.name, content_type=content_type or "", data=path.read_bytes())

    async def action(ctx: ScriptoriumContext) -> None:
        record = await media_data.create(ctx.application, ctx.publication, file)
        if ctx.publication.store is not None:
            message = ctx.publication.store_message_template(
                StoreMessage(
                    action="upload",
                    post_type=record.properties["media-type"],
                    file_type="media",
                    file_name=record.properties["filename"],
                )
            )
            await ctx.publication.store.create_file(record.path, file.data, message=message)
        console.print(f"[bold green]201[/] {record.url}")
        _print_record(record)

    _run(site_root, action)


@media_app.command("show")
def media_show(url: str = typer.Argument(..., help="Media URL."), site_root: Path | None = SiteRoot):
    """
    Show the stored record for a media file.
    """

    async def action(ctx: ScriptoriumContext) -> None:
        _print_record(await media_data.read(ctx.application, url))

    _run(site_root, action)


@media_app.command("delete")
def media_delete(url: str = typer.Argument(..., help="Media URL."), site_root: Path | None = SiteRoot):
    """
    Remove a media file's record from the index.
    """

    async def action(ctx: ScriptoriumContext) -> None:
        await media_data.delete(ctx.application, url)
        console.print(f"Deleted {url}")

    _run(site_root, action)


if __name__ == "__main__":
    app()
