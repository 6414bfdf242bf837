from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import typer

from popcorn import __version__
from popcorn.clients import OMDbClient
from popcorn.config import Settings, SettingsError, SettingsLoadResult, load_settings
from popcorn.controllers import (
    ESCAPE_KEY,
    DetailController,
    DetailState,
    SearchController,
    SearchState,
)
from popcorn.services import WatchedListStore, format_summary
from popcorn.session import BrowserSession

app = typer.Typer(
    add_completion=False,
    help="Search the OMDb catalog and keep a rated list of the movies you watched.",
)

BROWSE_HELP = """\
Type at least 3 characters to search. Commands:
  :open N|ID   open result N (1-based) or an IMDb id; again to close it
  :rate N      rate the open movie (1 up to the configured maximum)
  :add         add the open movie to your watched list
  :esc         press Escape (closes the open movie)
  :watched     list watched movies
  :delete ID   remove a movie from the watched list
  :summary     watched list statistics
  :quit        leave"""


@app.callback()
def _cli_entry(ctx: typer.Context) -> None:
    """Entrypoint for the popcorn CLI."""
    ctx.obj = {} if ctx.obj is None else ctx.obj


@app.command()
def version() -> None:
    """Print the installed version."""
    typer.echo(__version__)


@app.command()
def config(show_sources: bool = typer.Option(False, help="Display where settings came from.")) -> None:
    """Describe configuration expectations."""
    load_result = _safe_load_settings(load_even_if_missing=True)
    if load_result is None:
        raise typer.Exit(code=1)

    settings = load_result.settings
    values: dict[str, Any] = {
        "omdb_api_key": "<set>" if settings.omdb_api_key else "<unset>",
        "omdb_base_url": settings.omdb_base_url,
        "request_timeout": settings.request_timeout,
        "retry_attempts": settings.retry_attempts,
        "min_query_length": settings.min_query_length,
        "default_title": settings.default_title,
        "max_rating": settings.max_rating,
    }

    for key, value in values.items():
        typer.echo(f"{key}: {value}")

    if show_sources:
        source_hint = load_result.source_path or "<env/.env>"
        typer.echo(f"resolved_from: {source_hint}")
        typer.echo(
            "Set OMDB_API_KEY, or configure ~/.config/popcorn/config.toml for persistent settings.",
        )


@app.command()
def search(
    query: str = typer.Argument(..., help="Title to search for (at least 3 characters)."),
    json_output: bool = typer.Option(False, "--json/--no-json", help="Output as JSON."),
    debug: bool = typer.Option(False, help="Enable debug logging."),
) -> None:
    """Search the catalog by title."""
    if debug:
        _setup_logging(logging.DEBUG)

    settings = _require_settings()
    state = asyncio.run(_run_search(settings, query))

    if state.error:
        if json_output:
            _output_json_error("search_failed", state.error)
        else:
            typer.secho(f"⛔️ {state.error}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(
            json.dumps(
                {"success": True, "results": [r.model_dump() for r in state.results]},
                indent=2,
            )
        )
        return
    _render_search_state(state)


@app.command()
def show(
    imdb_id: str = typer.Argument(..., help="IMDb id, e.g. tt0372784."),
    json_output: bool = typer.Option(False, "--json/--no-json", help="Output as JSON."),
    debug: bool = typer.Option(False, help="Enable debug logging."),
) -> None:
    """Show the full record for one movie."""
    if debug:
        _setup_logging(logging.DEBUG)

    settings = _require_settings()
    state = asyncio.run(_run_show(settings, imdb_id))

    if state.error or state.detail is None:
        message = state.error or f"No details for {imdb_id}"
        if json_output:
            _output_json_error("detail_failed", message)
        else:
            typer.secho(f"⛔️ {message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(json.dumps({"success": True, "movie": state.detail.model_dump()}, indent=2))
        return
    _render_detail_state(state, already_watched=False)


@app.command()
def browse(debug: bool = typer.Option(False, help="Enable debug logging.")) -> None:
    """Interactive search / detail / watched-list session."""
    if debug:
        _setup_logging(logging.DEBUG)

    settings = _require_settings()
    asyncio.run(_run_browse(settings))


def main() -> None:
    """Expose Typer app for the console script."""
    app()


def _safe_load_settings(load_even_if_missing: bool = False) -> SettingsLoadResult | None:
    try:
        return load_settings()
    except SettingsError as exc:
        if load_even_if_missing:
            typer.secho(
                f"Warning: configuration incomplete – {exc}",
                fg=typer.colors.YELLOW,
            )
            return SettingsLoadResult(settings=Settings(), source_path=None)
        typer.secho(str(exc), fg=typer.colors.RED)
        return None


def _require_settings() -> Settings:
    load_result = _safe_load_settings()
    if load_result is None:
        raise typer.Exit(code=1)

    settings = load_result.settings
    try:
        settings.require_omdb()
    except SettingsError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    return settings


def _build_client(settings: Settings) -> OMDbClient:
    assert settings.omdb_api_key is not None
    return OMDbClient(
        settings.omdb_api_key,
        base_url=settings.omdb_base_url,
        timeout=settings.request_timeout,
        retry_attempts=settings.retry_attempts,
    )


def _setup_logging(level: int = logging.INFO) -> None:
    """Configure logging for debug mode."""
    logging.basicConfig(
        format="%(message)s",
        level=level,
        force=True,
    )


async def _run_search(settings: Settings, query: str) -> SearchState:
    async with _build_client(settings) as client:
        async with SearchController(client, min_query_length=settings.min_query_length) as controller:
            controller.set_query(query)
            await controller.wait_idle()
            return controller.state


async def _run_show(settings: Settings, imdb_id: str) -> DetailState:
    async with _build_client(settings) as client:
        async with DetailController(
            client, WatchedListStore(), max_rating=settings.max_rating
        ) as controller:
            controller.select(imdb_id)
            await controller.wait_idle()
            return controller.state


async def _run_browse(settings: Settings) -> None:
    async with _build_client(settings) as client:
        async with BrowserSession.from_settings(client, settings) as session:
            typer.echo(BROWSE_HELP)
            while True:
                try:
                    line = typer.prompt(f"[{session.title.title}]", default="", show_default=False)
                except typer.Abort:
                    break
                if not _handle_browse_line(session, line.strip()):
                    break
                await session.wait_idle()
                _render_session(session)


def _handle_browse_line(session: BrowserSession, line: str) -> bool:
    """Apply one line of input; returns False when the user wants to leave."""
    if not line.startswith(":"):
        session.set_query(line)
        return True

    command, _, argument = line[1:].partition(" ")
    argument = argument.strip()

    if command in {"quit", "q"}:
        return False
    if command == "open":
        target = _resolve_target(session, argument)
        if target is None:
            typer.secho(f"No result {argument!r}", fg=typer.colors.YELLOW)
        else:
            session.select(target)
    elif command == "rate":
        try:
            session.rate(int(argument))
        except ValueError as exc:
            typer.secho(str(exc), fg=typer.colors.YELLOW)
    elif command == "add":
        entry = session.confirm()
        if entry is None:
            typer.secho("Pick a rating first (or the movie is already watched).", fg=typer.colors.YELLOW)
        else:
            typer.secho(
                f"Added {entry.title} ({entry.user_rating}/{session.detail.max_rating})",
                fg=typer.colors.GREEN,
            )
    elif command == "esc":
        session.press_key(ESCAPE_KEY)
    elif command == "watched":
        _render_watched(session.store)
    elif command == "delete":
        if not session.delete_watched(argument):
            typer.secho(f"{argument} is not in your watched list", fg=typer.colors.YELLOW)
    elif command == "summary":
        typer.echo(format_summary(session.summary()))
    else:
        typer.echo(BROWSE_HELP)
    return True


def _resolve_target(session: BrowserSession, argument: str) -> str | None:
    if argument.isdigit():
        index = int(argument) - 1
        results = session.search.state.results
        return results[index].imdb_id if 0 <= index < len(results) else None
    return argument or None


def _render_session(session: BrowserSession) -> None:
    detail_state = session.detail.state
    if detail_state.selected_id is not None:
        _render_detail_state(detail_state, already_watched=session.detail.already_watched)
    else:
        _render_search_state(session.search.state)


def _render_search_state(state: SearchState) -> None:
    if state.is_loading:
        typer.echo("Loading...")
        return
    if state.error:
        typer.secho(f"⛔️ {state.error}", fg=typer.colors.RED)
        return
    typer.secho(f"Found {len(state.results)} results", fg=typer.colors.CYAN)
    for idx, result in enumerate(state.results, start=1):
        typer.echo(f"{idx}. {result.title} ({result.year}) • {result.imdb_id}")


def _render_detail_state(state: DetailState, *, already_watched: bool) -> None:
    if state.is_loading:
        typer.echo("Loading...")
        return
    if state.error:
        typer.secho(f"⛔️ {state.error}", fg=typer.colors.RED)
        return
    detail = state.detail
    if detail is None:
        return
    typer.secho(detail.title, bold=True)
    typer.echo(f"   {detail.released or 'N/A'} - {detail.runtime or 'N/A'}")
    if detail.genre:
        typer.echo(f"   {detail.genre}")
    typer.echo(f"   ⭐️ {detail.imdb_rating or 'N/A'} IMDb Rating")
    if already_watched:
        typer.secho("   You already watched the movie", fg=typer.colors.YELLOW)
    elif state.user_rating:
        typer.echo(f"   Your rating: {state.user_rating} (:add to save)")
    if detail.plot:
        typer.echo(f"   {detail.plot}")
    if detail.actors:
        typer.echo(f"   Starring {detail.actors}")
    if detail.director:
        typer.echo(f"   Directed by {detail.director}")


def _render_watched(store: WatchedListStore) -> None:
    if not len(store):
        typer.secho("Your watched list is empty.", fg=typer.colors.YELLOW)
        return
    for entry in store:
        runtime = f"{entry.runtime} min" if entry.runtime is not None else "N/A"
        imdb = entry.imdb_rating if entry.imdb_rating is not None else "N/A"
        typer.echo(
            f"- {entry.title} ({entry.imdb_id}) ⭐️ {imdb} 🌟 {entry.user_rating} ⏳ {runtime}"
        )


def _output_json_error(error_code: str, message: str) -> None:
    """Output a JSON error message."""
    output: dict[str, Any] = {
        "success": False,
        "error": error_code,
        "message": message,
    }
    typer.echo(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
