"""CLI for the catalog browser core.

Commands:
- browse: Load one or more pages of the catalog
- search: Resolve a query through aliases, variants and substrings
- category: Show items tagged with a category
- suggest: Print name suggestions for partial input
- detail: Show one item in full
- favorite: Toggle an item in the favourites list
- favorites: List (or clear) favourites
- cache-clear: Drop every cached response
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Protocol

import typer
from rich import print as rprint
from rich.markup import escape

from . import __version__
from .application.list_coordinator import ListCoordinator
from .config import CatalogConfig
from .config_file import load_catalog_config_file
from .domain.error_messages import describe_error
from .domain.favorites import FavoritesStore
from .exceptions import CatalogError, ErrorKind, RequestError, StorageFullError
from .observability import set_log_level
from .protocols import CacheStore, CatalogSource, ConnectivityOracle
from .types import CatalogItemDetail


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: CatalogConfig) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    catalog: CatalogSource
    cache: CacheStore
    connectivity: ConnectivityOracle
    favorites: FavoritesStore


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: CatalogConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self, *, config: CatalogConfig | None = None) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=config or self.config)

    def build_coordinator(self, deps: CliDependencies) -> ListCoordinator:
        # One-shot commands have nothing to debounce
        return ListCoordinator(
            catalog=deps.catalog,
            connectivity=deps.connectivity,
            batch_size=self.config.page_size,
            debounce_seconds=0.0,
            suggestion_limit=self.config.suggestion_limit,
        )


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the catalog-browser entry point.")


class InvalidConfigError(typer.BadParameter):
    """Raised when the config file or environment cannot be loaded."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _print_version(value: bool) -> None:
    if value:
        rprint(f"catalog-browser {__version__}")
        raise typer.Exit()


def _render_items(items: Iterable[CatalogItemDetail]) -> int:
    count = 0
    for item in items:
        tags = ", ".join(item.category_tags)
        rprint(f"  [bold]#{item.id:>4}[/bold] {item.name} [dim]({tags})[/dim]")
        count += 1
    return count


def _render_detail(item: CatalogItemDetail) -> None:
    rprint(f"[bold]#{item.id} {item.name}[/bold]")
    rprint(f"  Categories: {', '.join(item.category_tags)}")
    rprint(f"  Mass: {item.mass}  Size: {item.size}")
    rprint(f"  Traits: {', '.join(item.traits) or '-'}")
    for stat in item.stat_block:
        rprint(f"    {stat.label:<16} {stat.value:>3}")
    if item.image_ref:
        rprint(f"  Image: {item.image_ref}")


def _fail(kind: ErrorKind | None) -> None:
    message = describe_error(kind)
    if message is None:
        return
    rprint(f"[red]✗ {message.title}:[/red] {message.message}")
    raise typer.Exit(code=1)


def _fail_storage(exc: Exception) -> None:
    rprint(f"[red]✗ Could not save favourites:[/red] {escape(str(exc))}")
    raise typer.Exit(code=1)


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Catalog browser: browse, search and filter a remote catalog from the terminal.",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        config_path: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="TOML config file overriding environment values",
            ),
        ] = None,
        base_url: Annotated[
            str | None,
            typer.Option("--base-url", help="Catalog API base URL"),
        ] = None,
        cache_dir: Annotated[
            str | None,
            typer.Option("--cache-dir", help="Directory for cached responses"),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)"),
        ] = None,
        version: Annotated[
            bool,
            typer.Option(
                "--version",
                callback=_print_version,
                is_eager=True,
                help="Show the version and exit",
            ),
        ] = False,
    ) -> None:
        """Initialise CLI context."""
        _ = version
        try:
            config = CatalogConfig.from_env()
            if config_path is not None:
                config = config.with_file_overrides(load_catalog_config_file(path=config_path))
            config = config.with_overrides(
                base_url=base_url,
                cache_dir=cache_dir,
                log_level=log_level,
            )
            set_log_level(config.log_level)
        except (CatalogError, ValueError) as exc:
            raise InvalidConfigError(str(exc)) from exc
        ctx.obj = CliContext(config=config, deps_builder=deps_builder)

    @app.command()
    def browse(
        ctx: typer.Context,
        pages: Annotated[
            int,
            typer.Option("--pages", "-p", min=1, help="Number of pages to load"),
        ] = 1,
    ) -> None:
        """Load the first pages of the catalog in order."""
        state = _get_context(ctx)
        deps = state.build_dependencies()

        async def run() -> ListCoordinator:
            coordinator = state.build_coordinator(deps)
            for _ in range(pages):
                await coordinator.load_more()
                if coordinator.error is not None or coordinator.exhausted:
                    break
            return coordinator

        coordinator = asyncio.run(run())
        count = _render_items(coordinator.items)
        _fail(coordinator.error)
        rprint(f"[green]✓ Loaded {count} items[/green] (next offset {coordinator.cursor.offset})")

    @app.command()
    def search(
        ctx: typer.Context,
        text: Annotated[str, typer.Argument(help="Name, alias, id or partial name")],
    ) -> None:
        """Search by alias, exact name with variants, or substring."""
        state = _get_context(ctx)
        deps = state.build_dependencies()

        async def run() -> ListCoordinator:
            coordinator = state.build_coordinator(deps)
            await coordinator.search(text)
            while not coordinator.exhausted and coordinator.error is None:
                await coordinator.load_more()
            return coordinator

        coordinator = asyncio.run(run())
        count = _render_items(coordinator.items)
        _fail(coordinator.error)
        rprint(f"[green]✓ {count} matches for[/green] {text!r}")

    @app.command()
    def category(
        ctx: typer.Context,
        name: Annotated[str, typer.Argument(help="Category name, e.g. fire")],
        pages: Annotated[
            int,
            typer.Option("--pages", "-p", min=1, help="Number of batches to load"),
        ] = 1,
    ) -> None:
        """Show items tagged with a category."""
        state = _get_context(ctx)
        deps = state.build_dependencies()

        async def run() -> ListCoordinator:
            coordinator = state.build_coordinator(deps)
            await coordinator.filter_by_category(name)
            for _ in range(pages - 1):
                if coordinator.error is not None or coordinator.exhausted:
                    break
                await coordinator.load_more()
            return coordinator

        coordinator = asyncio.run(run())
        count = _render_items(coordinator.items)
        _fail(coordinator.error)
        queued = coordinator.queue_length
        rprint(f"[green]✓ {count} items in[/green] {name} ({queued} more queued)")

    @app.command()
    def suggest(
        ctx: typer.Context,
        text: Annotated[str, typer.Argument(help="Partial name or alias")],
    ) -> None:
        """Print name suggestions for partial input."""
        state = _get_context(ctx)
        deps = state.build_dependencies()

        async def run() -> list[str]:
            coordinator = state.build_coordinator(deps)
            return await coordinator.fetch_suggestions(text)

        for name in asyncio.run(run()):
            rprint(f"  {name}")

    @app.command()
    def detail(
        ctx: typer.Context,
        name: Annotated[str, typer.Argument(help="Item name or numeric id")],
    ) -> None:
        """Show one item in full."""
        state = _get_context(ctx)
        deps = state.build_dependencies()
        try:
            item = asyncio.run(deps.catalog.get_detail(name))
        except RequestError as exc:
            _fail(exc.kind)
            return
        _render_detail(item)
        if deps.favorites.is_favorite(item.id):
            rprint("  [yellow]★ favourite[/yellow]")

    @app.command()
    def favorite(
        ctx: typer.Context,
        name: Annotated[str, typer.Argument(help="Item name or numeric id")],
    ) -> None:
        """Add an item to favourites, or remove it if already present."""
        state = _get_context(ctx)
        deps = state.build_dependencies()
        try:
            item = asyncio.run(deps.catalog.get_detail(name))
        except RequestError as exc:
            _fail(exc.kind)
            return
        try:
            added = deps.favorites.toggle(item)
        except (StorageFullError, OSError) as exc:
            _fail_storage(exc)
            return
        if added:
            rprint(f"[green]✓ Added[/green] {item.name} to favourites")
        else:
            rprint(f"[yellow]✓ Removed[/yellow] {item.name} from favourites")

    @app.command()
    def favorites(
        ctx: typer.Context,
        clear: Annotated[
            bool,
            typer.Option("--clear", help="Remove every favourite"),
        ] = False,
    ) -> None:
        """List favourites in the order they were added."""
        state = _get_context(ctx)
        deps = state.build_dependencies()
        if clear:
            try:
                deps.favorites.clear()
            except OSError as exc:
                _fail_storage(exc)
                return
            rprint("[green]✓ Favourites cleared[/green]")
            return
        if _render_items(deps.favorites.items) == 0:
            rprint("No favourites yet.")

    @app.command(name="cache-clear")
    def cache_clear(ctx: typer.Context) -> None:
        """Drop every cached response."""
        state = _get_context(ctx)
        deps = state.build_dependencies()
        asyncio.run(deps.cache.clear())
        rprint("[green]✓ Cache cleared[/green]")

    return app
