"""Incremental list coordination: browse, search and category filter modes.

The coordinator owns the observable item list and every piece of state the
UI reads. Each mode change starts a new *generation*: pending debounce
tasks are cancelled, in-flight requests of the old generation are told to
abort through their cancellation token, and every continuation checks that
its captured generation is still current before mutating shared state.

Usage example:
    coordinator = ListCoordinator(catalog=api, connectivity=monitor)
    await coordinator.load_more()
    await coordinator.search("char")
    snapshot = coordinator.snapshot()
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable, Mapping

from ..domain.aliases import ALIASES, resolve_name
from ..domain.search import find_exact, match_names, suggest_names, unique_by_id
from ..exceptions import ErrorKind, NotFoundError, OfflineError, RequestCancelledError, RequestError
from ..infrastructure.cancellation import CancellationToken
from ..observability import get_logger
from ..protocols import CatalogSource, ConnectivityOracle
from ..types import (
    CatalogItemDetail,
    CatalogItemRef,
    CoordinatorSnapshot,
    ListMode,
    PageCursor,
)

logger = get_logger("catalog_browser.application.list_coordinator")

Listener = Callable[[CoordinatorSnapshot], None]
Operation = Callable[[int], Awaitable[None]]


class ListCoordinator:
    """State machine behind an infinitely scrolling, searchable catalog list."""

    def __init__(
        self,
        *,
        catalog: CatalogSource,
        connectivity: ConnectivityOracle,
        batch_size: int = 20,
        debounce_seconds: float = 0.4,
        suggestion_limit: int = 5,
        suggestion_min_chars: int = 2,
        aliases: Mapping[str, str] = ALIASES,
    ) -> None:
        self._catalog = catalog
        self._connectivity = connectivity
        self._batch_size = batch_size
        self._debounce_seconds = debounce_seconds
        self._suggestion_limit = suggestion_limit
        self._suggestion_min_chars = suggestion_min_chars
        self._aliases = aliases

        self._items: list[CatalogItemDetail] = []
        self._seen_ids: set[int] = set()
        self._mode = ListMode.BROWSE
        self._query: str | None = None
        self._active_category: str | None = None
        self._cursor = PageCursor(offset=0, batch_size=batch_size)
        self._queue: deque[CatalogItemRef] = deque()
        self._is_loading = False
        self._is_offline = False
        self._last_error: ErrorKind | None = None
        self._exhausted = False

        self._generation = 0
        self._cancel_token = CancellationToken()
        self._debounce_task: asyncio.Task[None] | None = None
        self._fetch_lock = asyncio.Lock()
        self._listeners: list[Listener] = []

    # -- read side -----------------------------------------------------------

    @property
    def items(self) -> tuple[CatalogItemDetail, ...]:
        return tuple(self._items)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_offline(self) -> bool:
        return self._is_offline

    @property
    def error(self) -> ErrorKind | None:
        return self._last_error

    @property
    def mode(self) -> ListMode:
        return self._mode

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def cursor(self) -> PageCursor:
        return PageCursor(offset=self._cursor.offset, batch_size=self._cursor.batch_size)

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    def snapshot(self) -> CoordinatorSnapshot:
        return CoordinatorSnapshot(
            items=tuple(self._items),
            mode=self._mode,
            query=self._query,
            active_category=self._active_category,
            offset=self._cursor.offset,
            queue_length=len(self._queue),
            is_loading=self._is_loading,
            is_offline=self._is_offline,
            error=self._last_error,
            exhausted=self._exhausted,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with a fresh snapshot after every state change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- operations ----------------------------------------------------------

    async def load_more(self) -> None:
        """Load the next batch for the current mode.

        A no-op while a fetch or a debounced search is pending, or once the
        list is exhausted.
        """
        if self._is_loading or self._exhausted or self._search_pending():
            return
        generation = self._generation
        if self._mode is ListMode.BROWSE:
            await self._run_guarded(generation, self._load_next_page)
        else:
            await self._run_guarded(generation, self._load_next_queued)

    def search(self, text: str) -> asyncio.Task[None]:
        """Debounce and run a search; an empty query returns to browse.

        Returns the scheduled task so callers may await the outcome. A later
        call or any mode change cancels it.
        """
        term = text.strip()
        if not term:
            return asyncio.ensure_future(self.reset())

        generation = self._begin_generation(ListMode.SEARCH, query=term)
        self._debounce_task = asyncio.ensure_future(self._debounced_search(generation, term))
        return self._debounce_task

    async def filter_by_category(self, category: str) -> None:
        """Show items of `category`; selecting the active category again returns to browse."""
        name = category.strip().lower()
        if self._mode is ListMode.CATEGORY_FILTER and self._active_category == name:
            await self.reset()
            return

        generation = self._begin_generation(ListMode.CATEGORY_FILTER, category=name)

        async def load_category(gen: int) -> None:
            refs = await self._catalog.get_by_category(name, cancel_token=self._cancel_token)
            if not self._is_current(gen):
                return
            self._queue.extend(refs)
            await self._load_next_queued(gen)

        await self._run_guarded(generation, load_category)

    async def reset(self) -> None:
        """Return to browse mode at offset 0 and load the first page."""
        generation = self._begin_generation(ListMode.BROWSE)
        await self._run_guarded(generation, self._load_next_page)

    async def fetch_suggestions(self, text: str) -> list[str]:
        """Return up to `suggestion_limit` names containing the alias-resolved text."""
        term = text.strip()
        if len(term) < self._suggestion_min_chars:
            return []
        resolved = resolve_name(term, self._aliases)
        try:
            index = await self._catalog.get_all_names()
        except RequestError as exc:
            logger.debug("Suggestions unavailable for %r: %s", term, exc)
            return []
        return suggest_names(index, resolved, self._suggestion_limit)

    def close(self) -> None:
        """Abort pending work, e.g. when the consuming view goes away."""
        self._generation += 1
        self._cancel_pending()

    # -- internals -----------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _search_pending(self) -> bool:
        return self._debounce_task is not None and not self._debounce_task.done()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _set_loading(self, loading: bool) -> None:
        self._is_loading = loading
        self._notify()

    def _cancel_pending(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None
        self._cancel_token.cancel()
        self._cancel_token = CancellationToken()

    def _begin_generation(
        self,
        mode: ListMode,
        *,
        query: str | None = None,
        category: str | None = None,
    ) -> int:
        self._generation += 1
        self._cancel_pending()
        self._mode = mode
        self._query = query
        self._active_category = category
        self._items.clear()
        self._seen_ids.clear()
        self._queue.clear()
        self._cursor = PageCursor(offset=0, batch_size=self._batch_size)
        self._exhausted = False
        self._last_error = None
        self._is_loading = False
        logger.debug("Generation %s: mode=%s", self._generation, mode)
        self._notify()
        return self._generation

    async def _run_guarded(self, generation: int, operation: Operation) -> None:
        """Run one fetch operation serialised with every other fetch."""
        self._set_loading(True)
        try:
            async with self._fetch_lock:
                if not self._is_current(generation):
                    return
                self._last_error = None
                await self._connectivity.refresh()
                self._is_offline = self._connectivity.is_offline()
                await operation(generation)
        except RequestCancelledError:
            logger.debug("Discarded cancelled fetch from generation %s", generation)
        except RequestError as exc:
            self._record_failure(generation, exc)
        finally:
            if self._is_current(generation):
                self._set_loading(False)

    def _record_failure(self, generation: int, error: RequestError) -> None:
        if not self._is_current(generation):
            logger.debug("Discarded stale failure from generation %s: %s", generation, error)
            return
        self._is_offline = isinstance(error, OfflineError) or self._connectivity.is_offline()
        if isinstance(error, OfflineError) and self._items:
            # Partial offline results are still useful
            logger.info("Offline with %s items loaded; stopping here", len(self._items))
            self._exhausted = True
            return
        logger.warning("Fetch failed (%s): %s", error.kind, error)
        self._last_error = error.kind

    def _append_unique(self, details: list[CatalogItemDetail]) -> None:
        fresh = unique_by_id(self._seen_ids, details)
        self._items.extend(fresh)

    async def _load_next_page(self, generation: int) -> None:
        refs = await self._catalog.get_page(
            self._cursor.batch_size,
            self._cursor.offset,
            cancel_token=self._cancel_token,
        )
        if not self._is_current(generation):
            return
        if not refs:
            self._exhausted = True
            return
        details = await self._catalog.get_many_details(refs, cancel_token=self._cancel_token)
        if not self._is_current(generation):
            return
        self._append_unique(details)
        self._cursor.advance()

    async def _load_next_queued(self, generation: int) -> None:
        if not self._queue:
            self._exhausted = True
            return
        batch = [self._queue.popleft() for _ in range(min(self._batch_size, len(self._queue)))]
        try:
            details = await self._catalog.get_many_details(
                batch, cancel_token=self._cancel_token
            )
        except RequestError:
            if self._is_current(generation):
                self._queue.extendleft(reversed(batch))
            raise
        if not self._is_current(generation):
            return
        self._append_unique(details)
        if not self._queue:
            self._exhausted = True

    async def _debounced_search(self, generation: int, term: str) -> None:
        await asyncio.sleep(self._debounce_seconds)
        if not self._is_current(generation):
            return

        async def run_search(gen: int) -> None:
            await self._execute_search(gen, term)

        await self._run_guarded(generation, run_search)

    async def _execute_search(self, generation: int, term: str) -> None:
        token = self._cancel_token
        self._exhausted = False
        resolved = resolve_name(term, self._aliases)
        index = await self._catalog.get_all_names(cancel_token=token)
        if not self._is_current(generation):
            return

        exact = find_exact(index, resolved)
        if exact is not None:
            refs = await self._variant_refs(exact, token)
        else:
            refs = match_names(index, resolved)
        if not self._is_current(generation):
            return

        if refs:
            self._queue.extend(refs)
            await self._load_next_queued(generation)
            return

        # Numeric ids and unindexed names only resolve through a direct lookup
        try:
            detail = await self._catalog.get_detail(term, cancel_token=token)
        except NotFoundError:
            if self._is_current(generation):
                logger.info("No match for %r", term)
                self._last_error = ErrorKind.NOT_FOUND
                self._exhausted = True
            return
        if not self._is_current(generation):
            return
        self._append_unique([detail])
        self._exhausted = True

    async def _variant_refs(
        self,
        exact: CatalogItemRef,
        token: CancellationToken,
    ) -> list[CatalogItemRef]:
        try:
            variants = await self._catalog.get_variants(exact.name, cancel_token=token)
        except NotFoundError:
            return [exact]
        if not variants:
            return [exact]
        # Base form first even if the species lists it elsewhere
        rest = [ref for ref in variants if ref.name != exact.name]
        return [exact, *rest]
