"""Tests for the list coordinator state machine."""

from __future__ import annotations

import asyncio

import pytest

from catalog_browser.application.list_coordinator import ListCoordinator
from catalog_browser.exceptions import ErrorKind, OfflineError, ServerError
from catalog_browser.types import CoordinatorSnapshot, ListMode
from tests.fakes import FakeCatalog, FakeConnectivity
from tests.support.catalog_items import make_detail, make_ref

BROWSE_NAMES = [f"mon{i:02d}" for i in range(1, 46)]

SEARCH_IDS = {
    "bulbasaur": 1,
    "charizard": 6,
    "pikachu": 25,
    "raichu": 26,
    "pichu": 172,
    "charizard-mega-x": 10034,
    "pikachu-rock-star": 10080,
    "pikachu-belle": 10081,
    "pikachu-pop-star": 10082,
    "pikachu-phd": 10083,
    "charizard-gmax": 10196,
}


def _browse_catalog(names: list[str] = BROWSE_NAMES) -> FakeCatalog:
    return FakeCatalog(
        index=[make_ref(name) for name in names],
        details={name: make_detail(i, name) for i, name in enumerate(names, start=1)},
    )


def _search_catalog() -> FakeCatalog:
    return FakeCatalog(
        index=[make_ref(name) for name in SEARCH_IDS],
        details={name: make_detail(item_id, name) for name, item_id in SEARCH_IDS.items()},
        variants={
            "charizard": [
                make_ref("charizard-mega-x"),
                make_ref("charizard"),
                make_ref("charizard-gmax"),
            ]
        },
        categories={
            "fire": [
                make_ref("charizard"),
                make_ref("charizard-mega-x"),
                make_ref("charizard-gmax"),
            ],
            "electric": [make_ref("pikachu"), make_ref("raichu")],
        },
    )


def _coordinator(
    catalog: FakeCatalog,
    *,
    connectivity: FakeConnectivity | None = None,
    batch_size: int = 20,
    debounce_seconds: float = 0.0,
) -> ListCoordinator:
    return ListCoordinator(
        catalog=catalog,
        connectivity=connectivity or FakeConnectivity(),
        batch_size=batch_size,
        debounce_seconds=debounce_seconds,
    )


def _names(coordinator: ListCoordinator) -> list[str]:
    return [item.name for item in coordinator.items]


class TestBrowse:
    """Tests for paged browsing."""

    @pytest.mark.asyncio
    async def test_first_load_fetches_page_zero(self) -> None:
        catalog = _browse_catalog()
        coordinator = _coordinator(catalog)

        await coordinator.load_more()

        assert _names(coordinator) == BROWSE_NAMES[:20]
        assert coordinator.cursor.offset == 20
        assert catalog.calls_to("get_page") == [(20, 0)]
        assert coordinator.mode is ListMode.BROWSE
        assert coordinator.is_loading is False

    @pytest.mark.asyncio
    async def test_offset_advances_by_batch_size_per_page(self) -> None:
        catalog = _browse_catalog()
        coordinator = _coordinator(catalog)

        await coordinator.load_more()
        await coordinator.load_more()

        assert catalog.calls_to("get_page") == [(20, 0), (20, 20)]
        assert coordinator.cursor.offset == 40
        assert len(coordinator.items) == 40

    @pytest.mark.asyncio
    async def test_connectivity_is_refreshed_before_each_fetch(self) -> None:
        connectivity = FakeConnectivity()
        coordinator = _coordinator(_browse_catalog(), connectivity=connectivity)

        await coordinator.load_more()
        await coordinator.load_more()

        assert connectivity.refreshes == 2
        assert coordinator.is_offline is False

    @pytest.mark.asyncio
    async def test_items_are_unique_by_id(self) -> None:
        catalog = _browse_catalog(["a", "b", "a-alias", "c"])
        catalog.details["a-alias"] = make_detail(1, "a")
        coordinator = _coordinator(catalog, batch_size=2)

        await coordinator.load_more()
        await coordinator.load_more()

        assert [item.id for item in coordinator.items] == [1, 2, 4]
        assert coordinator.cursor.offset == 4

    @pytest.mark.asyncio
    async def test_empty_page_exhausts_the_list(self) -> None:
        catalog = _browse_catalog(BROWSE_NAMES[:20])
        coordinator = _coordinator(catalog)

        await coordinator.load_more()
        await coordinator.load_more()
        await coordinator.load_more()

        assert coordinator.exhausted is True
        assert coordinator.cursor.offset == 20
        assert catalog.calls_to("get_page") == [(20, 0), (20, 20)]

    @pytest.mark.asyncio
    async def test_partial_batch_failure_keeps_successful_items(self) -> None:
        catalog = _browse_catalog()
        del catalog.details["mon03"]
        del catalog.details["mon07"]
        coordinator = _coordinator(catalog)

        await coordinator.load_more()

        assert len(coordinator.items) == 18
        assert len({item.id for item in coordinator.items}) == 18
        assert coordinator.error is None
        assert coordinator.cursor.offset == 20

    @pytest.mark.asyncio
    async def test_second_call_while_loading_is_a_no_op(self) -> None:
        catalog = _browse_catalog()
        catalog.gate = asyncio.Event()
        coordinator = _coordinator(catalog)

        first = asyncio.ensure_future(coordinator.load_more())
        await asyncio.sleep(0.01)
        assert coordinator.is_loading is True

        await coordinator.load_more()
        assert coordinator.cursor.offset == 0

        catalog.gate.set()
        await first

        assert catalog.calls_to("get_page") == [(20, 0)]
        assert coordinator.cursor.offset == 20
        assert len(coordinator.items) == 20

    @pytest.mark.asyncio
    async def test_failure_surfaces_kind_and_keeps_items(self) -> None:
        catalog = _browse_catalog()
        coordinator = _coordinator(catalog)
        await coordinator.load_more()

        catalog.page_error = ServerError("fake://catalog/page", 503)
        await coordinator.load_more()

        assert coordinator.error is ErrorKind.SERVER_ERROR
        assert len(coordinator.items) == 20
        assert coordinator.cursor.offset == 20
        assert coordinator.is_loading is False

    @pytest.mark.asyncio
    async def test_successful_retry_clears_the_error(self) -> None:
        catalog = _browse_catalog()
        catalog.page_error = ServerError("fake://catalog/page", 500)
        coordinator = _coordinator(catalog)
        await coordinator.load_more()
        assert coordinator.error is ErrorKind.SERVER_ERROR

        catalog.page_error = None
        await coordinator.load_more()

        assert coordinator.error is None
        assert len(coordinator.items) == 20

    @pytest.mark.asyncio
    async def test_going_offline_with_items_is_a_soft_stop(self) -> None:
        catalog = _browse_catalog()
        connectivity = FakeConnectivity()
        coordinator = _coordinator(catalog, connectivity=connectivity)
        await coordinator.load_more()

        connectivity.offline = True
        catalog.page_error = OfflineError("fake://catalog/page")
        await coordinator.load_more()

        assert coordinator.exhausted is True
        assert coordinator.error is None
        assert coordinator.is_offline is True
        assert len(coordinator.items) == 20

    @pytest.mark.asyncio
    async def test_offline_without_items_is_an_error(self) -> None:
        catalog = _browse_catalog()
        catalog.page_error = OfflineError("fake://catalog/page")
        coordinator = _coordinator(catalog, connectivity=FakeConnectivity(offline=True))

        await coordinator.load_more()

        assert coordinator.error is ErrorKind.OFFLINE
        assert coordinator.exhausted is False
        assert coordinator.items == ()


class TestSearch:
    """Tests for alias, exact, substring and direct-fetch search."""

    @pytest.mark.asyncio
    async def test_substring_matches_are_queued_and_first_batch_loaded(self) -> None:
        coordinator = _coordinator(_search_catalog(), batch_size=2)

        await coordinator.search("pika")

        assert coordinator.mode is ListMode.SEARCH
        assert _names(coordinator) == ["pikachu", "pikachu-rock-star"]
        assert coordinator.queue_length == 3
        assert coordinator.exhausted is False

    @pytest.mark.asyncio
    async def test_load_more_drains_the_queue(self) -> None:
        coordinator = _coordinator(_search_catalog(), batch_size=2)
        await coordinator.search("pika")

        await coordinator.load_more()
        await coordinator.load_more()
        await coordinator.load_more()

        assert len(coordinator.items) == 5
        assert coordinator.queue_length == 0
        assert coordinator.exhausted is True

    @pytest.mark.asyncio
    async def test_alias_resolves_to_exact_match_with_variants(self) -> None:
        catalog = _search_catalog()
        coordinator = _coordinator(catalog)

        await coordinator.search("Dracaufeu")

        assert _names(coordinator) == ["charizard", "charizard-mega-x", "charizard-gmax"]
        assert catalog.calls_to("get_variants") == ["charizard"]
        assert coordinator.exhausted is True

    @pytest.mark.asyncio
    async def test_exact_match_without_species_loads_only_itself(self) -> None:
        coordinator = _coordinator(_search_catalog())

        await coordinator.search("Bulbasaur")

        assert _names(coordinator) == ["bulbasaur"]
        assert coordinator.error is None

    @pytest.mark.asyncio
    async def test_falls_back_to_direct_fetch(self) -> None:
        catalog = _search_catalog()
        coordinator = _coordinator(catalog)

        await coordinator.search("25")

        assert _names(coordinator) == ["pikachu"]
        assert catalog.calls_to("get_detail")[-1] == "25"
        assert coordinator.error is None

    @pytest.mark.asyncio
    async def test_reports_not_found_when_nothing_resolves(self) -> None:
        coordinator = _coordinator(_search_catalog())

        await coordinator.search("missingno")

        assert coordinator.error is ErrorKind.NOT_FOUND
        assert coordinator.items == ()
        assert coordinator.exhausted is True

    @pytest.mark.asyncio
    async def test_empty_query_returns_to_browse(self) -> None:
        catalog = _search_catalog()
        coordinator = _coordinator(catalog)
        await coordinator.search("pika")

        await coordinator.search("   ")

        assert coordinator.mode is ListMode.BROWSE
        assert catalog.calls_to("get_page") == [(20, 0)]
        assert len(coordinator.items) == len(SEARCH_IDS)

    @pytest.mark.asyncio
    async def test_only_the_last_debounced_search_runs(self) -> None:
        catalog = _search_catalog()
        coordinator = _coordinator(catalog, debounce_seconds=0.05)

        superseded = coordinator.search("pika")
        latest = coordinator.search("bulbasaur")
        await latest

        with pytest.raises(asyncio.CancelledError):
            await superseded
        assert catalog.calls_to("get_all_names") == [None]
        assert _names(coordinator) == ["bulbasaur"]
        assert coordinator.snapshot().query == "bulbasaur"

    @pytest.mark.asyncio
    async def test_load_more_waits_for_a_pending_search(self) -> None:
        names = [f"pika{i:02d}" for i in range(30)]
        catalog = _browse_catalog(names)
        coordinator = _coordinator(catalog, batch_size=10, debounce_seconds=0.05)

        pending = coordinator.search("pika")
        await coordinator.load_more()
        assert coordinator.exhausted is False
        assert catalog.calls_to("get_many_details") == []

        await pending
        assert len(coordinator.items) == 10
        assert coordinator.queue_length == 20

        await coordinator.load_more()
        await coordinator.load_more()

        assert _names(coordinator) == names
        assert coordinator.exhausted is True

    @pytest.mark.asyncio
    async def test_index_failure_surfaces_error(self) -> None:
        catalog = _search_catalog()
        catalog.names_error = ServerError("fake://catalog/names", 502)
        coordinator = _coordinator(catalog)

        await coordinator.search("pika")

        assert coordinator.error is ErrorKind.SERVER_ERROR
        assert coordinator.items == ()


class TestStaleResults:
    """Tests for discarding work from superseded generations."""

    @pytest.mark.asyncio
    async def test_stale_page_is_discarded_after_mode_change(self) -> None:
        catalog = _search_catalog()
        catalog.gate = asyncio.Event()
        catalog.honour_cancellation = False
        coordinator = _coordinator(catalog)

        stale = asyncio.ensure_future(coordinator.load_more())
        await asyncio.sleep(0.01)
        current = coordinator.search("bulbasaur")
        await asyncio.sleep(0.01)
        catalog.gate.set()
        await stale
        await current

        assert coordinator.mode is ListMode.SEARCH
        assert _names(coordinator) == ["bulbasaur"]
        assert coordinator.cursor.offset == 0
        assert coordinator.is_loading is False

    @pytest.mark.asyncio
    async def test_cancelled_fetch_is_not_reported(self) -> None:
        catalog = _search_catalog()
        catalog.gate = asyncio.Event()
        coordinator = _coordinator(catalog)

        stale = asyncio.ensure_future(coordinator.load_more())
        await asyncio.sleep(0.01)
        current = asyncio.ensure_future(coordinator.filter_by_category("electric"))
        await asyncio.sleep(0.01)
        catalog.gate.set()
        await stale
        await current

        assert coordinator.error is None
        assert coordinator.mode is ListMode.CATEGORY_FILTER
        assert _names(coordinator) == ["pikachu", "raichu"]


class TestCategoryFilter:
    """Tests for category filtering and toggling."""

    @pytest.mark.asyncio
    async def test_loads_first_batch_immediately(self) -> None:
        coordinator = _coordinator(_search_catalog(), batch_size=2)

        await coordinator.filter_by_category("Fire")

        assert coordinator.mode is ListMode.CATEGORY_FILTER
        assert coordinator.snapshot().active_category == "fire"
        assert _names(coordinator) == ["charizard", "charizard-mega-x"]
        assert coordinator.queue_length == 1

    @pytest.mark.asyncio
    async def test_same_category_toggles_back_to_browse(self) -> None:
        catalog = _search_catalog()
        coordinator = _coordinator(catalog)
        await coordinator.filter_by_category("fire")

        await coordinator.filter_by_category("fire")

        assert coordinator.mode is ListMode.BROWSE
        assert coordinator.snapshot().active_category is None
        assert catalog.calls_to("get_page") == [(20, 0)]
        assert len(coordinator.items) == len(SEARCH_IDS)
        assert coordinator.cursor.offset == 20

    @pytest.mark.asyncio
    async def test_switching_category_replaces_items(self) -> None:
        coordinator = _coordinator(_search_catalog())
        await coordinator.filter_by_category("fire")

        await coordinator.filter_by_category("electric")

        assert _names(coordinator) == ["pikachu", "raichu"]
        assert coordinator.exhausted is True

    @pytest.mark.asyncio
    async def test_unknown_category_is_not_found(self) -> None:
        coordinator = _coordinator(_search_catalog())

        await coordinator.filter_by_category("shadow")

        assert coordinator.error is ErrorKind.NOT_FOUND
        assert coordinator.items == ()

    @pytest.mark.asyncio
    async def test_failed_batch_is_requeued(self) -> None:
        catalog = _search_catalog()
        coordinator = _coordinator(catalog, batch_size=1)
        await coordinator.filter_by_category("fire")
        assert coordinator.queue_length == 2

        catalog.batch_error = ServerError("fake://catalog/details", 500)
        await coordinator.load_more()

        assert coordinator.error is ErrorKind.SERVER_ERROR
        assert coordinator.queue_length == 2
        assert _names(coordinator) == ["charizard"]

        catalog.batch_error = None
        await coordinator.load_more()

        assert _names(coordinator) == ["charizard", "charizard-mega-x"]
        assert coordinator.error is None


class TestSuggestionsAndObservers:
    """Tests for suggestions, snapshots and lifecycle."""

    @pytest.mark.asyncio
    async def test_suggestions_are_limited_and_prefix_first(self) -> None:
        coordinator = ListCoordinator(
            catalog=_search_catalog(),
            connectivity=FakeConnectivity(),
            suggestion_limit=3,
        )

        assert await coordinator.fetch_suggestions("chu") == ["pikachu", "raichu", "pichu"]
        assert await coordinator.fetch_suggestions("pi") == [
            "pikachu",
            "pichu",
            "pikachu-rock-star",
        ]

    @pytest.mark.asyncio
    async def test_suggestions_resolve_aliases(self) -> None:
        coordinator = _coordinator(_search_catalog())

        assert await coordinator.fetch_suggestions("Dracaufeu") == [
            "charizard",
            "charizard-mega-x",
            "charizard-gmax",
        ]

    @pytest.mark.asyncio
    async def test_short_input_skips_the_index(self) -> None:
        catalog = _search_catalog()
        coordinator = _coordinator(catalog)

        assert await coordinator.fetch_suggestions("p") == []
        assert catalog.calls_to("get_all_names") == []

    @pytest.mark.asyncio
    async def test_suggestion_failures_yield_nothing(self) -> None:
        catalog = _search_catalog()
        catalog.names_error = OfflineError("fake://catalog/names")
        coordinator = _coordinator(catalog)

        assert await coordinator.fetch_suggestions("pika") == []
        assert coordinator.error is None

    @pytest.mark.asyncio
    async def test_listeners_observe_loading_transitions(self) -> None:
        coordinator = _coordinator(_browse_catalog())
        snapshots: list[CoordinatorSnapshot] = []
        unsubscribe = coordinator.subscribe(snapshots.append)

        await coordinator.load_more()
        unsubscribe()
        await coordinator.load_more()

        assert [s.is_loading for s in snapshots] == [True, False]
        assert len(snapshots[-1].items) == 20

    @pytest.mark.asyncio
    async def test_close_cancels_pending_search(self) -> None:
        catalog = _search_catalog()
        coordinator = _coordinator(catalog, debounce_seconds=10.0)

        pending = coordinator.search("pika")
        coordinator.close()

        with pytest.raises(asyncio.CancelledError):
            await pending
        assert catalog.calls_to("get_all_names") == []
