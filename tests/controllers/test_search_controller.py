"""Tests for SearchController request issuing, cancellation and publishing."""

import pytest

from popcorn.clients.base import CatalogTransportError
from popcorn.controllers import FetchStatus, SearchController, SearchState
from popcorn.controllers.base import NOT_FOUND_MESSAGE, TRANSPORT_MESSAGE
from tests.fixtures.catalog import FakeCatalog, settle
from tests.fixtures.omdb_responses import (
    NOT_FOUND_RESPONSE,
    SEARCH_BATMAN_RESPONSE,
    SEARCH_SUPERMAN_RESPONSE,
)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def published():
    return []


@pytest.fixture
def controller(catalog, published):
    controller = SearchController(catalog)
    controller.subscribe(published.append)
    return controller


class TestQueryGating:
    """Queries shorter than three characters never reach the catalog."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "a", "ab"])
    async def test_short_query_clears_state_without_request(self, controller, catalog, query):
        controller.set_query(query)
        await settle()

        assert catalog.search_calls == []
        assert controller.state.results == ()
        assert controller.state.error == ""
        assert controller.state.is_loading is False
        assert controller.pending is None

    @pytest.mark.asyncio
    async def test_short_query_clears_previous_results_and_error(self, controller, catalog):
        controller.set_query("zzzznomatch")
        await settle()
        catalog.respond("search", "zzzznomatch", NOT_FOUND_RESPONSE)
        await controller.wait_idle()
        assert controller.state.error == NOT_FOUND_MESSAGE

        controller.set_query("zz")

        assert controller.state.error == ""
        assert controller.state.results == ()

    @pytest.mark.asyncio
    async def test_custom_minimum_length(self, catalog):
        controller = SearchController(catalog, min_query_length=5)
        controller.set_query("bat")
        controller.set_query("batma")
        await settle()

        assert catalog.search_calls == ["batma"]
        controller.teardown()


class TestSearchOutcomes:
    """Each settled request publishes exactly one of the three outcomes."""

    @pytest.mark.asyncio
    async def test_successful_search_publishes_results(self, controller, catalog, published):
        controller.set_query("batman")
        await settle()
        catalog.respond("search", "batman", SEARCH_BATMAN_RESPONSE)
        await controller.wait_idle()

        state = controller.state
        assert len(state.results) == 2
        assert [r.title for r in state.results] == ["Batman Begins", "The Batman"]
        assert state.error == ""
        assert state.is_loading is False
        assert state.status is FetchStatus.SUCCESS
        assert [s.is_loading for s in published] == [True, False]

    @pytest.mark.asyncio
    async def test_not_found_sets_error_and_clears_results(self, controller, catalog):
        controller.set_query("zzzznomatch")
        await settle()
        catalog.respond("search", "zzzznomatch", NOT_FOUND_RESPONSE)
        await controller.wait_idle()

        assert controller.state.results == ()
        assert controller.state.error == "Movie not found"
        assert controller.state.is_loading is False
        assert controller.state.status is FetchStatus.ERROR

    @pytest.mark.asyncio
    async def test_transport_failure_sets_network_message(self, controller, catalog):
        controller.set_query("batman")
        await settle()
        catalog.respond("search", "batman", SEARCH_BATMAN_RESPONSE)
        await controller.wait_idle()

        controller.set_query("batmobile")
        await settle()
        catalog.fail("search", "batmobile", CatalogTransportError("connection reset"))
        await controller.wait_idle()

        assert controller.state.results == ()
        assert controller.state.error == TRANSPORT_MESSAGE
        assert controller.state.is_loading is False

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self, controller, catalog):
        controller.set_query("batman")
        await settle()
        catalog.fail("search", "batman", KeyError("Search"))
        await controller.wait_idle()

        assert controller.state.error == TRANSPORT_MESSAGE
        assert controller.state.is_loading is False

    @pytest.mark.asyncio
    async def test_new_search_keeps_previous_results_until_settled(self, controller, catalog):
        controller.set_query("batman")
        await settle()
        catalog.respond("search", "batman", SEARCH_BATMAN_RESPONSE)
        await controller.wait_idle()

        controller.set_query("superman")

        assert controller.state.is_loading is True
        assert len(controller.state.results) == 2
        controller.teardown()

    @pytest.mark.asyncio
    async def test_search_start_callback_runs_for_issued_requests_only(self, catalog):
        started = []
        controller = SearchController(catalog, on_search_start=lambda: started.append(True))

        controller.set_query("ba")
        controller.set_query("bat")

        assert started == [True]
        controller.teardown()


class TestRepeatedQuery:
    """Submitting the current query again does not restart the search."""

    @pytest.mark.asyncio
    async def test_same_query_in_flight_keeps_request(self, catalog):
        started = []
        controller = SearchController(catalog, on_search_start=lambda: started.append(True))
        controller.set_query("batman")
        await settle()
        handle = controller.pending

        controller.set_query("batman")
        await settle()

        assert controller.pending is handle
        assert handle.cancelled is False
        assert catalog.search_calls == ["batman"]
        assert started == [True]

        catalog.respond("search", "batman", SEARCH_BATMAN_RESPONSE)
        await controller.wait_idle()
        assert len(controller.state.results) == 2

    @pytest.mark.asyncio
    async def test_same_query_after_settling_is_noop(self, catalog, published):
        started = []
        controller = SearchController(catalog, on_search_start=lambda: started.append(True))
        controller.set_query("batman")
        await settle()
        catalog.respond("search", "batman", SEARCH_BATMAN_RESPONSE)
        await controller.wait_idle()
        controller.subscribe(published.append)

        controller.set_query("batman")

        assert controller.pending is None
        assert published == []
        assert started == [True]
        assert catalog.search_calls == ["batman"]


class TestCancellation:
    """Superseded requests never reach published state."""

    @pytest.mark.asyncio
    async def test_rapid_typing_issues_a_single_request(self, controller, catalog):
        controller.set_query("a")
        controller.set_query("ab")
        controller.set_query("abc")
        await settle()

        assert catalog.search_calls == ["abc"]
        assert catalog.max_in_flight == 1
        controller.teardown()

    @pytest.mark.asyncio
    async def test_superseded_request_is_cancelled_before_response(self, controller, catalog):
        controller.set_query("batman")
        await settle()
        first = controller.pending

        controller.set_query("super")
        await settle()

        assert first.cancelled is True
        assert first.status is FetchStatus.CANCELLED
        assert catalog.is_waiting("search", "batman") is False
        assert catalog.max_in_flight == 1

        catalog.respond("search", "super", SEARCH_SUPERMAN_RESPONSE)
        await controller.wait_idle()
        assert [r.title for r in controller.state.results] == ["Superman"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("late_first", [True, False])
    async def test_late_response_is_ignored_in_any_arrival_order(self, late_first):
        catalog = FakeCatalog(deliver_late=True)
        controller = SearchController(catalog)
        published: list[SearchState] = []

        controller.set_query("batman")
        await settle()
        stale = controller.pending
        controller.set_query("super")
        await settle()
        controller.subscribe(published.append)

        if late_first:
            catalog.respond("search", "batman", SEARCH_BATMAN_RESPONSE)
            await stale.wait()
            catalog.respond("search", "super", SEARCH_SUPERMAN_RESPONSE)
        else:
            catalog.respond("search", "super", SEARCH_SUPERMAN_RESPONSE)
            await controller.wait_idle()
            catalog.respond("search", "batman", SEARCH_BATMAN_RESPONSE)
            await stale.wait()
        await controller.wait_idle()

        assert [r.title for r in controller.state.results] == ["Superman"]
        assert controller.state.query == "super"
        assert len(published) == 1
        assert all("Batman" not in r.title for s in published for r in s.results)

    @pytest.mark.asyncio
    async def test_cancelled_request_does_not_publish_error(self, controller, catalog, published):
        controller.set_query("batman")
        await settle()
        controller.set_query("ba")
        await settle()

        assert controller.state.error == ""
        assert controller.state.is_loading is False
        assert [s.is_loading for s in published] == [True, False]

    @pytest.mark.asyncio
    async def test_teardown_cancels_outstanding_request(self, controller, catalog, published):
        controller.set_query("batman")
        await settle()
        handle = controller.pending
        count = len(published)

        controller.teardown()
        await handle.wait()

        assert handle.cancelled is True
        assert controller.pending is None
        assert len(published) == count
        assert catalog.respond("search", "batman", SEARCH_BATMAN_RESPONSE) is False

    @pytest.mark.asyncio
    async def test_async_context_manager_tears_down(self, catalog):
        async with SearchController(catalog) as controller:
            controller.set_query("batman")
            await settle()
            handle = controller.pending

        assert handle.cancelled is True
        assert handle.done is True
