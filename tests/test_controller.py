import asyncio
from typing import Optional, Union

import httpx
import pytest

from repo_roulette.config import Settings
from repo_roulette.datasources.github_adapter import GitHubAdapter
from repo_roulette.schemas import RepoOwner, RepositorySummary, UIStatus
from repo_roulette.services.cancellation import CancellationToken
from repo_roulette.services.controller import ControllerRegistry, RequestController
from repo_roulette.services.errors import HttpStatusError, RequestCancelled, TransportError

Outcome = Union[RepositorySummary, None, Exception]


class FakeSource:
    """Returns canned outcomes per language; ignores cancellation unless asked."""

    def __init__(self, outcomes: dict[str, Outcome], honor_cancel: bool = False):
        self.outcomes = outcomes
        self.honor_cancel = honor_cancel
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[str] = []

    def gate(self, language: str) -> asyncio.Event:
        return self.gates.setdefault(language, asyncio.Event())

    async def fetch_random_repository(
        self, language: str, token: CancellationToken
    ) -> Optional[RepositorySummary]:
        self.calls.append(language)
        gate = self.gates.get(language)
        if gate is not None:
            await gate.wait()
        if self.honor_cancel:
            token.raise_if_cancelled()
        outcome = self.outcomes[language]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _repo(name: str) -> RepositorySummary:
    return RepositorySummary(
        full_name=name,
        html_url=f"https://github.com/{name}",
        description="desc",
        stargazers_count=1234,
        forks_count=56,
        open_issues_count=7,
        language="Rust",
        owner=RepoOwner(login=name.split("/")[0]),
    )


def test_initial_state_is_idle() -> None:
    controller = RequestController(FakeSource({}))
    view = controller.snapshot()

    assert view.state.status is UIStatus.IDLE
    assert view.controls_enabled is True
    assert view.show_card is False
    assert view.show_refresh is False
    assert view.cycle_id is None


def test_start_enters_loading_and_disables_controls() -> None:
    controller = RequestController(FakeSource({}))
    cycle = controller.start("Rust")
    view = controller.snapshot()

    assert controller.is_active(cycle)
    assert view.state.status is UIStatus.LOADING
    assert view.state.message == "Loading…"
    assert view.controls_enabled is False
    assert view.show_card is False
    assert view.show_refresh is False
    assert view.cycle_id == cycle.id


def test_start_cancels_previous_cycle() -> None:
    controller = RequestController(FakeSource({}))
    first = controller.start("Rust")
    second = controller.start("Go")

    assert first.token.cancelled is True
    assert second.token.cancelled is False
    assert controller.is_active(second)
    assert not controller.is_active(first)


@pytest.mark.asyncio
async def test_success_populates_card() -> None:
    controller = RequestController(FakeSource({"Rust": _repo("rust-lang/rust")}))

    view = await controller.run("Rust")

    assert view is not None
    assert view.state.status is UIStatus.POPULATED
    assert view.state.message == ""
    assert view.state.display is not None
    assert view.state.display.name == "rust-lang/rust"
    assert view.state.display.stars == "1,234"
    assert view.state.display.owner_label == "Owner: rust-lang"
    assert view.controls_enabled is True
    assert view.show_card is True
    assert view.show_refresh is True


@pytest.mark.asyncio
async def test_no_result_shows_empty_message() -> None:
    controller = RequestController(FakeSource({"COBOL": None}))

    view = await controller.run("COBOL")

    assert view is not None
    assert view.state.status is UIStatus.EMPTY
    assert view.state.message == 'No repositories found for "COBOL". Try another language.'
    assert view.state.is_error is False
    assert view.controls_enabled is True
    assert view.show_card is False


@pytest.mark.asyncio
async def test_search_error_is_prefixed() -> None:
    controller = RequestController(
        FakeSource({"Rust": HttpStatusError("Bad credentials", status_code=401)})
    )

    view = await controller.run("Rust")

    assert view is not None
    assert view.state.status is UIStatus.ERRORED
    assert view.state.message == "Error: Bad credentials"
    assert view.state.is_error is True
    assert view.controls_enabled is True
    assert view.show_card is False
    assert view.show_refresh is False


@pytest.mark.asyncio
async def test_transport_error_is_presented() -> None:
    controller = RequestController(FakeSource({"Go": TransportError("Network error: timed out")}))

    view = await controller.run("Go", mode="refresh")

    assert view is not None
    assert view.state.message == "Error: Network error: timed out"


@pytest.mark.asyncio
async def test_error_after_success_hides_previous_card() -> None:
    source = FakeSource({"Rust": _repo("a/b"), "Go": HttpStatusError("Request failed (500)", 500)})
    controller = RequestController(source)

    await controller.run("Rust")
    view = await controller.run("Go")

    assert view is not None
    assert view.state.status is UIStatus.ERRORED
    assert view.show_card is False
    assert view.state.display is None


@pytest.mark.asyncio
async def test_superseded_success_never_reverts_newer_state() -> None:
    source = FakeSource({"Rust": _repo("old/rust"), "Go": _repo("new/go")})
    source.gate("Rust")
    source.gate("Go")
    controller = RequestController(source)

    first = asyncio.create_task(controller.run("Rust"))
    await asyncio.sleep(0)
    second = asyncio.create_task(controller.run("Go"))
    await asyncio.sleep(0)
    assert source.calls == ["Rust", "Go"]

    source.gates["Go"].set()
    second_view = await second
    source.gates["Rust"].set()
    first_view = await first

    assert first_view is None
    assert second_view is not None
    view = controller.snapshot()
    assert view.state.status is UIStatus.POPULATED
    assert view.state.display is not None
    assert view.state.display.name == "new/go"
    assert view.cycle_id == second_view.cycle_id


@pytest.mark.asyncio
async def test_stale_cycle_settling_first_keeps_loading_and_controls_disabled() -> None:
    source = FakeSource({"Rust": HttpStatusError("boom", 500), "Go": None})
    source.gate("Rust")
    source.gate("Go")
    controller = RequestController(source)

    first = asyncio.create_task(controller.run("Rust"))
    await asyncio.sleep(0)
    second = asyncio.create_task(controller.run("Go"))
    await asyncio.sleep(0)

    source.gates["Rust"].set()
    assert await first is None

    view = controller.snapshot()
    assert view.state.status is UIStatus.LOADING
    assert view.state.language == "Go"
    assert view.controls_enabled is False

    source.gates["Go"].set()
    final = await second
    assert final is not None
    assert final.state.status is UIStatus.EMPTY
    assert final.controls_enabled is True


@pytest.mark.asyncio
async def test_cancelled_cycle_is_silent() -> None:
    source = FakeSource({"Rust": _repo("old/rust"), "Go": _repo("new/go")}, honor_cancel=True)
    source.gate("Rust")
    controller = RequestController(source)

    first = asyncio.create_task(controller.run("Rust"))
    await asyncio.sleep(0)
    view = await controller.run("Go")
    source.gates["Rust"].set()

    assert await first is None
    assert view is not None
    assert controller.snapshot().state.display.name == "new/go"


@pytest.mark.asyncio
async def test_request_cancelled_on_active_cycle_returns_to_idle() -> None:
    controller = RequestController(FakeSource({"Rust": RequestCancelled()}))

    view = await controller.run("Rust")

    assert view is not None
    assert view.state.status is UIStatus.IDLE
    assert view.controls_enabled is True


@pytest.mark.asyncio
async def test_unexpected_error_propagates_and_clears_loading() -> None:
    controller = RequestController(FakeSource({"Rust": RuntimeError("bug")}))

    with pytest.raises(RuntimeError):
        await controller.run("Rust")

    view = controller.snapshot()
    assert view.state.status is UIStatus.IDLE
    assert view.controls_enabled is True


@pytest.mark.asyncio
async def test_unreadable_github_body_is_shown_as_error() -> None:
    adapter = GitHubAdapter(
        Settings(GITHUB_TOKEN=None, GITHUB_PROXY=None),
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>")),
    )
    controller = RequestController(adapter)

    view = await controller.run("Rust")
    await adapter.aclose()

    assert view is not None
    assert view.state.status is UIStatus.ERRORED
    assert view.state.message == "Error: Invalid response from GitHub (200)"
    assert view.controls_enabled is True


@pytest.mark.asyncio
async def test_registry_keeps_clients_independent() -> None:
    source = FakeSource({"Rust": _repo("a/rust"), "Go": _repo("b/go")})
    source.gate("Rust")
    registry = ControllerRegistry(source)

    first = asyncio.create_task(registry.get("tab-a").run("Rust"))
    await asyncio.sleep(0)
    other = await registry.get("tab-b").run("Go")
    source.gates["Rust"].set()
    mine = await first

    assert other is not None and other.state.display.name == "b/go"
    assert mine is not None and mine.state.display.name == "a/rust"
    assert registry.get("tab-a") is registry.get("tab-a")
    assert registry.get("tab-a") is not registry.get("tab-b")


def test_registry_evicts_least_recently_used() -> None:
    registry = ControllerRegistry(FakeSource({}), max_clients=2)
    first = registry.get("one")
    cycle = first.start("Rust")
    registry.get("two")
    registry.get("three")

    assert len(registry) == 2
    assert cycle.token.cancelled is True
    assert registry.get("one") is not first
