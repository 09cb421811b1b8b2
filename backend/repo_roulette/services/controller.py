import itertools
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from ..datasources.base import DataSource
from ..schemas import UIState, UIStatus, ViewSnapshot
from .cancellation import CancellationToken
from .errors import RequestCancelled, SearchError
from .presenter import present


@dataclass(eq=False)
class RequestCycle:
    id: int
    language: str
    mode: str = "fetch"
    token: CancellationToken = field(default_factory=CancellationToken)


class RequestController:
    """Drives the page through Idle -> Loading -> Populated/Empty/Errored.

    Each click starts a new ``RequestCycle`` and cancels the previous one.
    Only the cycle held in ``active_cycle`` may change what the page shows;
    a superseded cycle's outcome is dropped whatever it was.
    """

    def __init__(self, client: DataSource):
        self.client = client
        self.active_cycle: Optional[RequestCycle] = None
        self.state = UIState.idle()
        self.controls_enabled = True
        self.show_card = False
        self.show_refresh = False
        self._ids = itertools.count(1)

    def is_active(self, cycle: RequestCycle) -> bool:
        return cycle is self.active_cycle

    def snapshot(self) -> ViewSnapshot:
        return ViewSnapshot(
            state=self.state,
            controls_enabled=self.controls_enabled,
            show_card=self.show_card,
            show_refresh=self.show_refresh,
            cycle_id=self.active_cycle.id if self.active_cycle else None,
        )

    def start(self, language: str, mode: str = "fetch") -> RequestCycle:
        previous = self.active_cycle
        if previous is not None and not previous.token.cancelled:
            logger.debug(f"[controller] cycle {previous.id} superseded")
            previous.token.cancel()

        cycle = RequestCycle(id=next(self._ids), language=language, mode=mode)
        self.active_cycle = cycle
        self.state = UIState.loading(language)
        self.controls_enabled = False
        self.show_card = False
        self.show_refresh = False
        logger.info(f"[controller] cycle {cycle.id} started: {mode} {language!r}")
        return cycle

    async def complete(self, cycle: RequestCycle) -> Optional[ViewSnapshot]:
        """Await the search for ``cycle`` and apply its outcome.

        Returns the resulting snapshot, or None when the cycle was
        superseded before it settled.
        """
        try:
            repo = await self.client.fetch_random_repository(cycle.language, cycle.token)
        except RequestCancelled:
            logger.debug(f"[controller] cycle {cycle.id} cancelled")
        except SearchError as exc:
            logger.warning(f"[controller] cycle {cycle.id} failed: {exc.message}")
            self._settle(cycle, UIState.errored(cycle.language, exc.message))
        else:
            if repo is None:
                self._settle(cycle, UIState.empty(cycle.language))
            else:
                self._settle(
                    cycle,
                    UIState.populated(cycle.language, present(repo)),
                    show_result=True,
                )
        finally:
            if self.is_active(cycle):
                if self.state.status is UIStatus.LOADING:
                    # settled without an outcome, e.g. the awaiting task was cancelled
                    self.state = UIState.idle()
                self.controls_enabled = True

        if not self.is_active(cycle):
            return None
        return self.snapshot()

    async def run(self, language: str, mode: str = "fetch") -> Optional[ViewSnapshot]:
        return await self.complete(self.start(language, mode))

    def _settle(self, cycle: RequestCycle, state: UIState, show_result: bool = False) -> None:
        if not self.is_active(cycle):
            logger.debug(f"[controller] dropping {state.status.value} outcome of stale cycle {cycle.id}")
            return
        self.state = state
        self.show_card = show_result
        self.show_refresh = show_result
        logger.info(f"[controller] cycle {cycle.id} settled: {state.status.value}")


class ControllerRegistry:
    """One ``RequestController`` per browser client.

    One client's click must never supersede another client's cycle. The
    least recently used controllers are dropped past ``max_clients``.
    """

    def __init__(self, client: DataSource, max_clients: int = 1024):
        self.client = client
        self.max_clients = max_clients
        self._controllers: "OrderedDict[str, RequestController]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._controllers)

    def get(self, client_id: str) -> RequestController:
        controller = self._controllers.get(client_id)
        if controller is None:
            controller = RequestController(self.client)
            self._controllers[client_id] = controller
            while len(self._controllers) > self.max_clients:
                evicted, stale = self._controllers.popitem(last=False)
                if stale.active_cycle is not None:
                    stale.active_cycle.token.cancel()
                logger.debug(f"[controller] evicted client {evicted}")
        else:
            self._controllers.move_to_end(client_id)
        return controller
