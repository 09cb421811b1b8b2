from typing import Optional, Protocol

from ..schemas import RepositorySummary
from ..services.cancellation import CancellationToken


class DataSource(Protocol):
    async def fetch_random_repository(
        self, language: str, token: CancellationToken
    ) -> Optional[RepositorySummary]:
        ...
