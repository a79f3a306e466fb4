"""Provider adapter interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from analyst_mcp.models import PriceSeries, Quote


class QuoteSource(ABC):
    name: str

    @abstractmethod
    async def get_quote(self, ticker: str) -> Quote: ...


class HistorySource(ABC):
    name: str

    @abstractmethod
    async def get_history(self, ticker: str) -> PriceSeries:
        """Daily closes, chronological ascending. Empty when the payload is unusable."""


class PeerSource(ABC):
    name: str

    @abstractmethod
    async def get_peers(self, ticker: str) -> tuple[str, ...]: ...


class MoversSource(ABC):
    name: str

    @abstractmethod
    async def get_market_movers(self) -> dict[str, list[dict[str, Any]]]:
        """Raw per-symbol records keyed by list name (top_gainers, most_actively_traded)."""


class NarrativeSource(ABC):
    name: str

    @abstractmethod
    async def get_narrative(self, context: dict[str, Any]) -> dict[str, Any]:
        """Free-form narrative fields for a report. Shape is not trusted."""


@dataclass(frozen=True)
class Sources:
    """The adapter set one invocation runs against."""

    quote: QuoteSource
    history: HistorySource
    peers: PeerSource | None = None
    movers: MoversSource | None = None
    narrative: NarrativeSource | None = None
