"""Per-adapter snapshot store feeding the ranker.

Each adapter's latest emission replaces its previous one wholesale; the
ranked view is recomputed from the union of all snapshots on every change.
Arrival order across adapters does not matter.
"""

from collections.abc import Iterable

from dexfunding.aggregation.ranker import RankingPolicy, rank_opportunities
from dexfunding.models import ArbitrageRow, FundingDatum


class FundingAggregator:
    """Latest snapshot per adapter plus the ranked rows derived from them.

    Args:
        policy: Row selection policy passed to the ranker.
    """

    def __init__(self, policy: RankingPolicy = RankingPolicy.ALL_PROFITABLE) -> None:
        self._policy = policy
        self._snapshots: dict[str, tuple[FundingDatum, ...]] = {}
        self._rows: list[ArbitrageRow] = []

    @property
    def policy(self) -> RankingPolicy:
        return self._policy

    @property
    def rows(self) -> list[ArbitrageRow]:
        return list(self._rows)

    def adapter_ids(self) -> list[str]:
        return list(self._snapshots)

    def snapshot(self, adapter_id: str) -> list[FundingDatum]:
        return list(self._snapshots.get(adapter_id, ()))

    def update(self, adapter_id: str, data: Iterable[FundingDatum]) -> list[ArbitrageRow]:
        """Replace ``adapter_id``'s snapshot and return the recomputed rows."""
        self._snapshots[adapter_id] = tuple(data)
        return self._recompute()

    def remove(self, adapter_id: str) -> list[ArbitrageRow]:
        """Drop ``adapter_id``'s snapshot and return the recomputed rows."""
        self._snapshots.pop(adapter_id, None)
        return self._recompute()

    def clear(self) -> None:
        self._snapshots.clear()
        self._rows = []

    def combined(self) -> list[FundingDatum]:
        """Every current datum, flattened in adapter insertion order."""
        return [datum for snapshot in self._snapshots.values() for datum in snapshot]

    def _recompute(self) -> list[ArbitrageRow]:
        self._rows = rank_opportunities(self.combined(), self._policy)
        return list(self._rows)
