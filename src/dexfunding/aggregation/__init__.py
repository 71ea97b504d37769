"""Aggregation layer -- per-adapter snapshots and cross-venue arbitrage ranking."""

from dexfunding.aggregation.aggregator import FundingAggregator
from dexfunding.aggregation.ranker import RankingPolicy, rank_opportunities

__all__ = ["FundingAggregator", "RankingPolicy", "rank_opportunities"]
