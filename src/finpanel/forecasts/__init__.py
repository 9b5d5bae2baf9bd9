"""
Analyst forecast aggregation.
"""

from finpanel.forecasts.consensus import CONSENSUS_COLUMNS, build_consensus, link_to_permno

__all__ = ["CONSENSUS_COLUMNS", "build_consensus", "link_to_permno"]
