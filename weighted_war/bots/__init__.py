"""
Bots Module - Automatic bidders.

Used by the CLI simulator to play sessions end to end.
"""

from .policy import BidPolicy, RandomPolicy, MatchTablePolicy, POLICIES, create_policy

__all__ = [
    "BidPolicy",
    "RandomPolicy",
    "MatchTablePolicy",
    "POLICIES",
    "create_policy",
]
