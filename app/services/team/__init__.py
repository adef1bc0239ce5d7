"""
Team services package.

- team_aggregator: breadth-first walk of the referral tree by level
"""

from app.services.team.team_aggregator import TeamAggregator, TeamMember


__all__ = [
    "TeamAggregator",
    "TeamMember",
]
