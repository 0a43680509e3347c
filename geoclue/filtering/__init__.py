"""Candidate filtering package."""

from geoclue.filtering.candidate_filter import (
    DistanceResolver,
    clue_satisfied,
    filter_candidates,
    tolerance_km,
)

__all__ = [
    "DistanceResolver",
    "clue_satisfied",
    "filter_candidates",
    "tolerance_km",
]
