"""
Autotag — Interest Decay Scorer
Ranks topics by how much, and how recently, they were viewed.

Each view contributes a weight that halves every `age_mid_weight` ms:
  weight(t) = e^(-ln(2) * (now - t) / age_mid_weight)
  score     = sum of weights over the topic's views

A fresh view counts ~1.0, a view one half-life old counts 0.5, older views
tend to 0 without reaching it. Topics with fewer than `min_views` views
(never fewer than 2) are not rankable at all.

Ties keep the order in which topics first appear in the input mapping
(Python's sort is stable).
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from . import config
from .views import sanitize_views


def view_weight(timestamp: float, now: float, age_mid_weight: float = config.DEFAULT_AGE_MID_WEIGHT) -> float:
    """Weight of a single view, in (0, 1]. Views stamped after `now` weigh 1."""
    return math.exp(min(0.0, -math.log(2) * (now - timestamp) / age_mid_weight))


def score_topic(
    timestamps: list[float], now: float, age_mid_weight: float = config.DEFAULT_AGE_MID_WEIGHT
) -> float:
    return sum(view_weight(t, now, age_mid_weight) for t in timestamps)


def rate_topics(
    views_by_topic: Mapping[str, Any],
    now: float,
    min_views: int = config.DEFAULT_MIN_VIEWS,
    age_mid_weight: float = config.DEFAULT_AGE_MID_WEIGHT,
) -> dict[str, float]:
    """
    Score every topic meeting the view floor. Malformed histories and views
    stamped after `now` (bad clock, corrupt data) are treated as absent.
    """
    floor = max(config.MIN_VIEWS_FLOOR, min_views)
    ratings: dict[str, float] = {}
    for topic, history in sanitize_views(dict(views_by_topic)).items():
        timestamps = [t for t in history if t <= now]
        if len(timestamps) >= floor:
            ratings[topic] = score_topic(timestamps, now, age_mid_weight)
    return ratings


def rank(
    views_by_topic: Mapping[str, Any],
    now: float,
    min_views: int = config.DEFAULT_MIN_VIEWS,
    age_mid_weight: float = config.DEFAULT_AGE_MID_WEIGHT,
    num_topics: int = config.DEFAULT_NUM_TOPICS,
) -> list[str]:
    """Favorite topics, best first, at most `num_topics` of them."""
    ratings = rate_topics(views_by_topic, now, min_views, age_mid_weight)
    ordered = sorted(ratings.items(), key=lambda item: item[1], reverse=True)
    return [topic for topic, _ in ordered[:num_topics]]
