"""Extraction strategy variants and the hint → strategy registry."""

from __future__ import annotations

from typing import Mapping

from ..types import ExtractionHint
from .base import ExtractionStrategy, RenderedPage
from .community import CommunitySiteStrategy
from .generic import GenericStrategy
from .search_result import SearchResultStrategy, hint_for_url
from .social import SocialPostStrategy, x_strategy, youtube_strategy


class StrategyRegistry:
    """Maps each `ExtractionHint` to exactly one strategy.

    Hints without a registered strategy resolve to the GENERIC entry.
    """

    def __init__(self, strategies: Mapping[ExtractionHint, ExtractionStrategy] | None = None) -> None:
        self._strategies: dict[ExtractionHint, ExtractionStrategy] = {
            ExtractionHint.SEARCH_RESULT: SearchResultStrategy(),
            ExtractionHint.COMMUNITY_SITE: CommunitySiteStrategy(),
            ExtractionHint.SNS_X: x_strategy(),
            ExtractionHint.SNS_YOUTUBE: youtube_strategy(),
            ExtractionHint.GENERIC: GenericStrategy(),
        }
        if strategies:
            self._strategies.update(strategies)

    def for_hint(self, hint: ExtractionHint | str | None) -> ExtractionStrategy:
        resolved = ExtractionHint.resolve(hint)
        return self._strategies.get(resolved, self._strategies[ExtractionHint.GENERIC])


__all__ = [
    "CommunitySiteStrategy",
    "ExtractionStrategy",
    "GenericStrategy",
    "RenderedPage",
    "SearchResultStrategy",
    "SocialPostStrategy",
    "StrategyRegistry",
    "hint_for_url",
    "x_strategy",
    "youtube_strategy",
]
