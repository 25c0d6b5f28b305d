"""
Unit tests for task models, engine profiles and the timing policy.
"""

import random

import pytest
from pydantic import ValidationError

from serpsurfer.crawler.engines import DUCKDUCKGO, get_profile
from serpsurfer.crawler.models import CandidateLink, MatchResult, SearchTask
from serpsurfer.crawler.timing import HumanTiming
from tests.fakes import SleepRecorder


class TestSearchTask:
    """Tests for SearchTask model."""

    def test_defaults(self):
        task = SearchTask(target_url="https://acme.example", keyword="acme", user_id="u")
        assert task.country == "US"
        assert task.dwell_time_ms == 3000
        assert task.bot_count == 1

    def test_is_immutable(self):
        task = SearchTask(target_url="https://acme.example", keyword="acme", user_id="u")
        with pytest.raises(ValidationError):
            task.keyword = "other"

    @pytest.mark.parametrize("kwargs", [
        {"target_url": "https://", "keyword": "acme", "user_id": "u"},
        {"target_url": "https://acme.example", "keyword": "", "user_id": "u"},
        {"target_url": "https://acme.example", "keyword": "acme", "user_id": "u", "bot_count": 0},
        {"target_url": "https://acme.example", "keyword": "acme", "user_id": "u", "dwell_time_ms": -1},
    ])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            SearchTask(**kwargs)


class TestResultTypes:

    def test_candidate_link_domain(self):
        link = CandidateLink.from_href("https://www.Acme.example/x")
        assert link.normalized_domain == "acme.example"

    def test_not_found_has_no_rank(self):
        result = MatchResult.not_found(pages_visited=3)
        assert (result.found, result.rank, result.matched_url, result.pages_visited) == (False, None, None, 3)


class TestEngineProfile:

    def test_lookup(self):
        assert get_profile("duckduckgo") is DUCKDUCKGO

    def test_unknown_engine(self):
        with pytest.raises(KeyError):
            get_profile("altavista")

    def test_internal_links(self):
        assert DUCKDUCKGO.is_internal_link("https://duckduckgo.com/settings")
        assert DUCKDUCKGO.is_internal_link("https://r.example/?uddg=https%3A%2F%2Fx")
        assert not DUCKDUCKGO.is_internal_link("https://acme.example/")

    def test_search_bar_chain_order(self):
        assert DUCKDUCKGO.search_bar_selectors[0].selector == 'input[name="q"]'
        assert all(step.timeout_ms == 5000 for step in DUCKDUCKGO.search_bar_selectors)


class TestHumanTiming:

    @pytest.mark.asyncio
    async def test_pause_within_bounds(self):
        sleeper = SleepRecorder()
        timing = HumanTiming(rng=random.Random(1), sleeper=sleeper)
        for _ in range(20):
            await timing.pause((1000, 2000))
        assert all(1.0 <= s <= 2.0 for s in sleeper.calls)

    @pytest.mark.asyncio
    async def test_sleep_ms_converts_to_seconds(self):
        sleeper = SleepRecorder()
        timing = HumanTiming(sleeper=sleeper)
        await timing.sleep_ms(1500)
        await timing.sleep_ms(-5)
        assert sleeper.calls == [1.5, 0.0]

    def test_seeded_choice_is_repeatable(self):
        items = ["a", "b", "c", "d"]
        first = [HumanTiming(rng=random.Random(3)).choice(items) for _ in range(5)]
        second = [HumanTiming(rng=random.Random(3)).choice(items) for _ in range(5)]
        assert first == second
