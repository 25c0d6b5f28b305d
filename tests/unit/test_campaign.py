"""
Unit tests for the campaign runner.
"""

from collections import Counter

import pytest

from serpsurfer.crawler.campaign import CampaignRunner
from serpsurfer.crawler.interaction import InteractionSimulator
from serpsurfer.crawler.models import BotOutcome, SearchTask
from serpsurfer.crawler.search import SearchAndMatchEngine
from serpsurfer.utils.date_utils import day_key
from tests.conftest import KEYWORD, TARGET, USER
from tests.fakes import DDG_HOME, SAMPLE_SNAPSHOT, FakeBrowser, FakePage, filler, serp


MATCH = "https://acme.example/"


def found_page(**kwargs) -> FakePage:
    kwargs.setdefault("seo_snapshot", SAMPLE_SNAPSHOT)
    kwargs.setdefault("site_links", ["https://acme.example/about"])
    return FakePage(serp_pages=[serp(*filler("x", 3), MATCH)], **kwargs)


def missing_page() -> FakePage:
    return FakePage(serp_pages=[serp(*filler("x", 3))])


def make_task(bots: int = 1, dwell: int = 3000) -> SearchTask:
    return SearchTask(target_url=TARGET, keyword=KEYWORD, user_id=USER, country="US", bot_count=bots, dwell_time_ms=dwell)


@pytest.fixture
def make_runner(store, timing):
    def _make(browser: FakeBrowser) -> CampaignRunner:
        engine = SearchAndMatchEngine(timing=timing)
        return CampaignRunner(
            store=store,
            engine=engine,
            simulator=InteractionSimulator(timing=timing),
            context_factory=browser,
        )
    return _make


class TestSingleBot:
    """Tests for one-bot campaign runs."""

    @pytest.mark.asyncio
    async def test_found_stores_rank_hit_and_snapshot(self, make_runner, store):
        browser = FakeBrowser([found_page()])

        outcomes = await make_runner(browser).run(make_task())

        assert outcomes == [BotOutcome.INTERACTED]
        record = store.get_traffic_record(USER, KEYWORD, TARGET, "US")
        assert record.rank == 4
        assert record.hits == 1
        assert record.hits_by_date == {day_key(): 1}
        assert record.seo.title == "Acme Widgets"
        assert record.last_analyzed is not None
        assert store.get_metadata(USER, KEYWORD, TARGET).metadata["metaTags"]["title"] == "Acme Widgets"

    @pytest.mark.asyncio
    async def test_not_found_stores_null_rank(self, make_runner, store):
        store.store_rank(USER, KEYWORD, TARGET, "US", 7)
        browser = FakeBrowser([missing_page()])

        outcomes = await make_runner(browser).run(make_task())

        assert outcomes == [BotOutcome.NOT_FOUND]
        record = store.get_traffic_record(USER, KEYWORD, TARGET, "US")
        assert record.rank is None
        assert record.hits == 0

    @pytest.mark.asyncio
    async def test_failed_interaction_still_counts_hit(self, make_runner, store):
        """Test a match whose landing page cannot be reopened."""
        page = found_page(click_works=False, goto_failures=[MATCH, TARGET])

        outcomes = await make_runner(FakeBrowser([page])).run(make_task())

        assert outcomes == [BotOutcome.INTERACTION_FAILED]
        record = store.get_traffic_record(USER, KEYWORD, TARGET, "US")
        assert record.rank == 4
        assert record.hits == 1

    @pytest.mark.asyncio
    async def test_fatal_search_error_is_not_found_without_write(self, make_runner, store):
        page = FakePage(serp_pages=[serp(MATCH)], goto_failures=[DDG_HOME])

        outcomes = await make_runner(FakeBrowser([page])).run(make_task())

        assert outcomes == [BotOutcome.NOT_FOUND]
        assert store.get_traffic_record(USER, KEYWORD, TARGET, "US") is None

    @pytest.mark.asyncio
    async def test_target_among_nine_results(self, make_runner, store):
        """Test rank 4 of 9 organic results, click-through and a full interaction."""
        page = FakePage(
            serp_pages=[serp(*filler("x", 3), MATCH, *filler("y", 5))],
            site_links=["https://acme.example/about"],
            seo_snapshot=SAMPLE_SNAPSHOT,
        )

        outcomes = await make_runner(FakeBrowser([page])).run(make_task())

        assert outcomes == [BotOutcome.INTERACTED]
        assert store.get_traffic_record(USER, KEYWORD, TARGET, "US").rank == 4
        assert page.scrolls == [100] * 5
        assert page.gotos[-1] == "https://acme.example/about"

    @pytest.mark.asyncio
    async def test_submit_error_stores_null_rank(self, make_runner, store):
        """Test that a tab closing on submit is reported as not found."""
        store.store_rank(USER, KEYWORD, TARGET, "US", 7)
        page = found_page()

        press = page.keyboard.press

        async def closed_on_enter(key):
            if key == "Enter":
                raise RuntimeError("Target page, context or browser has been closed")
            await press(key)

        page.keyboard.press = closed_on_enter

        outcomes = await make_runner(FakeBrowser([page])).run(make_task())

        assert outcomes == [BotOutcome.NOT_FOUND]
        assert store.get_traffic_record(USER, KEYWORD, TARGET, "US").rank is None

    @pytest.mark.asyncio
    async def test_results_page_naming_target_reopens_target(self, make_runner, store):
        """Test that a failed click-through left on a results page navigates to the target."""
        keyword = "acme.example reviews"
        page = found_page(click_works=False, goto_failures=[MATCH])
        task = SearchTask(target_url=TARGET, keyword=keyword, user_id=USER, country="US", dwell_time_ms=0)

        outcomes = await make_runner(FakeBrowser([page])).run(task)

        assert outcomes == [BotOutcome.INTERACTED]
        assert TARGET in page.gotos
        assert store.get_traffic_record(USER, keyword, TARGET, "US").hits == 1

    @pytest.mark.asyncio
    async def test_page_and_browser_are_closed(self, make_runner):
        page = found_page()
        browser = FakeBrowser([page])
        await make_runner(browser).run(make_task())
        assert page.closed
        assert browser.launches == 1
        assert browser.closes == 1


class TestMultipleBots:
    """Tests for concurrent bots sharing one browser."""

    @pytest.mark.asyncio
    async def test_bots_are_isolated(self, make_runner, store):
        """Test that one crashing bot does not affect its siblings."""
        pages = [found_page(), RuntimeError("tab crashed"), missing_page()]
        browser = FakeBrowser(pages)

        outcomes = await make_runner(browser).run(make_task(bots=3))

        assert len(outcomes) == 3
        assert Counter(outcomes) == Counter(
            [BotOutcome.INTERACTED, BotOutcome.ERROR, BotOutcome.NOT_FOUND]
        )
        assert browser.launches == 1
        assert browser.closes == 1

    @pytest.mark.asyncio
    async def test_every_finding_bot_adds_a_hit(self, make_runner, store):
        browser = FakeBrowser([found_page(), found_page()])
        outcomes = await make_runner(browser).run(make_task(bots=2))
        assert outcomes == [BotOutcome.INTERACTED, BotOutcome.INTERACTED]
        assert store.get_traffic_record(USER, KEYWORD, TARGET, "US").hits == 2

    @pytest.mark.asyncio
    async def test_launch_failure_propagates(self, make_runner):
        browser = FakeBrowser(launch_error=RuntimeError("chromium missing"))
        with pytest.raises(RuntimeError, match="chromium missing"):
            await make_runner(browser).run(make_task())


class TestBotErrors:

    @pytest.mark.asyncio
    async def test_store_failure_is_bot_error(self, make_runner, store, error_dir):
        def broken(*args, **kwargs):
            raise RuntimeError("write refused")

        store.increment_hits = broken
        outcomes = await make_runner(FakeBrowser([found_page()])).run(make_task())

        assert outcomes == [BotOutcome.ERROR]
        lines = [line for f in error_dir.glob("errors_*.jsonl") for line in f.read_text().splitlines()]
        assert any('"run_bot"' in line and '"campaign"' in line for line in lines)
