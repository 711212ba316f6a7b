from sitehunt.frontier import EnqueueResult, EnqueueStatus
from sitehunt.stats import StatsCollector
from sitehunt.types import SiteType


class TestStatsCollector:
    """Counters aggregate into the JSON summary."""

    def test_core_counters(self):
        stats = StatsCollector()
        stats.record_cycle()
        stats.record_search(ok=True, links_queued=3, links_dropped=1)
        stats.record_search(ok=False)
        stats.record_page(ok=True, strategy="community_site")
        stats.record_page(ok=False)
        stats.record_site_saved(SiteType.GAMBLING)
        stats.record_site_duplicate()
        stats.record_keywords_added(0)
        stats.record_keywords_added(2)

        core = stats.core()
        assert core.cycles == 1
        assert core.searches_dispatched == 2
        assert core.searches_failed == 1
        assert core.links_queued == 3
        assert core.links_dropped == 1
        assert core.pages_dispatched == 2
        assert core.pages_failed == 1
        assert core.sites_persisted == 1
        assert core.sites_duplicate == 1
        assert core.keywords_added == 2

    def test_core_is_a_copy(self):
        stats = StatsCollector()
        core = stats.core()
        core.cycles = 99

        assert stats.core().cycles == 0

    def test_enqueue_outcomes(self):
        stats = StatsCollector()
        stats.record_enqueue_many(
            [
                EnqueueResult(EnqueueStatus.ENQUEUED, "a.test"),
                EnqueueResult(EnqueueStatus.SKIPPED_QUEUED, "a.test"),
            ]
        )
        stats.record_enqueue(EnqueueStatus.SKIPPED_SEARCHED)

        payload = stats.to_json()
        assert payload["domains_enqueued"] == 1
        assert payload["frontier"]["enqueue_status_counts"] == {
            "enqueued": 1,
            "skipped_queued": 1,
            "skipped_searched": 1,
        }

    def test_json_summary(self):
        stats = StatsCollector()
        stats.record_page(ok=True, strategy="generic")
        stats.record_site_saved("gambling")
        stats.record_frontier_snapshot({"domains_queued": 0})
        stats.record_error_saved()
        stats.increment("custom")
        stats.finish()

        payload = stats.to_json()

        assert payload["finished_at"] is not None
        assert payload["duration_seconds"] >= 0
        assert payload["pages"]["by_strategy"] == {"generic": {"ok": 1, "error": 0}}
        assert payload["sites"]["by_site_type"] == {"gambling": 1}
        assert payload["frontier"]["snapshot"] == {"domains_queued": 0}
        assert payload["storage"]["error_rows"] == 1
        assert payload["custom_counters"] == {"custom": 1}
