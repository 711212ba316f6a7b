import pytest

from sitehunt.frontier import EnqueueStatus, FrontierStore
from sitehunt.types import ExtractionHint


class TestDomainQueue:
    """Domain queue ordering and deduplication."""

    def test_fifo_order(self):
        frontier = FrontierStore()
        frontier.enqueue_domains(["a.test", "b.test", "c.test"])

        assert [frontier.dequeue_domain() for _ in range(3)] == ["a.test", "b.test", "c.test"]
        assert frontier.dequeue_domain() is None

    def test_duplicate_enqueue_is_noop(self):
        frontier = FrontierStore()

        first = frontier.enqueue_domain("https://www.A.test/board")
        second = frontier.enqueue_domain("a.test")

        assert first.status == EnqueueStatus.ENQUEUED
        assert first.domain == "a.test"
        assert second.status == EnqueueStatus.SKIPPED_QUEUED
        assert frontier.queued_domains() == ["a.test"]

    def test_searched_domain_not_enqueued_again(self):
        frontier = FrontierStore()
        frontier.enqueue_domain("a.test")
        frontier.dequeue_domain()
        frontier.ensure_history("a.test")

        result = frontier.enqueue_domain("a.test")

        assert result.status == EnqueueStatus.SKIPPED_SEARCHED
        assert not frontier.has_pending_domains()

    def test_requeue_ignores_history_but_not_queue(self):
        frontier = FrontierStore()
        frontier.ensure_history("a.test")

        assert frontier.requeue_domain("a.test").accepted
        assert frontier.requeue_domain("a.test").status == EnqueueStatus.SKIPPED_QUEUED
        assert frontier.queued_domains() == ["a.test"]

    def test_invalid_domain(self):
        frontier = FrontierStore()

        assert frontier.enqueue_domain("   ").status == EnqueueStatus.SKIPPED_INVALID
        assert frontier.requeue_domain("").status == EnqueueStatus.SKIPPED_INVALID

    def test_membership_tracks_queue(self):
        frontier = FrontierStore()
        frontier.enqueue_domain("a.test")
        assert frontier.is_queued("a.test")

        frontier.dequeue_domain()
        assert not frontier.is_queued("a.test")


class TestKeywords:
    """Vocabulary filtering and per-domain history."""

    def test_add_keyword_trims_and_filters(self):
        frontier = FrontierStore()

        assert frontier.add_keyword("  프리섭  ")
        assert not frontier.add_keyword("프리섭")
        assert not frontier.add_keyword("x")
        assert not frontier.add_keyword("   ")
        assert not frontier.add_keyword(None)  # type: ignore[arg-type]
        assert frontier.keywords() == ["프리섭"]

    def test_seed_keywords_skip_length_filter(self):
        frontier = FrontierStore()

        assert frontier.seed_keywords([" x ", "x", "", "프리섭"]) == 2
        assert frontier.keywords() == ["x", "프리섭"]

    def test_pending_keywords_follow_vocabulary_order(self):
        frontier = FrontierStore()
        frontier.add_keywords(["kw1", "kw2", "kw3"])
        frontier.record_keyword_applied("a.test", "kw2")

        assert frontier.pending_keywords_for("a.test") == ["kw1", "kw3"]
        assert frontier.pending_keywords_for("fresh.test") == ["kw1", "kw2", "kw3"]

    def test_history_is_monotonic(self):
        frontier = FrontierStore()
        frontier.add_keywords(["kw1", "kw2"])
        frontier.record_keyword_applied("a.test", "kw1")
        frontier.record_keyword_applied("a.test", "kw1")

        for keyword in ["kw3", "kw4"]:
            frontier.add_keyword(keyword)
            assert "kw1" not in frontier.pending_keywords_for("a.test")

        assert frontier.applied_keywords("www.a.test") == {"kw1"}

    def test_metadata_initialized_from_vocabulary(self):
        frontier = FrontierStore()
        frontier.add_keywords(["kw1", "kw2"])

        metadata = frontier.ensure_metadata("a.test")
        frontier.add_keyword("kw3")

        assert metadata.retry_count == 0
        assert metadata.keyword_count == 2
        assert frontier.ensure_metadata("a.test") is metadata


class TestResultQueue:
    """Pending search-hit queue."""

    def test_batches_preserve_order(self):
        frontier = FrontierStore()
        for index in range(5):
            frontier.enqueue_result(f"https://a.test/{index}", "community-site")

        first = frontier.dequeue_result_batch(3)
        second = frontier.dequeue_result_batch(3)

        assert [hit.url for hit in first] == [f"https://a.test/{i}" for i in range(3)]
        assert [hit.url for hit in second] == ["https://a.test/3", "https://a.test/4"]
        assert first[0].hint == ExtractionHint.COMMUNITY_SITE
        assert frontier.dequeue_result_batch(3) == []

    def test_unknown_hint_falls_back_to_generic(self):
        frontier = FrontierStore()

        assert frontier.enqueue_result("https://a.test/", "pdf-viewer").hint == ExtractionHint.GENERIC

    def test_repeated_url_is_queued_once(self):
        frontier = FrontierStore()

        assert frontier.enqueue_result("https://a.test/p1") is not None
        frontier.dequeue_result_batch(5)
        assert frontier.enqueue_result("https://a.test/p1", "community-site") is None

        assert not frontier.has_pending_results()
        assert frontier.snapshot()["results_duplicate"] == 1

    def test_rejects_non_positive_batch(self):
        with pytest.raises(ValueError):
            FrontierStore().dequeue_result_batch(0)


class TestConfirmedSites:
    """Confirmed target-site set."""

    def test_mark_confirmed_reports_new(self):
        frontier = FrontierStore()
        frontier.seed_confirmed(["casino.example", ""])

        assert frontier.is_confirmed("casino.example")
        assert not frontier.mark_confirmed("casino.example")
        assert frontier.mark_confirmed("other.example")
        assert frontier.confirmed() == {"casino.example", "other.example"}

    def test_snapshot_counts(self):
        frontier = FrontierStore()
        frontier.enqueue_domains(["a.test", "a.test", "b.test"])
        frontier.add_keyword("kw1")
        frontier.enqueue_result("https://a.test/1")

        snapshot = frontier.snapshot()

        assert snapshot["domains_queued"] == 2
        assert snapshot["domains_enqueued"] == 2
        assert snapshot["keywords"] == 1
        assert snapshot["results_pending"] == 1
