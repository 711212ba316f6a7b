from sitehunt.extraction import (
    CommunitySiteStrategy,
    GenericStrategy,
    RenderedPage,
    SearchResultStrategy,
    StrategyRegistry,
    hint_for_url,
    x_strategy,
)
from sitehunt.types import ExtractionHint, PageExtraction, PageTask, SearchHit, SearchTask


SEARCH_URL = "https://www.google.com/search?q=site%3Aexample.com+%22%ED%94%84%EB%A6%AC%EC%84%AD%22"

SEARCH_HTML = """
<html><body>
  <div class="g">
    <a href="https://gall.example.com/board/view?id=1&utm_source=feed"><h3>프리섭 홍보 모음</h3></a>
    <div><span>community post</span></div>
  </div>
  <div class="g">
    <a href="/url?q=https://x.com/someone/status/1&amp;sa=U"><h3>New server</h3></a>
    <div><em>프리섭</em> opening today</div>
  </div>
  <div class="g">
    <a href="https://unrelated.example/"><h3>Cooking tips</h3></a>
    <div>nothing to see</div>
  </div>
  <div class="g">
    <a href="https://gall.example.com/board/view?id=1"><h3>프리섭 홍보 모음 (dup)</h3></a>
  </div>
  <a href="/search?q=next"><h3>프리섭 next page</h3></a>
  <a href="https://maps.google.com/place"><h3>프리섭 map</h3></a>
  <a href="https://example.com/plain">프리섭 without title</a>
</body></html>
"""


def _page(url: str, html: str) -> RenderedPage:
    return RenderedPage(requested_url=url, final_url=url, html=html)


class TestHints:
    """Search hits are tagged with the strategy to explore them with."""

    def test_hint_for_url(self):
        assert hint_for_url("https://x.com/a/status/1") == ExtractionHint.SNS_X
        assert hint_for_url("https://mobile.twitter.com/a") == ExtractionHint.SNS_X
        assert hint_for_url("https://youtu.be/abc") == ExtractionHint.SNS_YOUTUBE
        assert hint_for_url("https://forum.example/bbs/1") == ExtractionHint.COMMUNITY_SITE
        assert hint_for_url("https://forum.example/board") == ExtractionHint.COMMUNITY_SITE
        assert hint_for_url("https://shop.example/item") == ExtractionHint.GENERIC

    def test_resolve_unknown_hint(self):
        assert ExtractionHint.resolve("sns-x") == ExtractionHint.SNS_X
        assert ExtractionHint.resolve(" COMMUNITY-SITE ") == ExtractionHint.COMMUNITY_SITE
        assert ExtractionHint.resolve("pdf") == ExtractionHint.GENERIC
        assert ExtractionHint.resolve(None) == ExtractionHint.GENERIC


class TestSearchResultStrategy:
    """Organic results are extracted, filtered and deduplicated."""

    def test_extracts_matching_results(self):
        hits = SearchResultStrategy().extract(
            _page(SEARCH_URL, SEARCH_HTML),
            SearchTask(domain="example.com", keyword="프리섭"),
        )

        assert hits == [
            SearchHit("https://gall.example.com/board/view?id=1", ExtractionHint.COMMUNITY_SITE),
            SearchHit("https://x.com/someone/status/1", ExtractionHint.SNS_X),
        ]

    def test_keyword_filter_can_be_disabled(self):
        hits = SearchResultStrategy(require_keyword_match=False).extract(
            _page(SEARCH_URL, SEARCH_HTML),
            SearchTask(domain="example.com", keyword="프리섭"),
        )

        assert [hit.url for hit in hits] == [
            "https://gall.example.com/board/view?id=1",
            "https://x.com/someone/status/1",
            "https://unrelated.example/",
        ]

    def test_empty_page(self):
        hits = SearchResultStrategy().extract(
            _page(SEARCH_URL, "<html><body></body></html>"),
            SearchTask(domain="example.com", keyword="프리섭"),
        )

        assert hits == []


class TestPageStrategies:
    """Direct-visit strategies produce description and link items."""

    def test_community_site_keeps_outbound_links(self):
        html = """
        <html><head><title>프리섭 홍보합니다</title></head><body>
          <article><p>새로 오픈한 리니지 프리섭 입니다. 첫충 이벤트 진행중.</p></article>
          <a href="/board/list">목록</a>
          <a href="https://gall.example.com/board/view?id=2">다음글</a>
          <a href="https://casino.example/">카지노 바로가기</a>
          <a href="https://open.kakao.com/o/abc">문의 오픈채팅</a>
        </body></html>
        """
        url = "https://gall.example.com/board/view?id=1"

        extraction = CommunitySiteStrategy().extract(_page(url, html), PageTask(url=url))

        assert isinstance(extraction, PageExtraction)
        assert extraction.strategy == "community_site"
        body, *links = extraction.items
        assert body.url is None
        assert "프리섭" in body.description
        assert body.title == "프리섭 홍보합니다"
        assert [item.url for item in links] == ["https://casino.example/", "https://open.kakao.com/o/abc"]
        assert links[0].description == "카지노 바로가기"

    def test_community_site_link_cap(self):
        links = "".join(f'<a href="https://site{i}.example/">site {i}</a>' for i in range(5))
        url = "https://board.example/bbs/1"

        extraction = CommunitySiteStrategy(max_links=2).extract(
            _page(url, f"<html><body><p>text</p>{links}</body></html>"),
            PageTask(url=url),
        )

        assert [item.url for item in extraction.items if item.url] == [
            "https://site0.example/",
            "https://site1.example/",
        ]

    def test_sns_keeps_only_links_leaving_platform(self):
        html = """
        <html><head>
          <meta property="og:title" content="Server launch">
          <meta name="description" content="프리섭 오픈 이벤트">
        </head><body>
          <a href="https://x.com/home">Home</a>
          <a href="https://t.co/abc">short link</a>
          <a href="https://x.com/i/redirect?url=https%3A%2F%2Fslots.example%2Fjoin">slots</a>
          <a href="https://casino.example/join">join now</a>
        </body></html>
        """
        url = "https://x.com/someone/status/1"

        extraction = x_strategy().extract(_page(url, html), PageTask(url=url, hint=ExtractionHint.SNS_X))

        first, *links = extraction.items
        assert first.title == "Server launch"
        assert first.description == "프리섭 오픈 이벤트"
        assert [item.url for item in links] == ["https://slots.example/join", "https://casino.example/join"]
        assert extraction.strategy == "sns_x"

    def test_generic_collects_text_and_outbound_links(self):
        html = """
        <html><head><title>Landing</title><script>var a = 1;</script></head>
        <body><p>Welcome to the site</p><a href="/about">About</a>
        <a href="https://discord.gg/xyz">Join discord</a></body></html>
        """
        url = "https://landing.example/"

        extraction = GenericStrategy().extract(_page(url, html), PageTask(url=url))

        body, *links = extraction.items
        assert "Welcome to the site" in body.description
        assert "var a" not in body.description
        assert [item.url for item in links] == ["https://discord.gg/xyz"]


class TestStrategyRegistry:
    """Every hint maps to one strategy; unknown hints use the generic one."""

    def test_default_mapping(self):
        registry = StrategyRegistry()

        assert registry.for_hint(ExtractionHint.SEARCH_RESULT).name == "search_result"
        assert registry.for_hint("community-site").name == "community_site"
        assert registry.for_hint(ExtractionHint.SNS_X).name == "sns_x"
        assert registry.for_hint(ExtractionHint.SNS_YOUTUBE).name == "sns_youtube"
        assert registry.for_hint("bogus").name == "generic"
        assert registry.for_hint(None).name == "generic"

    def test_override(self):
        class Custom:
            name = "custom"

            def extract(self, page, task):
                return None

        registry = StrategyRegistry({ExtractionHint.GENERIC: Custom()})

        assert registry.for_hint("bogus").name == "custom"
        assert registry.for_hint(ExtractionHint.SNS_X).name == "sns_x"


class TestOwnHostLinks:
    """A page's navigation back into its own site never becomes an item."""

    def test_generic_skips_own_host_navigation(self):
        html = """
        <html><body><p>자유 게시판</p>
        <a href="https://b.test/casino">카지노 갤러리</a>
        <a href="https://www.b.test/free/124">다음 글</a>
        <a href="https://lucky-casino.example/">카지노 바로가기</a></body></html>
        """
        url = "https://b.test/free/123"

        extraction = GenericStrategy().extract(_page(url, html), PageTask(url=url))

        assert [item.url for item in extraction.items if item.url] == ["https://lucky-casino.example/"]
