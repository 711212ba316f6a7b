from sitehunt.classifier import ClassifierConfig, ResultClassifier
from sitehunt.config import CrawlConfig
from sitehunt.types import ExtractedItem, LinkType, PageExtraction, SiteType


SOURCE = "https://gall.example.com/board/view?id=1"


def _page(*items) -> PageExtraction:
    return PageExtraction(url=SOURCE, items=list(items))


def _only_target(classification):
    assert len(classification.new_target_sites) == 1
    return classification.new_target_sites[0]


class TestSiteTypePriority:
    """First matching category wins in a fixed priority order."""

    def test_gambling_beats_illegal_server(self):
        classifier = ResultClassifier()
        result = classifier.classify(
            _page(
                ExtractedItem(
                    description="첫충 이벤트",
                    url="https://lucky-casino.example/event",
                    title="프리섭 카지노 오픈",
                )
            ),
            SOURCE,
        )

        site = _only_target(result)
        assert site.site_type == SiteType.GAMBLING
        assert site.identifier == "lucky-casino.example"
        assert site.link_type == LinkType.WEBSITE
        assert site.source_url == SOURCE

    def test_illegal_server_beats_ad_banner(self):
        classifier = ResultClassifier()
        result = classifier.classify(
            _page(ExtractedItem(url="https://lineage-free.example", title="리니지 프리섭 홍보")),
            SOURCE,
        )

        assert _only_target(result).site_type == SiteType.ILLEGAL_PRIVATE_SERVER

    def test_ad_banner_alone(self):
        classifier = ResultClassifier()
        result = classifier.classify(
            _page(ExtractedItem(url="https://www.banners.example/slot1", title="배너 문의")),
            SOURCE,
        )

        site = _only_target(result)
        assert site.site_type == SiteType.AD_BANNER_HOST
        assert site.identifier == "banners.example"

    def test_indicator_beats_chat_invite(self):
        classifier = ResultClassifier()
        result = classifier.classify(
            _page(ExtractedItem(url="https://open.kakao.com/o/gAbCdEf", title="바카라 문의방")),
            SOURCE,
        )

        site = _only_target(result)
        assert site.site_type == SiteType.GAMBLING
        assert site.link_type == LinkType.OPEN_CHAT_LINK
        assert site.identifier == "https://open.kakao.com/o/gAbCdEf"

    def test_classify_site_type_order_is_explicit(self):
        classifier = ResultClassifier()

        assert classifier.classify_site_type("카지노 프리섭 배너", LinkType.DISCORD_LINK) == SiteType.GAMBLING
        assert classifier.classify_site_type("프리섭 배너", LinkType.DISCORD_LINK) == SiteType.ILLEGAL_PRIVATE_SERVER
        assert classifier.classify_site_type("배너", LinkType.DISCORD_LINK) == SiteType.AD_BANNER_HOST
        assert classifier.classify_site_type("문의", LinkType.DISCORD_LINK) == SiteType.CHAT_INVITE_LINK
        assert classifier.classify_site_type("문의", LinkType.COMMUNITY_SITE) == SiteType.COMMUNITY
        assert classifier.classify_site_type("문의", LinkType.WEBSITE) == SiteType.UNKNOWN


class TestLinkTypes:
    """Link type inference and identifier rules."""

    def test_chat_invite_uses_full_url_identifier(self):
        classifier = ResultClassifier()
        result = classifier.classify(
            _page(ExtractedItem(description="문의", url="https://t.me/some_channel")),
            SOURCE,
        )

        site = _only_target(result)
        assert site.site_type == SiteType.CHAT_INVITE_LINK
        assert site.link_type == LinkType.TELEGRAM_LINK
        assert site.identifier == "https://t.me/some_channel"

    def test_discord_invite_path_only(self):
        classifier = ResultClassifier()

        assert classifier.infer_link_type("https://discord.gg/abc") == LinkType.DISCORD_LINK
        assert classifier.infer_link_type("https://discord.com/invite/abc") == LinkType.DISCORD_LINK
        assert classifier.infer_link_type("https://discord.com/channels/1/2") == LinkType.WEBSITE

    def test_board_links_become_community_domains(self):
        classifier = ResultClassifier()
        result = classifier.classify(
            _page(ExtractedItem(description="카지노 후기", url="https://www.other-board.example/bbs/123")),
            SOURCE,
        )

        assert result.new_community_domains == {"other-board.example"}
        assert result.new_target_sites == []
        assert "카지노" in result.new_keywords

    def test_configured_community_hosts(self):
        classifier = ResultClassifier(ClassifierConfig(community_hosts=["dcinside.com"]))

        assert classifier.infer_link_type("https://gall.dcinside.com/mgallery/1") == LinkType.COMMUNITY_SITE

    def test_explicit_link_type_wins_over_inference(self):
        classifier = ResultClassifier()
        result = classifier.classify(
            _page({"url": "https://forum.example/post/1", "link_type": "community_site"}),
            SOURCE,
        )

        assert result.new_community_domains == {"forum.example"}


class TestUnknownSites:
    """Sites matching no category are dropped unless configured otherwise."""

    def test_unknown_dropped_by_default(self):
        result = ResultClassifier().classify(
            _page(ExtractedItem(description="hello world", url="https://plain.example/")),
            SOURCE,
        )

        assert result.new_target_sites == []
        assert result.new_keywords == {"hello", "world"}

    def test_unknown_persisted_when_enabled(self):
        classifier = ResultClassifier(ClassifierConfig(persist_unknown_sites=True))
        result = classifier.classify(
            _page(ExtractedItem(description="hello world", url="https://plain.example/")),
            SOURCE,
        )

        assert _only_target(result).site_type == SiteType.UNKNOWN


class TestMalformedInput:
    """Malformed extraction data never raises."""

    def test_skips_garbage_items(self):
        result = ResultClassifier().classify(
            _page(
                None,
                42,
                {"url": 123, "description": None},
                {"url": "not a url", "description": "프리섭 공지"},
                ExtractedItem(),
            ),
            SOURCE,
        )

        assert result.new_target_sites == []
        assert result.new_community_domains == set()
        assert result.new_keywords == {"프리섭", "공지"}

    def test_non_extraction_input(self):
        classifier = ResultClassifier()

        assert classifier.classify(None, SOURCE).empty
        assert classifier.classify("<html>", SOURCE).empty
        assert classifier.classify({"items": "nope"}, SOURCE).empty

    def test_duplicate_links_in_one_page(self):
        result = ResultClassifier().classify(
            _page(
                ExtractedItem(url="https://casino.example/a", title="카지노"),
                ExtractedItem(url="https://casino.example/b", title="카지노 2"),
            ),
            SOURCE,
        )

        assert [site.identifier for site in result.new_target_sites] == ["casino.example"]


class TestKeywordExtraction:
    """Free text is tokenized into filtered candidate keywords."""

    def test_filters_tokens(self):
        keywords = ResultClassifier().extract_keywords("Hello, WORLD!! 2024 a https://x.com/y 카지노 the")

        assert keywords == ["hello", "world", "카지노"]

    def test_caps_keywords_per_item(self):
        classifier = ResultClassifier(ClassifierConfig(max_keywords_per_item=2))

        assert classifier.extract_keywords("one two three four") == ["one", "two"]

    def test_config_from_crawl_config(self):
        config = CrawlConfig(
            seed_domains=["www.Board.example"],
            gambling_indicators=["jackpot"],
            min_keyword_length=3,
        )
        classifier_config = ClassifierConfig.from_crawl_config(config)

        assert classifier_config.community_hosts == ["board.example"]
        assert classifier_config.gambling_indicators == ["jackpot"]
        assert ResultClassifier(classifier_config).extract_keywords("ab abc") == ["abc"]


class TestSourceHost:
    """Links back to the explored page's host are not target sites."""

    def test_same_host_link_is_not_a_target(self):
        source = "https://b.test/free/123"
        result = ResultClassifier().classify(
            PageExtraction(
                url=source,
                items=[
                    ExtractedItem(url="https://b.test/casino", title="카지노 갤러리"),
                    ExtractedItem(url="https://www.b.test/event", title="바카라 이벤트"),
                    ExtractedItem(url="https://lucky-casino.example/", title="카지노"),
                ],
            ),
            source,
        )

        assert [site.identifier for site in result.new_target_sites] == ["lucky-casino.example"]
        assert "b.test" not in result.new_community_domains
