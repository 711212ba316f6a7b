"""Default values shared by config, fetcher, classifier, and scheduler."""

from __future__ import annotations

from .types import FetchBackend


DEFAULT_SEED_DOMAINS: tuple[str, ...] = ("dcinside.com", "fmkorea.com")
DEFAULT_SEED_KEYWORDS: tuple[str, ...] = ("프리섭", "첫충", "홍보채널")

DEFAULT_MAX_CYCLES = 1000
DEFAULT_CONCURRENCY = 5
DEFAULT_SEARCH_DELAY_SECONDS = 1.0
DEFAULT_BATCH_DELAY_SECONDS = 0.5

DEFAULT_MAX_DOMAIN_RETRIES = 3
DEFAULT_DOMAIN_DISCOVERY_LIMIT = 100

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRIES = 2
DEFAULT_RETRY_BACKOFF_SECONDS = 5.0
DEFAULT_FETCH_BACKEND = FetchBackend.SELENIUM
DEFAULT_HEADLESS = True
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_SEARCH_URL = "https://www.google.com/search"

DEFAULT_GAMBLING_INDICATORS: tuple[str, ...] = (
    "카지노",
    "바카라",
    "토토",
    "슬롯",
    "첫충",
    "매충",
    "casino",
    "baccarat",
    "toto",
    "slot",
    "betting",
)
DEFAULT_ILLEGAL_SERVER_INDICATORS: tuple[str, ...] = (
    "프리섭",
    "프리서버",
    "사설서버",
    "사설섭",
    "리니지",
    "바람의나라",
    "private server",
    "freeserver",
)
DEFAULT_AD_BANNER_INDICATORS: tuple[str, ...] = (
    "홍보",
    "광고",
    "배너",
    "홍보채널",
    "banner",
    "sponsored",
)

DEFAULT_MIN_KEYWORD_LENGTH = 2
DEFAULT_MAX_KEYWORDS_PER_ITEM = 20
DEFAULT_PERSIST_UNKNOWN_SITES = False

# Hosts whose links are chat invitations rather than websites.
OPEN_CHAT_HOSTS: tuple[str, ...] = ("open.kakao.com",)
DISCORD_HOSTS: tuple[str, ...] = ("discord.gg", "discord.com", "discordapp.com")
TELEGRAM_HOSTS: tuple[str, ...] = ("t.me", "telegram.me")

SNS_X_HOSTS: tuple[str, ...] = ("x.com", "twitter.com")
SNS_YOUTUBE_HOSTS: tuple[str, ...] = ("youtube.com", "youtu.be", "m.youtube.com")
COMMUNITY_PATH_MARKERS: tuple[str, ...] = ("/board/", "/bbs/")

JSON_INDENT = 2
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")


__all__ = [
    "COMMUNITY_PATH_MARKERS",
    "DEFAULT_AD_BANNER_INDICATORS",
    "DEFAULT_BATCH_DELAY_SECONDS",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_DOMAIN_DISCOVERY_LIMIT",
    "DEFAULT_FETCH_BACKEND",
    "DEFAULT_GAMBLING_INDICATORS",
    "DEFAULT_HEADLESS",
    "DEFAULT_ILLEGAL_SERVER_INDICATORS",
    "DEFAULT_MAX_CYCLES",
    "DEFAULT_MAX_DOMAIN_RETRIES",
    "DEFAULT_MAX_KEYWORDS_PER_ITEM",
    "DEFAULT_MIN_KEYWORD_LENGTH",
    "DEFAULT_PERSIST_UNKNOWN_SITES",
    "DEFAULT_RETRIES",
    "DEFAULT_RETRY_BACKOFF_SECONDS",
    "DEFAULT_SEARCH_DELAY_SECONDS",
    "DEFAULT_SEARCH_URL",
    "DEFAULT_SEED_DOMAINS",
    "DEFAULT_SEED_KEYWORDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_USER_AGENT",
    "DISCORD_HOSTS",
    "JSON_INDENT",
    "OPEN_CHAT_HOSTS",
    "SNS_X_HOSTS",
    "SNS_YOUTUBE_HOSTS",
    "SUPPORTED_CONFIG_SUFFIXES",
    "TELEGRAM_HOSTS",
]
