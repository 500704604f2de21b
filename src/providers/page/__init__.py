"""Page fetcher implementations."""

from src.providers.page.httpx_page_fetcher import HttpxPageFetcher

__all__ = ["HttpxPageFetcher"]
