"""Page fetching components for novelcrawl."""

from novelcrawl.readers.fetch.http_client import PageFetcher
from novelcrawl.readers.fetch.markers import alternate_urls, find_client_redirect
from novelcrawl.readers.fetch.models import FetchOutcome

__all__ = [
    "FetchOutcome",
    "PageFetcher",
    "alternate_urls",
    "find_client_redirect",
]
