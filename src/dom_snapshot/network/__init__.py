"""Network module - fetching external resources for inlining."""

from .fetcher import HttpxFetcher, ResourceFetcher, is_file_url

__all__ = ["HttpxFetcher", "ResourceFetcher", "is_file_url"]
