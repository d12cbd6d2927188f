"""Analyzer module - parsing markup into capture input trees."""

from .html_parser import ExternalResource, HTMLParser, find_external_resources, is_stylesheet_link

__all__ = ["ExternalResource", "HTMLParser", "find_external_resources", "is_stylesheet_link"]
