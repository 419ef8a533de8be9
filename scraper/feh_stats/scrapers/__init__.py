"""Wiki fetching module"""

from .wiki_fetcher import (
    WikiFetcher,
    FetchError,
    NotFound,
    PageFetchError,
    image_file_name,
    page_url,
)

__all__ = [
    "WikiFetcher",
    "FetchError",
    "NotFound",
    "PageFetchError",
    "image_file_name",
    "page_url",
]
