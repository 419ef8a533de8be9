"""Fetcher for the Fire Emblem Heroes wiki"""

import requests
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote, unquote, urlparse
from ..config import Config

logger = logging.getLogger(__name__)

# Underscores past this offset in an image name become spaces
IMAGE_NAME_PREFIX_LENGTH = 20

# Characters left unescaped in page URLs, as encodeURIComponent does
PAGE_NAME_SAFE_CHARS = "!'()*"


class FetchError(Exception):
    """Base exception for fetch failures"""
    pass


class NotFound(FetchError):
    """Raised when the wiki answers with a non-success status"""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"HTTP {status_code} for {url}")
        self.url = url
        self.status_code = status_code


class PageFetchError(FetchError):
    """Raised when a page could not be fetched within the retry budget"""

    def __init__(self, url: str, attempts: int, last_error: Optional[Exception] = None):
        super().__init__(f"Failed to fetch {url} after {attempts} attempts: {last_error}")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


def page_url(host: str, page_name: str) -> str:
    """Build the wiki URL for a page name"""
    return f"{host}/{quote(page_name, safe=PAGE_NAME_SAFE_CHARS)}"


def image_file_name(url: str) -> str:
    """
    Derive a local file name from an image URL.

    The last path segment is percent-decoded. Underscores inside the first
    20 characters are kept (wiki file prefixes such as ``Icon_Portrait_``),
    later ones become spaces.

    Args:
        url: Full image URL

    Returns:
        File name to store the image under
    """
    segment = unquote(urlparse(url).path.split('/')[-1])
    return ''.join(
        ' ' if char == '_' and offset >= IMAGE_NAME_PREFIX_LENGTH else char
        for offset, char in enumerate(segment)
    )


class WikiFetcher:
    """Fetches pages, API queries and images from the wiki"""

    def __init__(
        self,
        host: Optional[str] = None,
        api_url: Optional[str] = None,
        max_workers: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the wiki fetcher

        Args:
            host: Wiki host (defaults to Config.WIKI_HOST)
            api_url: MediaWiki API endpoint (defaults to Config.WIKI_API_URL)
            max_workers: Maximum concurrent page fetches (defaults to Config.MAX_WORKERS)
            max_retries: Attempts per page before giving up (defaults to Config.MAX_RETRIES)
            retry_delay: Base delay between retries, doubled per attempt
            timeout: Request timeout in seconds
            session: Optional pre-built requests session
        """
        self.host = host or Config.WIKI_HOST
        self.api_url = api_url or Config.WIKI_API_URL
        self.max_workers = max_workers or Config.MAX_WORKERS
        self.max_retries = max(1, max_retries if max_retries is not None else Config.MAX_RETRIES)
        self.retry_delay = retry_delay if retry_delay is not None else Config.RETRY_DELAY
        self.timeout = timeout if timeout is not None else Config.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': Config.USER_AGENT
        })
        # Pages that exhausted their retries or failed to parse in the last batch
        self.failed_pages: Dict[str, str] = {}

    def fetch_page(self, url: str) -> str:
        """
        Fetch the raw HTML of a wiki page

        Args:
            url: Full URL to fetch

        Returns:
            Page body with newlines and carriage returns removed

        Raises:
            PageFetchError: if every attempt failed
        """
        last_error = None

        for attempt in range(self.max_retries):
            try:
                logger.debug(f"Fetching: {url}")
                response = self.session.get(url, timeout=self.timeout)

                if response.status_code != 200:
                    raise NotFound(url, response.status_code)

                return response.text.replace('\n', '').replace('\r', '')

            except (NotFound, requests.RequestException) as e:
                last_error = e
                logger.error(f"Failed to fetch {url}: {e}")

                if attempt + 1 < self.max_retries:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.info(f"Retrying {url} in {delay}s (attempt {attempt + 2}/{self.max_retries})")
                    time.sleep(delay)

        raise PageFetchError(url, self.max_retries, last_error)

    def fetch_and_parse_pages(
        self,
        host: str,
        page_names: Sequence[str],
        parse_fn: Callable[[str], Any],
        empty: Callable[[], Any] = list
    ) -> Dict[str, Any]:
        """
        Fetch and parse a batch of pages concurrently

        Every page is fetched and parsed independently on a bounded worker
        pool. A page that fails is logged, recorded in ``failed_pages`` and
        mapped to ``empty()``.

        Args:
            host: Wiki host to build page URLs from
            page_names: Page names to fetch
            parse_fn: Function turning raw HTML into a parsed result
            empty: Factory for the result of a failed page

        Returns:
            Dictionary from every requested page name to its parsed result
        """
        self.failed_pages = {}
        parse_name = getattr(parse_fn, '__name__', 'parse')

        def fetch_and_parse(page_name: str) -> Any:
            try:
                html = self.fetch_page(page_url(host, page_name))
            except PageFetchError as e:
                logger.error(f"Giving up on {page_name}: {e}")
                self.failed_pages[page_name] = str(e)
                return empty()

            try:
                return parse_fn(html)
            except Exception as e:
                logger.error(f"{parse_name} failed for {page_name}: {e}")
                self.failed_pages[page_name] = f"{parse_name}: {e}"
                return empty()

        results: Dict[str, Any] = {}
        unique_names: List[str] = list(dict.fromkeys(page_names))

        try:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = {name: pool.submit(fetch_and_parse, name) for name in unique_names}
                for name, future in futures.items():
                    results[name] = future.result()
        except Exception as e:
            logger.error(f"fetch_and_parse_pages: {e}")

        if self.failed_pages:
            logger.warning(
                f"{len(self.failed_pages)}/{len(unique_names)} pages failed: "
                f"{', '.join(sorted(self.failed_pages))}"
            )

        # Every requested name is present even if the batch itself broke
        return {name: results[name] if name in results else empty() for name in unique_names}

    def fetch_image(self, url: str, assets_dir: Optional[str] = None) -> Path:
        """
        Download an image into the assets directory

        The download is skipped if a file with the derived name already
        exists. There is no retry. A failed download leaves no file behind.

        Args:
            url: Image URL
            assets_dir: Target directory (defaults to Config.ASSETS_DIR)

        Returns:
            Path of the local file

        Raises:
            NotFound: if the image URL does not answer with 200
        """
        directory = Path(assets_dir or Config.ASSETS_DIR)
        file_path = directory / image_file_name(url)

        if file_path.exists():
            logger.debug(f"Image already downloaded: {file_path.name}")
            return file_path

        directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Downloading image: {url}")
        response = self.session.get(url, stream=True, timeout=self.timeout)
        # Partial downloads stay under the .part name so the existence check never sees them
        part_path = file_path.with_name(file_path.name + '.part')

        try:
            if response.status_code != 200:
                raise NotFound(url, response.status_code)

            with open(part_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
            os.replace(part_path, file_path)
        except Exception:
            part_path.unlink(missing_ok=True)
            raise
        finally:
            response.close()

        logger.info(f"Saved image {file_path.name}")
        return file_path

    def fetch_ask_api_query(self, query: str) -> Dict[str, Any]:
        """
        Submit a Semantic MediaWiki Ask query

        Args:
            query: Query in Ask syntax, e.g. ``[[Category:Heroes]]|?Name``

        Returns:
            Decoded JSON response
        """
        url = f"{self.api_url}?action=ask&format=json&query={quote(query, safe='')}"
        response = self.session.get(url, timeout=self.timeout)
        return response.json()

    def fetch_api_query(self, params: Dict[str, str]) -> Dict[str, Any]:
        """
        Make a request to the MediaWiki API with arbitrary query parameters

        Args:
            params: Query parameters, overriding ``action=query&format=json``

        Returns:
            Decoded JSON response
        """
        query_params = {'action': 'query', 'format': 'json'}
        query_params.update(params)
        response = self.session.get(self.api_url, params=query_params, timeout=self.timeout)
        return response.json()

    def close(self):
        """Close the session"""
        self.session.close()
        logger.debug("Wiki fetcher session closed")

