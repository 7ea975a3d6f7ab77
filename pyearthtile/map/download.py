"""Tile fetch contract and the default HTTP fetcher.

Map sources compose a `TileRequest` and hand it to a `TileFetcher`. The
fetcher owns transport, retries and caching policy; map sources only return
the `FetchResult` it reports.
"""
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)


class FetchResult(IntEnum):
    """Outcome of a tile fetch."""
    SUCCESS = 0
    VALIDATION_FAILED = -1
    NETWORK_ERROR = -2
    FILE_WRITE_ERROR = -4


@dataclass(frozen=True)
class DownloadOptions:
    """Per-source download policy.

    Attributes:
        referer: Referer header to send, if any
        follow_location: Maximum number of redirects to follow (0 = none)
        check_file: Validity policy applied to the downloaded file
    """
    referer: Optional[str] = None
    follow_location: int = 0
    check_file: Optional[Callable[[str], bool]] = None


@dataclass(frozen=True)
class TileRequest:
    """Everything a fetcher needs to download one tile."""
    host: str
    uri: str
    options: DownloadOptions

    @property
    def url(self) -> str:
        return f"http://{self.host}{self.uri}"


class TileFetcher(ABC):
    """Contract of the tile fetch orchestrator."""

    @abstractmethod
    def fetch(self, host: str, uri: str, destination: str, options: DownloadOptions) -> FetchResult:
        """Download `uri` from `host` into `destination` and validate it."""

    def fetch_request(self, request: TileRequest, destination: str) -> FetchResult:
        return self.fetch(request.host, request.uri, destination, request.options)


class HttpTileFetcher(TileFetcher):
    """
    Plain HTTP fetcher built on requests.

    The body is written to a temporary file next to the destination and
    renamed into place only once it passed the validity check, so an existing
    tile is never replaced by a broken download. No retries.

    Each thread gets its own `requests.Session`. A session passed in by the
    caller is shared by every thread calling `fetch`; only do that from a
    single thread.

    Args:
        timeout: Socket timeout in seconds
        user_agent: User-Agent header value
        session: Optional requests session to reuse connections
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = 'pyearthtile',
        session: Optional[requests.Session] = None
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._shared_session = session
        self._local = threading.local()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(timeout={self.timeout})"

    @property
    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def _headers(self, options: DownloadOptions):
        headers = {'User-Agent': self.user_agent}
        if options.referer:
            headers['Referer'] = options.referer
        return headers

    def fetch(self, host: str, uri: str, destination: str, options: DownloadOptions) -> FetchResult:
        url = f"http://{host}{uri}"
        try:
            response = self.session.get(
                url,
                headers=self._headers(options),
                timeout=self.timeout,
                allow_redirects=options.follow_location > 0,
            )
        except requests.RequestException as e:
            logger.warning("Download of %s failed: %s", url, e)
            return FetchResult.NETWORK_ERROR

        if response.status_code != 200:
            logger.warning("Download of %s failed: HTTP %d", url, response.status_code)
            return FetchResult.NETWORK_ERROR

        directory = os.path.dirname(os.path.abspath(destination))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
            with os.fdopen(fd, 'wb') as f:
                f.write(response.content)
        except OSError as e:
            logger.error("Cannot write %s: %s", destination, e)
            return FetchResult.FILE_WRITE_ERROR

        try:
            if options.check_file and not options.check_file(tmp_path):
                logger.warning("Downloaded file for %s failed the validity check", url)
                return FetchResult.VALIDATION_FAILED
            try:
                os.replace(tmp_path, destination)
            except OSError as e:
                logger.error("Cannot move download into %s: %s", destination, e)
                return FetchResult.FILE_WRITE_ERROR
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

        logger.debug("Downloaded %s -> %s", url, destination)
        return FetchResult.SUCCESS
