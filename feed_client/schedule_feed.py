"""HTTP client for the versioned schedule feed."""
import logging
import time

import requests

from event_cache.errors import FeedUnavailableError, MalformedFeedError
from event_cache.models import FeedUpdate
from feed_client.payload import parse_update

logger = logging.getLogger(__name__)


class ScheduleFeedClient:
    """Fetches schedule changes since a version from the remote feed."""

    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(self, base_url: str, timeout: int = 30):
        """
        Initialize the feed client.

        Args:
            base_url: URL of the feed's update endpoint
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.base_url = base_url
        self.timeout = timeout

    def get_updates(self, since_version: int) -> FeedUpdate:
        """
        Fetch all changes made after ``since_version``.

        Args:
            since_version: Last version committed locally

        Returns:
            FeedUpdate with the new version and changed/deleted records

        Raises:
            FeedUnavailableError: If every attempt fails
            MalformedFeedError: If the response is not a valid update
        """
        response = self._fetch(since_version)
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedFeedError(f"response is not JSON: {e}") from e
        return parse_update(payload)

    def _fetch(self, since_version: int) -> requests.Response:
        """
        GET the update endpoint with exponential backoff between attempts.

        Raises:
            FeedUnavailableError: If all retry attempts fail
        """
        params = {'version': since_version}

        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(f"Fetching feed updates (attempt {attempt + 1}/{self.MAX_RETRIES})")
                response = requests.get(
                    self.base_url,
                    params=params,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise FeedUnavailableError(str(e)) from e
