"""Build author email lookup against the GitHub users API."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger(__name__)

PUBLIC_HOST = "github.com"
PUBLIC_API_URL = "https://api.github.com"


class GitHubUserLookup:
    """Resolves a GitHub login to the email address on its public profile.

    Used when the webhook event did not carry the author's email. Every
    failure is logged and yields an empty string.
    """

    def __init__(
        self,
        username: str,
        access_token: str,
        *,
        timeout: float = 10.0,
        log: logging.Logger | None = None,
    ) -> None:
        self.username = username
        self.access_token = access_token
        self.timeout = timeout
        self._log = log or logger

    @staticmethod
    def users_url(source_url: str, login: str) -> str:
        """Build the users API URL for the host a build's source lives on.

        Raises:
            ValueError: If ``source_url`` has no scheme or host.
        """
        parts = urlsplit(source_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"build source is not an absolute URL: {source_url!r}")
        if parts.hostname == PUBLIC_HOST:
            return f"{PUBLIC_API_URL}/users/{login}"
        return f"{parts.scheme}://{parts.netloc}/api/v3/users/{login}"

    def lookup_email(self, source_url: str, login: str) -> str:
        """Return the email for ``login``, or an empty string.

        Args:
            source_url: The build's source URL; selects the GitHub host.
            login: GitHub login of the build author.
        """
        if not self.username or not self.access_token or not login:
            return ""

        try:
            url = self.users_url(source_url, login)
        except ValueError as e:
            self._log.error(f"unable to parse build source as URL: {e}")
            return ""

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, auth=(self.username, self.access_token))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._log.error(f"unable to fetch email address from GitHub: {e}")
            return ""

        if not response.is_success:
            self._log.error(
                f"unable to fetch email address from GitHub: status {response.status_code}"
            )
            return ""

        try:
            user = response.json()
        except ValueError as e:
            self._log.error(f"unable to unmarshal GitHub API response: {e}")
            return ""

        if not isinstance(user, dict):
            self._log.error("unable to unmarshal GitHub API response: not an object")
            return ""

        return str(user.get("email") or "")
