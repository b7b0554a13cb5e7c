"""GitHub template registry client.

Resolves path-like template references such as

    github.example.com/octocat/templates/slack/attachment.json@main

and fetches the referenced file through the GitHub contents API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://github.com"
PUBLIC_HOST = "github.com"
PUBLIC_API_URL = "https://api.github.com"
ENTERPRISE_API_PATH = "/api/v3"
RAW_MEDIA_TYPE = "application/vnd.github.raw"


class RegistryError(Exception):
    """Raised when a template reference is invalid or cannot be fetched."""


@dataclass(frozen=True)
class Source:
    """A resolved template location."""

    host: str
    org: str
    repo: str
    name: str
    ref: str = ""


class GitHubRegistry:
    """Template registry backed by a GitHub or GitHub Enterprise instance."""

    def __init__(
        self,
        url: str = DEFAULT_REGISTRY_URL,
        token: str = "",
        *,
        timeout: float = 10.0,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the registry client.

        Args:
            url: Web address of the GitHub instance.
            token: Access token used for every request.
            timeout: HTTP request timeout in seconds.
            log: Logger to report through.

        Raises:
            RegistryError: If ``url`` is not an HTTP(S) address.
        """
        parts = urlsplit(url)
        try:
            valid = parts.scheme in ("http", "https") and bool(parts.hostname) and parts.port != 0
        except ValueError:
            # Non-numeric or out of range port
            valid = False
        if not valid:
            raise RegistryError(f"invalid registry url provided: {url}")

        self.url = url.rstrip("/")
        self.host = parts.netloc
        self.token = token
        self.timeout = timeout
        self._log = log or logger

        if parts.hostname == PUBLIC_HOST:
            self.api_url = PUBLIC_API_URL
        else:
            self.api_url = self.url + ENTERPRISE_API_PATH

    def parse(self, reference: str) -> Source:
        """Parse a template reference into its source location.

        Accepted forms, each with an optional ``@<ref>`` suffix:

        - ``<host>/<org>/<repo>/<path>``
        - ``<org>/<repo>/<path>`` (uses this registry's host)

        Args:
            reference: Path-like template reference.

        Returns:
            The resolved Source.

        Raises:
            RegistryError: If the reference has too few segments.
        """
        path, _, ref = reference.strip().partition("@")
        parts = [p for p in path.split("/") if p]

        if len(parts) >= 4 or (len(parts) >= 3 and parts[0].lower() == self.host.lower()):
            if len(parts) < 4:
                raise RegistryError(f"invalid template source provided: {reference}")
            host, org, repo, name = parts[0], parts[1], parts[2], "/".join(parts[3:])
        elif len(parts) == 3:
            host, org, repo, name = self.host, parts[0], parts[1], parts[2]
        else:
            raise RegistryError(f"invalid template source provided: {reference}")

        return Source(host=host, org=org, repo=repo, name=name, ref=ref)

    def template(self, source: Source) -> bytes:
        """Fetch the raw contents of a template file.

        Args:
            source: Location returned by parse().

        Returns:
            File contents.

        Raises:
            RegistryError: If the request fails or returns a non-2xx status.
        """
        url = f"{self.api_url}/repos/{source.org}/{source.repo}/contents/{source.name}"
        params = {"ref": source.ref} if source.ref else None
        headers = {"Accept": RAW_MEDIA_TYPE}
        if self.token:
            headers["Authorization"] = f"token {self.token}"

        self._log.debug(f"Fetching template {source.org}/{source.repo}/{source.name}")

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, params=params, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RegistryError(f"unable to retrieve template {source.name}: {e}") from e

        if not response.is_success:
            raise RegistryError(
                f"unable to retrieve template {source.name}: "
                f"{response.status_code} {response.text}"
            )

        return response.content
