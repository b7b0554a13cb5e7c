"""Tests for the GitHub user email lookup."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from vela_slack.identity.github import GitHubUserLookup


@pytest.fixture
def lookup() -> GitHubUserLookup:
    """Create a lookup with credentials."""
    return GitHubUserLookup("vela-bot", "ghp_token")


def _mock_client(mock_client_class: MagicMock) -> MagicMock:
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    return mock_client


class TestUsersUrl:
    """Tests for GitHubUserLookup.users_url."""

    def test_public_github(self) -> None:
        """github.com sources use the public API."""
        url = GitHubUserLookup.users_url(
            "https://github.com/octocat/hello-world/commit/7fd1a60", "jdoe"
        )
        assert url == "https://api.github.com/users/jdoe"

    def test_enterprise(self) -> None:
        """Enterprise sources use the host's v3 API."""
        url = GitHubUserLookup.users_url("https://git.example.com/octocat/hello-world", "jdoe")
        assert url == "https://git.example.com/api/v3/users/jdoe"

    def test_relative_source(self) -> None:
        """A source without scheme and host is rejected."""
        with pytest.raises(ValueError):
            GitHubUserLookup.users_url("octocat/hello-world", "jdoe")


class TestLookupEmail:
    """Tests for GitHubUserLookup.lookup_email."""

    def test_success(self, lookup: GitHubUserLookup) -> None:
        """The profile email is returned."""
        with patch("httpx.Client") as mock_client_class:
            mock_client = _mock_client(mock_client_class)
            mock_response = MagicMock()
            mock_response.is_success = True
            mock_response.json.return_value = {"login": "jdoe", "email": "jdoe@company.com"}
            mock_client.get.return_value = mock_response

            email = lookup.lookup_email("https://git.example.com/octocat/hello-world", "jdoe")

            assert email == "jdoe@company.com"
            mock_client.get.assert_called_once_with(
                "https://git.example.com/api/v3/users/jdoe",
                auth=("vela-bot", "ghp_token"),
            )

    def test_no_public_email(self, lookup: GitHubUserLookup) -> None:
        """A null email becomes an empty string."""
        with patch("httpx.Client") as mock_client_class:
            mock_client = _mock_client(mock_client_class)
            mock_client.get.return_value = MagicMock(
                is_success=True, json=MagicMock(return_value={"email": None})
            )

            assert lookup.lookup_email("https://github.com/octocat/hello-world", "jdoe") == ""

    @pytest.mark.parametrize(
        ("username", "token", "login"),
        [("", "ghp_token", "jdoe"), ("vela-bot", "", "jdoe"), ("vela-bot", "ghp_token", "")],
    )
    def test_missing_inputs_skip_request(self, username: str, token: str, login: str) -> None:
        """No request is made without credentials and a login."""
        lookup = GitHubUserLookup(username, token)
        with patch("httpx.Client") as mock_client_class:
            assert lookup.lookup_email("https://github.com/octocat/hello-world", login) == ""
            mock_client_class.assert_not_called()

    def test_bad_source(self, lookup: GitHubUserLookup) -> None:
        """An unparseable source yields an empty string."""
        with patch("httpx.Client") as mock_client_class:
            assert lookup.lookup_email("not a url", "jdoe") == ""
            mock_client_class.assert_not_called()

    def test_http_error(self, lookup: GitHubUserLookup) -> None:
        """Network failures yield an empty string."""
        with patch("httpx.Client") as mock_client_class:
            mock_client = _mock_client(mock_client_class)
            mock_client.get.side_effect = httpx.ConnectError("connection refused")

            assert lookup.lookup_email("https://github.com/octocat/hello-world", "jdoe") == ""

    def test_non_success_status(self, lookup: GitHubUserLookup) -> None:
        """Non-2xx responses yield an empty string."""
        with patch("httpx.Client") as mock_client_class:
            mock_client = _mock_client(mock_client_class)
            mock_client.get.return_value = MagicMock(is_success=False, status_code=404)

            assert lookup.lookup_email("https://github.com/octocat/hello-world", "jdoe") == ""

    def test_invalid_json(self, lookup: GitHubUserLookup) -> None:
        """Undecodable bodies yield an empty string."""
        with patch("httpx.Client") as mock_client_class:
            mock_client = _mock_client(mock_client_class)
            mock_client.get.return_value = MagicMock(
                is_success=True, json=MagicMock(side_effect=ValueError("bad json"))
            )

            assert lookup.lookup_email("https://github.com/octocat/hello-world", "jdoe") == ""

    def test_non_object_body(self, lookup: GitHubUserLookup) -> None:
        """A JSON body that is not an object yields an empty string."""
        with patch("httpx.Client") as mock_client_class:
            mock_client = _mock_client(mock_client_class)
            mock_client.get.return_value = MagicMock(
                is_success=True, json=MagicMock(return_value=["jdoe"])
            )

            assert lookup.lookup_email("https://github.com/octocat/hello-world", "jdoe") == ""

    def test_invalid_port_in_source(self, lookup: GitHubUserLookup) -> None:
        """A source with a malformed port yields an empty string."""
        assert lookup.lookup_email("https://git.example.com:abc/octocat/hello-world", "jdoe") == ""

    def test_invalid_url_from_client(self, lookup: GitHubUserLookup) -> None:
        """URL errors raised by the client yield an empty string."""
        with patch("httpx.Client") as mock_client_class:
            mock_client = _mock_client(mock_client_class)
            mock_client.get.side_effect = httpx.InvalidURL("Invalid port: 'abc'")

            assert lookup.lookup_email("https://github.com/octocat/hello-world", "jdoe") == ""
