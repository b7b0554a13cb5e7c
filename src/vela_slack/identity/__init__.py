"""Best-effort build author identity enrichment."""

from vela_slack.identity.directory import DirectoryLookup
from vela_slack.identity.github import GitHubUserLookup

__all__ = [
    "DirectoryLookup",
    "GitHubUserLookup",
]
