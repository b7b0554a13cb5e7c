"""Template registry - remote attachment documents from source control."""

from vela_slack.registry.github import GitHubRegistry, RegistryError, Source

__all__ = [
    "GitHubRegistry",
    "RegistryError",
    "Source",
]
