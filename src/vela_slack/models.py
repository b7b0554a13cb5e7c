"""Data models for the Slack plugin.

BuildContext is the read-only namespace templates render against,
Message is the Slack webhook payload, and AttachmentSource selects where
an attachment document is loaded from.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Template names that do not follow plain snake_case -> CamelCase conversion
_TEMPLATE_NAME_OVERRIDES = {
    "build_author_sam_account_name": "BuildAuthorSAMAccountName",
}

# Legacy Repo* names kept for templates written against older plugin versions
_LEGACY_ALIASES = {
    "RepoBranch": "repository_branch",
    "RepoClone": "repository_clone",
    "RepoFullName": "repository_full_name",
    "RepoLink": "repository_link",
    "RepoName": "repository_name",
    "RepoOrg": "repository_org",
    "RepoPrivate": "repository_private",
    "RepoTimeout": "repository_timeout",
    "RepoTrusted": "repository_trusted",
}


def _template_name(attr: str) -> str:
    if attr in _TEMPLATE_NAME_OVERRIDES:
        return _TEMPLATE_NAME_OVERRIDES[attr]
    return "".join(part.capitalize() for part in attr.split("_"))


@dataclass(frozen=True)
class BuildContext:
    """Build and repository metadata exposed to message templates.

    Templates address fields by their Vela environment names, e.g.
    ``.BuildAuthorEmail`` or the legacy ``.RepoName``. Lookup by those
    names goes through ``__getitem__``; Python code uses the snake_case
    attributes.
    """

    build_author: str = ""
    build_author_email: str = ""
    build_author_sam_account_name: str = ""
    build_branch: str = ""
    build_channel: str = ""
    build_commit: str = ""
    build_created: int = 0
    build_enqueued: int = 0
    build_event: str = ""
    build_finished: int = 0
    build_host: str = ""
    build_link: str = ""
    build_message: str = ""
    build_number: int = 0
    build_parent: int = 0
    build_ref: str = ""
    build_started: int = 0
    build_source: str = ""
    build_tag: str = ""
    build_title: str = ""
    build_workspace: str = ""
    repository_branch: str = ""
    repository_clone: str = ""
    repository_full_name: str = ""
    repository_link: str = ""
    repository_name: str = ""
    repository_org: str = ""
    repository_private: str = ""
    repository_timeout: int = 0
    repository_trusted: str = ""

    def __getitem__(self, name: str) -> str | int:
        """Look up a field by its template name."""
        try:
            return getattr(self, TEMPLATE_FIELDS[name])
        except KeyError:
            raise KeyError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in TEMPLATE_FIELDS

    @property
    def repo_branch(self) -> str:
        return self.repository_branch

    @property
    def repo_clone(self) -> str:
        return self.repository_clone

    @property
    def repo_full_name(self) -> str:
        return self.repository_full_name

    @property
    def repo_link(self) -> str:
        return self.repository_link

    @property
    def repo_name(self) -> str:
        return self.repository_name

    @property
    def repo_org(self) -> str:
        return self.repository_org

    @property
    def repo_private(self) -> str:
        return self.repository_private

    @property
    def repo_timeout(self) -> int:
        return self.repository_timeout

    @property
    def repo_trusted(self) -> str:
        return self.repository_trusted

    def with_escaped_message(self) -> BuildContext:
        """Return a copy whose build message has newlines as ``\\n`` escapes.

        The build message is the only field that can carry raw newlines
        (commit title plus body), which would break the JSON document the
        message template renders into.
        """
        return dataclasses.replace(
            self, build_message=self.build_message.replace("\n", "\\n")
        )

    def template_values(self) -> dict[str, str | int]:
        """Return every field keyed by its template name."""
        return {name: getattr(self, attr) for name, attr in TEMPLATE_FIELDS.items()}


TEMPLATE_FIELDS: dict[str, str] = {
    _template_name(f.name): f.name for f in dataclasses.fields(BuildContext)
}
TEMPLATE_FIELDS.update(_LEGACY_ALIASES)


class Message(BaseModel):
    """Slack incoming-webhook message.

    Attachments are kept as free-form JSON objects so that any block a
    template author writes is delivered as-is. Empty fields are omitted
    from the serialized payload.
    """

    model_config = ConfigDict(extra="ignore")

    username: str = ""
    icon_emoji: str = ""
    icon_url: str = ""
    channel: str = ""
    thread_ts: str = ""
    text: str = ""
    parse: str = ""
    attachments: list[dict[str, Any]] = Field(default_factory=list)

    def to_json(self) -> bytes:
        """Serialize to compact JSON bytes, omitting empty fields."""
        return self.model_dump_json(exclude_defaults=True).encode("utf-8")

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready dictionary posted to the webhook."""
        return self.model_dump(mode="json", exclude_defaults=True)


@dataclass(frozen=True)
class AttachmentSource:
    """Where the attachment document comes from.

    Attributes:
        path: Local file path, or registry reference when ``remote`` is set.
        remote: Fetch ``path`` from the template registry instead of disk.
    """

    path: str = ""
    remote: bool = False

    @property
    def is_set(self) -> bool:
        return bool(self.path)
