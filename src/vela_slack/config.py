"""Configuration management with Pydantic Settings.

Vela passes plugin parameters as ``PARAMETER_*`` environment variables and
build metadata as ``VELA_BUILD_*`` / ``VELA_REPO_*``. Each field accepts
the plugin-specific spelling first and the legacy names after it.

Parameters can also be mounted as files under ``/vela/parameters`` or
``/vela/secrets``; environment variables take precedence over files.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Level names accepted by earlier releases of the plugin
LOG_LEVEL_ALIASES: dict[str, LogLevel] = {
    "t": "DEBUG",
    "trace": "DEBUG",
    "d": "DEBUG",
    "debug": "DEBUG",
    "i": "INFO",
    "info": "INFO",
    "w": "WARNING",
    "warn": "WARNING",
    "warning": "WARNING",
    "e": "ERROR",
    "error": "ERROR",
    "f": "CRITICAL",
    "fatal": "CRITICAL",
    "p": "CRITICAL",
    "panic": "CRITICAL",
    "critical": "CRITICAL",
}


def _env(*names: str) -> AliasChoices:
    return AliasChoices(*names)


def _blank_to_zero(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return 0
    return v


def _field_keys(field: FieldInfo, field_name: str) -> list[str]:
    alias = field.validation_alias
    if not isinstance(alias, AliasChoices):
        return [field_name]
    return [c for c in alias.choices if isinstance(c, str)] + [field_name]


# Searched in order; the first existing file wins
PARAMETER_DIRS: tuple[str, ...] = ("/vela/parameters", "/vela/secrets")


class ParameterFileSource(PydanticBaseSettingsSource):
    """Read parameters from files mounted into the plugin container.

    Each settings class maps field names to paths relative to the entries
    of PARAMETER_DIRS through its ``parameter_files`` attribute, e.g.
    ``webhook`` to ``slack/webhook``.
    """

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self.directories = [Path(d) for d in PARAMETER_DIRS]
        self.parameter_files: dict[str, str] = getattr(settings_cls, "parameter_files", {})

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        relative = self.parameter_files.get(field_name)
        if relative is None:
            return None, field_name, False

        for directory in self.directories:
            path = directory / relative
            if path.is_file():
                return path.read_text(encoding="utf-8").rstrip("\r\n"), field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            keys = _field_keys(field, field_name)
            # Values from earlier sources (init, environment, .env) win over files
            if any(key in self.current_state for key in keys):
                continue
            value, _, _ = self.get_field_value(field, field_name)
            if value is not None:
                data[keys[0]] = value
        return data


class ParameterSettings(BaseSettings):
    """Settings group that also reads mounted parameter files."""

    parameter_files: ClassVar[dict[str, str]] = {}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            ParameterFileSource(settings_cls),
            file_secret_settings,
        )


class SlackSettings(ParameterSettings):
    """Webhook destination and base message fields."""

    model_config = SettingsConfigDict(env_prefix="")

    parameter_files: ClassVar[dict[str, str]] = {
        name: f"slack/{name}"
        for name in (
            "webhook",
            "filepath",
            "remote",
            "username",
            "icon_emoji",
            "icon_url",
            "channel",
            "thread_ts",
            "text",
            "parse",
        )
    }

    webhook: SecretStr | None = Field(
        default=None,
        validation_alias=_env("PARAMETER_WEBHOOK", "SLACK_WEBHOOK"),
        description="Slack webhook used to post messages to a channel",
    )
    filepath: str = Field(
        default="",
        validation_alias=_env("PARAMETER_FILEPATH", "SLACK_FILEPATH"),
        description="Path or registry reference of an attachment document",
    )
    remote: bool = Field(
        default=False,
        validation_alias=_env("PARAMETER_REMOTE", "SLACK_REMOTE"),
        description="Fetch the attachment document from the template registry",
    )
    username: str = Field(default="", validation_alias=_env("PARAMETER_USERNAME", "SLACK_USERNAME"))
    icon_emoji: str = Field(
        default="", validation_alias=_env("PARAMETER_ICON_EMOJI", "SLACK_ICON_EMOJI")
    )
    icon_url: str = Field(default="", validation_alias=_env("PARAMETER_ICON_URL", "SLACK_ICON_URL"))
    channel: str = Field(default="", validation_alias=_env("PARAMETER_CHANNEL", "SLACK_CHANNEL"))
    thread_ts: str = Field(
        default="", validation_alias=_env("PARAMETER_THREAD_TS", "SLACK_THREAD_TS")
    )
    text: str = Field(default="", validation_alias=_env("PARAMETER_TEXT", "SLACK_TEXT"))
    parse: str = Field(default="", validation_alias=_env("PARAMETER_PARSE", "SLACK_PARSE"))


class BuildSettings(BaseSettings):
    """Build metadata injected by Vela."""

    model_config = SettingsConfigDict(env_prefix="")

    author: str = Field(default="", validation_alias=_env("VELA_BUILD_AUTHOR", "BUILD_AUTHOR"))
    author_email: str = Field(
        default="", validation_alias=_env("VELA_BUILD_AUTHOR_EMAIL", "BUILD_AUTHOR_EMAIL")
    )
    branch: str = Field(default="", validation_alias=_env("VELA_BUILD_BRANCH", "BUILD_BRANCH"))
    channel: str = Field(default="", validation_alias=_env("VELA_BUILD_CHANNEL", "BUILD_CHANNEL"))
    commit: str = Field(default="", validation_alias=_env("VELA_BUILD_COMMIT", "BUILD_COMMIT"))
    created: int = Field(default=0, validation_alias=_env("VELA_BUILD_CREATED", "BUILD_CREATED"))
    enqueued: int = Field(
        default=0, validation_alias=_env("VELA_BUILD_ENQUEUED", "BUILD_ENQUEUED")
    )
    event: str = Field(default="", validation_alias=_env("VELA_BUILD_EVENT", "BUILD_EVENT"))
    finished: int = Field(
        default=0, validation_alias=_env("VELA_BUILD_FINISHED", "BUILD_FINISHED")
    )
    host: str = Field(default="", validation_alias=_env("VELA_BUILD_HOST", "BUILD_HOST"))
    link: str = Field(default="", validation_alias=_env("VELA_BUILD_LINK", "BUILD_LINK"))
    message: str = Field(default="", validation_alias=_env("VELA_BUILD_MESSAGE", "BUILD_MESSAGE"))
    number: int = Field(default=0, validation_alias=_env("VELA_BUILD_NUMBER", "BUILD_NUMBER"))
    parent: int = Field(default=0, validation_alias=_env("VELA_BUILD_PARENT", "BUILD_PARENT"))
    ref: str = Field(default="", validation_alias=_env("VELA_BUILD_REF", "BUILD_REF"))
    started: int = Field(default=0, validation_alias=_env("VELA_BUILD_STARTED", "BUILD_STARTED"))
    source: str = Field(default="", validation_alias=_env("VELA_BUILD_SOURCE", "BUILD_SOURCE"))
    tag: str = Field(default="", validation_alias=_env("VELA_BUILD_TAG", "BUILD_TAG"))
    title: str = Field(default="", validation_alias=_env("VELA_BUILD_TITLE", "BUILD_TITLE"))
    workspace: str = Field(
        default="", validation_alias=_env("VELA_BUILD_WORKSPACE", "BUILD_WORKSPACE")
    )

    @field_validator("created", "enqueued", "finished", "number", "parent", "started", mode="before")
    @classmethod
    def blank_as_zero(cls, v: Any) -> Any:
        """Treat an empty variable as an unset counter."""
        return _blank_to_zero(v)


class RepositorySettings(BaseSettings):
    """Repository metadata injected by Vela."""

    model_config = SettingsConfigDict(env_prefix="")

    branch: str = Field(default="", validation_alias=_env("VELA_REPO_BRANCH", "REPOSITORY_BRANCH"))
    clone: str = Field(default="", validation_alias=_env("VELA_REPO_CLONE", "REPOSITORY_CLONE"))
    full_name: str = Field(
        default="", validation_alias=_env("VELA_REPO_FULL_NAME", "REPOSITORY_FULL_NAME")
    )
    link: str = Field(default="", validation_alias=_env("VELA_REPO_LINK", "REPOSITORY_LINK"))
    name: str = Field(default="", validation_alias=_env("VELA_REPO_NAME", "REPOSITORY_NAME"))
    org: str = Field(default="", validation_alias=_env("VELA_REPO_ORG", "REPOSITORY_ORG"))
    private: str = Field(
        default="", validation_alias=_env("VELA_REPO_PRIVATE", "REPOSITORY_PRIVATE")
    )
    timeout: int = Field(
        default=0, validation_alias=_env("VELA_REPO_TIMEOUT", "REPOSITORY_TIMEOUT")
    )
    trusted: str = Field(
        default="", validation_alias=_env("VELA_REPO_TRUSTED", "REPOSITORY_TRUSTED")
    )

    @field_validator("timeout", mode="before")
    @classmethod
    def blank_as_zero(cls, v: Any) -> Any:
        """Treat an empty variable as an unset timeout."""
        return _blank_to_zero(v)


class RegistrySettings(BaseSettings):
    """Template registry used for remote attachment documents."""

    model_config = SettingsConfigDict(env_prefix="")

    url: str = Field(
        default="https://github.com",
        validation_alias=_env("PARAMETER_REGISTRY_URL", "SLACK_REGISTRY_URL"),
        description="Web address of the GitHub instance hosting templates",
    )
    token: SecretStr | None = Field(
        default=None,
        validation_alias=_env(
            "PARAMETER_REGISTRY_TOKEN", "SLACK_REGISTRY_TOKEN", "VELA_NETRC_PASSWORD"
        ),
        description="Access token for the template registry",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate registry URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Registry URL must be an HTTP(S) address")
        return v


class LdapSettings(ParameterSettings):
    """Directory used to resolve the build author's account name."""

    model_config = SettingsConfigDict(env_prefix="")

    parameter_files: ClassVar[dict[str, str]] = {
        "username": "ldap/username",
        "password": "ldap/password",
        "server": "ldap/server",
        "port": "ldap/port",
        "search_base": "ldap/searchbase",
    }

    username: str = Field(default="", validation_alias=_env("PARAMETER_LDAP_USERNAME", "LDAP_USERNAME"))
    password: SecretStr | None = Field(
        default=None, validation_alias=_env("PARAMETER_LDAP_PASSWORD", "LDAP_PASSWORD")
    )
    server: str = Field(default="", validation_alias=_env("PARAMETER_LDAP_SERVER", "LDAP_SERVER"))
    port: int = Field(
        default=636,
        validation_alias=_env("PARAMETER_LDAP_PORT", "LDAP_PORT"),
        ge=1,
        le=65535,
    )
    search_base: str = Field(
        default="", validation_alias=_env("PARAMETER_LDAP_SEARCH_BASE", "LDAP_SEARCH_BASE")
    )

    @property
    def enabled(self) -> bool:
        """Check if directory lookups are configured."""
        return bool(self.username) and self.password is not None


class GitHubSettings(ParameterSettings):
    """Credentials for looking up the build author's email on GitHub."""

    model_config = SettingsConfigDict(env_prefix="")

    parameter_files: ClassVar[dict[str, str]] = {
        "username": "github/username",
        "access_token": "github/token",
    }

    username: str = Field(
        default="", validation_alias=_env("PARAMETER_GITHUB_USERNAME", "GITHUB_USERNAME")
    )
    access_token: SecretStr | None = Field(
        default=None,
        validation_alias=_env("PARAMETER_GITHUB_ACCESS_TOKEN", "GITHUB_ACCESS_TOKEN"),
    )

    @property
    def enabled(self) -> bool:
        """Check if GitHub email lookups are configured."""
        return bool(self.username) and self.access_token is not None


class Settings(ParameterSettings):
    """Main plugin settings.

    Loads configuration from environment variables, .env files via
    python-dotenv, and parameter files mounted by Vela.

    Example:
        ```python
        from vela_slack.config import get_settings

        settings = get_settings()
        print(settings.slack.channel)
        print(settings.log_level)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    parameter_files: ClassVar[dict[str, str]] = {
        "log_level": "slack/log_level",
        "ssl_cert_file": "sslcert/filepath",
    }

    # Nested configuration groups
    slack: SlackSettings = Field(default_factory=SlackSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)
    repository: RepositorySettings = Field(default_factory=RepositorySettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    ldap: LdapSettings = Field(default_factory=LdapSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)

    # Plugin settings
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=_env("PARAMETER_LOG_LEVEL", "SLACK_LOG_LEVEL"),
        description="Logging level",
    )
    ssl_cert_file: str = Field(
        default="",
        validation_alias=_env("PARAMETER_SSL_CERT_FILE", "SSL_CERT_FILE"),
        description="CA bundle used to verify the directory server",
    )
    dry_run: bool = Field(
        default=False,
        validation_alias=_env("PARAMETER_DRY_RUN", "SLACK_DRY_RUN"),
        description="Compose the message without posting it",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Map the plugin's historical level names onto logging levels.

        Unrecognized names fall back to INFO.
        """
        if not isinstance(v, str):
            return v
        return LOG_LEVEL_ALIASES.get(v.strip().lower(), "INFO")

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def redacted_summary(self) -> dict[str, str | dict[str, str]]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with sensitive values masked.
        """
        return {
            "webhook": "(set)" if self.slack.webhook else "(not set)",
            "channel": self.slack.channel or "(default)",
            "filepath": self.slack.filepath or "(not set)",
            "remote": str(self.slack.remote),
            "registry": {
                "url": self.registry.url,
                "token": "(set)" if self.registry.token else "(not set)",
            },
            "ldap_enabled": str(self.ldap.enabled),
            "github_enabled": str(self.github.enabled),
            "log_level": self.log_level,
            "dry_run": str(self.dry_run),
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the settings singleton.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
