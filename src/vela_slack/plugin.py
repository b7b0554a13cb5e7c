"""Plugin orchestration: validate the configuration, compose, deliver."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vela_slack.errors import ConfigurationError
from vela_slack.identity.directory import DirectoryLookup
from vela_slack.identity.github import GitHubUserLookup
from vela_slack.message.assembler import MessageAssembler
from vela_slack.message.attachments import AttachmentResolver
from vela_slack.models import AttachmentSource, BuildContext, Message
from vela_slack.registry.github import GitHubRegistry, RegistryError
from vela_slack.transport.slack import SlackWebhook

if TYPE_CHECKING:
    from vela_slack.config import Settings

logger = logging.getLogger(__name__)


def resolve_account_name(settings: Settings, log: logging.Logger | None = None) -> str:
    """Look up the build author's directory account name.

    Falls back to the GitHub users API for the author's email when the
    build did not provide one. Returns an empty string when lookups are
    not configured or fail.
    """
    log = log or logger
    if not settings.ldap.enabled:
        return ""

    email = settings.build.author_email
    if not email and settings.github.enabled:
        token = settings.github.access_token
        github = GitHubUserLookup(
            settings.github.username,
            token.get_secret_value() if token else "",
            log=log,
        )
        email = github.lookup_email(settings.build.source, settings.build.author)

    password = settings.ldap.password
    directory = DirectoryLookup(
        settings.ldap.server,
        settings.ldap.username,
        password.get_secret_value() if password else "",
        settings.ldap.search_base,
        port=settings.ldap.port,
        ca_cert_file=settings.ssl_cert_file,
        log=log,
    )
    return directory.lookup(email)


def check_message_config(webhook: str, text: str, source: AttachmentSource) -> None:
    """Fail fast on a configuration that cannot produce a message.

    Raises:
        ConfigurationError: If no webhook is set, or neither text nor
            an attachment path is given.
    """
    if not webhook:
        raise ConfigurationError("no webhook provided")

    if not text and not source.is_set:
        raise ConfigurationError("must provide text, filepath, or both")


def build_context(settings: Settings, account_name: str = "") -> BuildContext:
    """Create the template namespace from settings."""
    build = settings.build
    repo = settings.repository
    return BuildContext(
        build_author=build.author,
        build_author_email=build.author_email,
        build_author_sam_account_name=account_name,
        build_branch=build.branch,
        build_channel=build.channel,
        build_commit=build.commit,
        build_created=build.created,
        build_enqueued=build.enqueued,
        build_event=build.event,
        build_finished=build.finished,
        build_host=build.host,
        build_link=build.link,
        build_message=build.message,
        build_number=build.number,
        build_parent=build.parent,
        build_ref=build.ref,
        build_started=build.started,
        build_source=build.source,
        build_tag=build.tag,
        build_title=build.title,
        build_workspace=build.workspace,
        repository_branch=repo.branch,
        repository_clone=repo.clone,
        repository_full_name=repo.full_name,
        repository_link=repo.link,
        repository_name=repo.name,
        repository_org=repo.org,
        repository_private=repo.private,
        repository_timeout=repo.timeout,
        repository_trusted=repo.trusted,
    )


class Plugin:
    """A single notification run.

    Holds the webhook destination, the base message fields, the
    attachment source and the build context, and turns them into one
    delivered Slack message.
    """

    def __init__(
        self,
        webhook: str,
        message: Message,
        context: BuildContext,
        source: AttachmentSource | None = None,
        *,
        registry: GitHubRegistry | None = None,
        transport: SlackWebhook | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the plugin.

        Args:
            webhook: Slack webhook URL.
            message: Base message fields.
            context: Build metadata for templates.
            source: Attachment document location.
            registry: Registry for remote attachment documents.
            transport: Webhook transport; created from ``webhook`` if omitted.
            log: Logger to report through.
        """
        self.webhook = webhook
        self.message = message
        self.context = context
        self.source = source or AttachmentSource()
        self.registry = registry
        self._log = log or logger
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, log: logging.Logger | None = None) -> Plugin:
        """Create a plugin from settings, resolving the author identity.

        The configuration is checked before any identity lookup so that
        an unusable configuration fails without touching the network.

        Raises:
            ConfigurationError: If the configuration cannot produce a message.
        """
        log = log or logger
        slack = settings.slack
        webhook = slack.webhook.get_secret_value() if slack.webhook else ""
        source = AttachmentSource(path=slack.filepath, remote=slack.remote)
        check_message_config(webhook, slack.text, source)

        registry = None
        if slack.remote:
            token = settings.registry.token
            try:
                registry = GitHubRegistry(
                    settings.registry.url,
                    token.get_secret_value() if token else "",
                    log=log,
                )
            except RegistryError as e:
                raise ConfigurationError(str(e)) from e

        return cls(
            webhook=webhook,
            message=Message(
                username=slack.username,
                icon_emoji=slack.icon_emoji,
                icon_url=slack.icon_url,
                channel=slack.channel,
                thread_ts=slack.thread_ts,
                text=slack.text,
                parse=slack.parse,
            ),
            context=build_context(settings, resolve_account_name(settings, log)),
            source=source,
            registry=registry,
            log=log,
        )

    @property
    def transport(self) -> SlackWebhook:
        if self._transport is None:
            self._transport = SlackWebhook(self.webhook, log=self._log)
        return self._transport

    def validate(self) -> None:
        """Check the configuration can produce a message.

        Raises:
            ConfigurationError: If no webhook is set, or neither text nor
                an attachment path is given.
        """
        self._log.debug("validating plugin configuration")
        check_message_config(self.webhook, self.message.text, self.source)

    def compose(self) -> Message:
        """Validate, then build the rendered message without sending it."""
        self.validate()
        self._log.debug("running plugin with provided configuration")

        resolver = AttachmentResolver(self.registry, log=self._log)
        assembler = MessageAssembler(resolver, log=self._log)
        return assembler.assemble(self.message, self.source, self.context)

    def execute(self, *, dry_run: bool = False) -> Message:
        """Compose the message and post it to the webhook.

        Args:
            dry_run: Compose and log the payload but skip delivery.

        Returns:
            The message that was (or would have been) posted.

        Raises:
            PluginError: On any configuration, resolution, template,
                integrity or transport failure.
        """
        msg = self.compose()

        if dry_run:
            self._log.info(f"Dry run, not posting webhook message: {msg.to_json().decode()}")
            return msg

        self._log.info("Posting webhook message...")
        self.transport.send(msg)
        self._log.info("Plugin finished...")
        return msg
