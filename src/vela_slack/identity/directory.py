"""Build author account lookup against an LDAP directory."""

from __future__ import annotations

import logging
import ssl

from ldap3 import SUBTREE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

logger = logging.getLogger(__name__)

ACCOUNT_ATTRIBUTE = "sAMAccountName"
SEARCH_ATTRIBUTES = ["displayName", ACCOUNT_ATTRIBUTE, "mail"]
DEFAULT_PORT = 636


class DirectoryLookup:
    """Resolves an email address to a directory account name.

    Connects over LDAPS, verifying the server against a CA bundle, and
    only trusts a search that returns exactly one entry. Any failure is
    logged and yields an empty string.
    """

    def __init__(
        self,
        server: str,
        username: str,
        password: str,
        search_base: str,
        *,
        port: int = DEFAULT_PORT,
        ca_cert_file: str = "",
        timeout: float = 10.0,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the directory lookup.

        Args:
            server: Directory host name.
            username: Bind DN or user principal.
            password: Bind password.
            search_base: Base DN searched for the author.
            port: LDAPS port.
            ca_cert_file: PEM bundle used to verify the server.
            timeout: Connect timeout in seconds.
            log: Logger to report through.
        """
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.search_base = search_base
        self.ca_cert_file = ca_cert_file
        self.timeout = timeout
        self._log = log or logger

    def _connect(self) -> Connection:
        tls = Tls(
            validate=ssl.CERT_REQUIRED,
            ca_certs_file=self.ca_cert_file or None,
            sni=self.server,
        )
        server = Server(
            self.server,
            port=self.port,
            use_ssl=True,
            tls=tls,
            connect_timeout=self.timeout,
        )
        return Connection(server, user=self.username, password=self.password)

    def lookup(self, email: str) -> str:
        """Return the account name registered for ``email``, or ``""``."""
        if not self.username or not self.password or not email:
            return ""

        conn: Connection | None = None
        try:
            conn = self._connect()
            if not conn.bind():
                self._log.error(f"unable to bind to directory: {conn.result}")
                return ""

            conn.search(
                self.search_base,
                f"(mail={escape_filter_chars(email)})",
                search_scope=SUBTREE,
                attributes=SEARCH_ATTRIBUTES,
            )
            entries = conn.entries
            if len(entries) != 1:
                self._log.error(
                    f"user does not exist or too many entries returned: {len(entries)}"
                )
                return ""

            value = entries[0][ACCOUNT_ATTRIBUTE].value
            return str(value) if value else ""
        except (LDAPException, OSError) as e:
            self._log.error(f"directory lookup failed: {e}")
            return ""
        finally:
            if conn is not None and conn.bound:
                conn.unbind()
