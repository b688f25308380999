"""Per-mailbox OAuth tokens for the Gmail API."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from . import constants
from .errors import CredentialError
from .gmail_client import GmailClient

logger = logging.getLogger(__name__)


def _token_filename(address: str) -> str:
    # Percent-encoding keeps distinct addresses in distinct files.
    return f"token_{quote(address.strip().lower(), safe='@')}.json"


class TokenStore:
    """Authorized-user token files, one per mailbox address."""

    def __init__(self, tokens_dir: Path | None = None) -> None:
        self.tokens_dir = Path(tokens_dir or constants.TOKENS_DIR)

    def path_for(self, address: str) -> Path:
        return self.tokens_dir / _token_filename(address)

    def exists(self, address: str) -> bool:
        return self.path_for(address).exists()

    def save(self, address: str, creds: Credentials) -> None:
        self.tokens_dir.mkdir(parents=True, exist_ok=True)
        self.path_for(address).write_text(creds.to_json())

    def delete(self, address: str) -> bool:
        path = self.path_for(address)
        if not path.exists():
            return False
        path.unlink()
        return True

    def load(self, address: str) -> Credentials:
        """Return valid credentials for ``address``.

        Expired tokens are refreshed and written back. Raises CredentialError
        when there is no token or it cannot be used.
        """
        path = self.path_for(address)
        if not path.exists():
            raise CredentialError(address, "no token on file, run 'gmail-labeler auth'")

        try:
            creds = Credentials.from_authorized_user_file(str(path), constants.SCOPES)
        except (ValueError, KeyError, OSError) as exc:
            raise CredentialError(address, f"unreadable token: {exc}") from exc

        if creds.valid:
            return creds
        if not (creds.expired and creds.refresh_token):
            raise CredentialError(address, "token is invalid and cannot be refreshed")

        try:
            creds.refresh(Request())
        except (RefreshError, TransportError) as exc:
            raise CredentialError(address, f"token refresh failed: {exc}") from exc

        logger.debug("Refreshed token for %s", address)
        try:
            self.save(address, creds)
        except OSError as exc:
            # The refreshed token is still usable for this run.
            logger.warning("Could not store refreshed token for %s: %s", address, exc)
        return creds


def authorize_mailbox(token_store: TokenStore, timeout: float) -> str:
    """Run the browser OAuth flow and store the token under the mailbox address.

    Returns the authorized address. Requires credentials.json at
    CREDENTIALS_PATH.
    """
    credentials_path = constants.CREDENTIALS_PATH
    if not credentials_path.exists():
        raise FileNotFoundError(
            f"Credentials file not found at {credentials_path}.\n"
            "Download your OAuth client credentials from the Google Cloud Console "
            "and save them as:\n"
            f"  {credentials_path}"
        )

    flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), constants.SCOPES)
    creds = flow.run_local_server(port=0)

    address = GmailClient.from_credentials(creds, timeout=timeout).get_profile_address()
    token_store.save(address, creds)
    logger.info("Stored token for %s", address)
    return address
