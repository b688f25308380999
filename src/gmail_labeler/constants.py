"""Constants for Gmail Labeler."""

from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".gmail-labeler"
CONFIG_PATH = CONFIG_DIR / "config.json"
CREDENTIALS_PATH = CONFIG_DIR / "credentials.json"
TOKENS_DIR = CONFIG_DIR / "tokens"
MAILBOXES_PATH = CONFIG_DIR / "mailboxes.json"
RUN_LOG_PATH = CONFIG_DIR / "run_log.json"

# --- Gmail API ---
SCOPES = ["https://www.googleapis.com/auth/gmail.modify"]
INBOX_LABEL_ID = "INBOX"
UNREAD_QUERY = "is:unread"
USER_LABEL_TYPE = "user"
HTTP_CONFLICT = 409

# --- Pipeline defaults ---
DEFAULT_CATEGORIES = (
    "Action Required",
    "Follow Up",
    "Client",
    "Important",
    "Receipts",
    "Marketing",
    "Archived",
)
DEFAULT_FALLBACK_CATEGORY = "Spam or Ignore"
DEFAULT_BATCH_SIZE = 5  # unread messages per mailbox per run
DEFAULT_BODY_CHAR_LIMIT = 2000
DEFAULT_SCHEDULE = ("0 7 * * *", "0 15 * * *")
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds, per external call
DEFAULT_MAX_WORKERS = 1

# --- Display ---
HISTORY_LIMIT = 10
NO_SUBJECT = "(no subject)"
