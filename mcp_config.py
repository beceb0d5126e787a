"""
MCP configuration: which Google integrations are on and what they point at.

Every value comes from environment variables (usually a .env file loaded by the
entry point). Functions here take the mapping to read from, so callers and tests
can hand in their own; os.environ is only consulted when nothing is passed.

Env:
  GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET / GOOGLE_REFRESH_TOKEN - OAuth (all three => real API)
  GOOGLE_REDIRECT_URI        - optional
  GOOGLE_CALENDAR_ID         - default: primary
  GOOGLE_CALENDAR_ENABLED    - opt-out, see parse_enabled()
  GOOGLE_SHEETS_PRE_BOOKINGS_SPREADSHEET_ID
  GOOGLE_SHEETS_SHEET_NAME   - default: Sheet1
  GOOGLE_DOCS_PRE_BOOKINGS_DOC_ID - default: pre-bookings-doc-id
  GOOGLE_DOCS_ENABLED        - opt-out
  ADVISOR_EMAIL              - default: advisor@example.com
  GMAIL_ENABLED              - opt-out
"""
from __future__ import annotations
import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict

DEFAULT_CALENDAR_ID = "primary"
DEFAULT_PRE_BOOKINGS_DOC_ID = "pre-bookings-doc-id"
DEFAULT_ADVISOR_EMAIL = "advisor@example.com"
DEFAULT_SHEET_NAME = "Sheet1"

# Exact, case-sensitive. "0", "no", "False" do NOT disable an integration.
FALSY_TOKENS = frozenset({"false"})

SPREADSHEET_URL = "https://docs.google.com/spreadsheets/d/{id}/edit"


def parse_enabled(value: Optional[str]) -> bool:
    """Integrations are enabled unless explicitly switched off with a token from FALSY_TOKENS."""
    return value not in FALSY_TOKENS


def _env(env: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if env is None else env


def _get_or(env: Mapping[str, str], name: str, default: str) -> str:
    # empty counts as unset
    return env.get(name) or default


# ---------- Schemas ---------
class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class CalendarConfig(_Frozen):
    calendar_id: str = DEFAULT_CALENDAR_ID
    enabled: bool = True


class DocsConfig(_Frozen):
    pre_bookings_doc_id: str = DEFAULT_PRE_BOOKINGS_DOC_ID
    enabled: bool = True


class GmailConfig(_Frozen):
    advisor_email: str = DEFAULT_ADVISOR_EMAIL  # notification address, not an id
    enabled: bool = True


class SheetsConfig(_Frozen):
    spreadsheet_id: Optional[str] = None
    sheet_name: str = DEFAULT_SHEET_NAME

    @property
    def spreadsheet_url(self) -> Optional[str]:
        if not self.spreadsheet_id:
            return None
        return SPREADSHEET_URL.format(id=self.spreadsheet_id)


class GoogleConfig(_Frozen):
    calendar: CalendarConfig
    docs: DocsConfig
    gmail: GmailConfig
    sheets: SheetsConfig


class McpConfig(_Frozen):
    google: GoogleConfig


class OAuthCredentials(_Frozen):
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None
    redirect_uri: Optional[str] = None  # never affects is_configured

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    @property
    def mode(self) -> Literal["real", "mock"]:
        return "real" if self.is_configured else "mock"


# ---------- Resolvers ---------
def get_sheets_config(env: Optional[Mapping[str, str]] = None) -> SheetsConfig:
    env = _env(env)
    return SheetsConfig(
        spreadsheet_id=env.get("GOOGLE_SHEETS_PRE_BOOKINGS_SPREADSHEET_ID") or None,
        sheet_name=_get_or(env, "GOOGLE_SHEETS_SHEET_NAME", DEFAULT_SHEET_NAME),
    )


def get_mcp_config(env: Optional[Mapping[str, str]] = None) -> McpConfig:
    """
    Build a fresh McpConfig. Missing values fall back to the defaults above;
    identifiers are passed through unchecked, so a bad calendar id only shows
    up once a service tries to use it.
    """
    env = _env(env)
    return McpConfig(
        google=GoogleConfig(
            calendar=CalendarConfig(
                calendar_id=_get_or(env, "GOOGLE_CALENDAR_ID", DEFAULT_CALENDAR_ID),
                enabled=parse_enabled(env.get("GOOGLE_CALENDAR_ENABLED")),
            ),
            docs=DocsConfig(
                pre_bookings_doc_id=_get_or(env, "GOOGLE_DOCS_PRE_BOOKINGS_DOC_ID", DEFAULT_PRE_BOOKINGS_DOC_ID),
                enabled=parse_enabled(env.get("GOOGLE_DOCS_ENABLED")),
            ),
            gmail=GmailConfig(
                advisor_email=_get_or(env, "ADVISOR_EMAIL", DEFAULT_ADVISOR_EMAIL),
                enabled=parse_enabled(env.get("GMAIL_ENABLED")),
            ),
            sheets=get_sheets_config(env),
        )
    )


def load_oauth_credentials(env: Optional[Mapping[str, str]] = None) -> OAuthCredentials:
    env = _env(env)
    return OAuthCredentials(
        client_id=env.get("GOOGLE_CLIENT_ID"),
        client_secret=env.get("GOOGLE_CLIENT_SECRET"),
        refresh_token=env.get("GOOGLE_REFRESH_TOKEN"),
        redirect_uri=env.get("GOOGLE_REDIRECT_URI"),
    )
