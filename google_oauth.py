#!/usr/bin/env python3
"""
Google OAuth for the MCP services (Calendar, Sheets, Gmail, Docs).

The services run against the real Google APIs only when GOOGLE_CLIENT_ID,
GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN are all set; otherwise they stay
in mock mode and build_credentials() returns None.

Getting a refresh token (one time):
    python google_oauth.py
Opens the consent screen in a browser and prints GOOGLE_REFRESH_TOKEN=... for .env.
"""
from __future__ import annotations
import os, sys, logging
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from mcp_config import OAuthCredentials, load_oauth_credentials

SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/gmail.compose",
    "https://www.googleapis.com/auth/documents",
]
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_REDIRECT_URI = "http://localhost"

logger = logging.getLogger(__name__)


def build_credentials(oauth: OAuthCredentials) -> Optional[Credentials]:
    """
    Credentials carrying the refresh token, or None in mock mode.
    No network call is made here; google-auth fetches an access token the first
    time a client library uses these credentials.
    """
    if not oauth.is_configured:
        logger.warning(
            "Google OAuth2 credentials not found. Using mock mode. Set GOOGLE_CLIENT_ID, "
            "GOOGLE_CLIENT_SECRET, and GOOGLE_REFRESH_TOKEN in .env for real API access."
        )
        return None
    creds = Credentials(
        token=None,
        refresh_token=oauth.refresh_token,
        token_uri=TOKEN_URI,
        client_id=oauth.client_id,
        client_secret=oauth.client_secret,
        scopes=SCOPES,
    )
    logger.info("Google OAuth2 credentials initialized (real API mode)")
    return creds


def client_config(oauth: OAuthCredentials) -> Dict[str, Any]:
    """Installed-app client config, the same shape as a downloaded credentials.json."""
    if not (oauth.client_id and oauth.client_secret):
        raise ValueError("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required")
    return {
        "installed": {
            "client_id": oauth.client_id,
            "client_secret": oauth.client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [oauth.redirect_uri or DEFAULT_REDIRECT_URI],
        }
    }


def obtain_refresh_token(oauth: OAuthCredentials) -> str:
    flow = InstalledAppFlow.from_client_config(client_config(oauth), SCOPES)
    # offline + consent so Google hands back a refresh token even on re-consent
    creds = flow.run_local_server(port=0, prompt="consent", access_type="offline")
    if not creds.refresh_token:
        raise RuntimeError("Google did not return a refresh token. Revoke app access and try again.")
    return creds.refresh_token


# ------------- CLI ----------------
def main() -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING").upper())
    oauth = load_oauth_credentials()
    try:
        token = obtain_refresh_token(oauth)
    except ValueError as e:
        print(f"❌ {e}")
        print("   Add them to .env first (see STEP_BY_STEP_API_SETUP.md).")
        return 2
    except (RuntimeError, OAuth2Error, GoogleAuthError) as e:
        logger.debug("Consent flow failed", exc_info=e)
        print(f"❌ Could not obtain a refresh token: {e}")
        return 1
    print("✅ Add this line to your .env:\n")
    print(f"GOOGLE_REFRESH_TOKEN={token}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
