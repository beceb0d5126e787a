#!/usr/bin/env python3
"""
Quick diagnostic: are the MCP services going to hit the real Google APIs?

Run:
    python check_mcp_config.py
Always exits 0; it only reports.
"""
from __future__ import annotations
import os, sys, logging
from typing import Mapping, Optional

from dotenv import load_dotenv

from mcp_config import DEFAULT_CALENDAR_ID, get_sheets_config, load_oauth_credentials

RULE = "=" * 50


def _set_or_missing(value: Optional[str]) -> str:
    return "✅ Set" if value else "❌ Missing"


def report(env: Optional[Mapping[str, str]] = None) -> bool:
    """Print the configuration report. Returns True when OAuth is configured (real API mode)."""
    oauth = load_oauth_credentials(env)
    sheets = get_sheets_config(env)
    calendar_id = (os.environ if env is None else env).get("GOOGLE_CALENDAR_ID")

    print("\n🔍 MCP Configuration Check\n")
    print(RULE)

    print("\n📋 OAuth Credentials:")
    print(f"  GOOGLE_CLIENT_ID: {_set_or_missing(oauth.client_id)}")
    print(f"  GOOGLE_CLIENT_SECRET: {_set_or_missing(oauth.client_secret)}")
    print(f"  GOOGLE_REFRESH_TOKEN: {_set_or_missing(oauth.refresh_token)}")
    print(f"  GOOGLE_REDIRECT_URI: {oauth.redirect_uri or 'Not set (optional)'}")
    status = "✅ CONFIGURED (Real API)" if oauth.is_configured else "❌ NOT CONFIGURED (Mock Mode)"
    print(f"\n  OAuth Status: {status}")

    print("\n📅 Google Calendar:")
    print(f"  GOOGLE_CALENDAR_ID: {calendar_id or DEFAULT_CALENDAR_ID}")

    print("\n📊 Google Sheets:")
    print(f"  GOOGLE_SHEETS_PRE_BOOKINGS_SPREADSHEET_ID: {_set_or_missing(sheets.spreadsheet_id)}")
    print(f"  GOOGLE_SHEETS_SHEET_NAME: {sheets.sheet_name}")
    if sheets.spreadsheet_url:
        print(f"  Spreadsheet Link: {sheets.spreadsheet_url}")

    print("\n📧 Gmail:")
    print("  Uses OAuth credentials (same as above)")

    print("\n" + RULE)
    print("\n📊 Summary:\n")
    if oauth.is_configured:
        print("✅ OAuth credentials are configured")
        print("✅ MCP services will use REAL Google APIs")
        if not sheets.spreadsheet_id:
            print("⚠️  Warning: Google Sheets ID is missing")
            print("   Sheets entries will not be created")
    else:
        print("❌ OAuth credentials are NOT configured")
        print("❌ MCP services will use MOCK mode (no real API calls)")
        print("\n📝 To enable real APIs:")
        print("   1. Follow STEP_BY_STEP_API_SETUP.md")
        print("   2. Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REFRESH_TOKEN in .env")
        print("   3. Restart backend server")

    print("\n" + RULE)
    print("\n💡 Next Steps:")
    print("   1. Check backend server logs when completing a booking")
    print('   2. Look for "MCP actions" log messages')
    print("   3. If errors occur, check TROUBLESHOOT_MCP_ACTIONS.md")
    print("")
    return oauth.is_configured


def main() -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING").upper())
    report()
    return 0


if __name__ == "__main__":
    sys.exit(main())
