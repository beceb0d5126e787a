#!/usr/bin/env python3
"""
Diagnostic: are the Google OAuth variables from .env actually reaching the app?

Step 1 reads the .env file on its own, step 2 looks at what the app sees once
the file is applied (shell variables win, as with load_dotenv), step 3 sums up.

Run:
    python diagnose_env_loading.py [path/to/.env]
"""
from __future__ import annotations
import os, sys, logging
from typing import Any, Dict, List, MutableMapping, Optional

from dotenv import dotenv_values, find_dotenv, load_dotenv

import google_oauth
from mcp_config import load_oauth_credentials

RULE = "=" * 60

# (variable, characters shown when printing a masked value)
CREDENTIAL_VARS = [
    ("GOOGLE_CLIENT_ID", 20),
    ("GOOGLE_CLIENT_SECRET", 10),
    ("GOOGLE_REFRESH_TOKEN", 20),
]

logger = logging.getLogger(__name__)


def _mask(value: str, keep: int) -> str:
    return f"{value[:keep]}..."


def diagnose(dotenv_path: Optional[str] = None, env: Optional[MutableMapping[str, str]] = None) -> Dict[str, Any]:
    """
    Returns {"dotenv_configured": bool, "app_configured": bool, "shadowed": [names]}.
    `env` is updated in place with the .env values it does not already define.
    """
    use_process_env = env is None
    env = os.environ if use_process_env else env
    path = dotenv_path or find_dotenv(usecwd=True)

    print("\n🔍 Environment Variable Loading Diagnostic\n")
    print(RULE)

    print("\n📋 Step 1: Reading .env file directly (using python-dotenv)...")
    if path and os.path.exists(path):
        print(f"  File: {os.path.abspath(path)}")
        file_values = {k: v for k, v in dotenv_values(path).items() if v is not None}
    else:
        print("  ❌ No .env file found")
        file_values = {}

    for name, keep in CREDENTIAL_VARS:
        value = file_values.get(name)
        print(f"  {name}: {'✅ Found' if value else '❌ Missing'}")
        if value:
            print(f"    Value: {_mask(value, keep)}")
    dotenv_configured = load_oauth_credentials(file_values).is_configured

    print("\n📋 Step 2: Checking what the application sees...")
    shadowed: List[str] = []
    if use_process_env:
        if file_values:
            load_dotenv(path, override=False)
    else:
        # same precedence as load_dotenv(override=False): variables already set win
        for name, value in file_values.items():
            env.setdefault(name, value)
    for name, _ in CREDENTIAL_VARS:
        if file_values.get(name) and env.get(name) != file_values[name]:
            shadowed.append(name)

    oauth = load_oauth_credentials(env)
    app_configured = google_oauth.build_credentials(oauth) is not None
    print(f"  OAuth credentials usable by services: {'✅ TRUE' if app_configured else '❌ FALSE'}")
    for name, _ in CREDENTIAL_VARS:
        print(f"  {name} in app environment: {'✅ Found' if env.get(name) else '❌ Missing'}")
    logger.debug("dotenv=%s app=%s shadowed=%s", dotenv_configured, app_configured, shadowed)

    print("\n" + RULE)
    print("\n📊 Summary:\n")
    if dotenv_configured:
        print("✅ .env file has all required credentials")
    else:
        print("❌ .env file is missing some credentials")
    for name in shadowed:
        print(f"⚠️  {name} is already set in the shell environment and overrides the .env value")

    if dotenv_configured and not app_configured:
        print("\n💡 The app still runs in mock mode:")
        print("   1. Make sure the backend loads .env before the MCP services start")
        print("   2. Unset stale GOOGLE_* variables in your shell")
        print("   3. Restart the backend server after any changes")
    elif dotenv_configured:
        print("\n💡 If services are still in mock mode:")
        print("   1. Restart the backend server after any changes")
        print("   2. Check backend logs for initialization messages")
    print("")

    return {"dotenv_configured": dotenv_configured, "app_configured": app_configured, "shadowed": shadowed}


def main() -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING").upper())
    path = sys.argv[1] if len(sys.argv) > 1 else None
    diagnose(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
