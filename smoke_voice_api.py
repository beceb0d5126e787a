#!/usr/bin/env python3
"""
Smoke test for the voice booking backend (run it against a live server).

Walks the voice-session HTTP API through a start/history/message round and a
full booking conversation, then prints a pass/fail summary.

Env:
  VOICE_API_BASE_URL     - default: http://localhost:3000
  SMOKE_STEP_DELAY       - seconds between dependent steps (default: 1.0)
  SMOKE_STRICT_FLOW      - 1/true to fail when the booking flow leaves the expected states
  SMOKE_HEALTH_ATTEMPTS  - connection attempts before giving up on the server (default: 3)

Exit code: 0 when every step passed, 1 otherwise (or when the server is down).
"""
from __future__ import annotations
import os, sys, json, logging
from typing import Any, Dict, List, Optional

import anyio
import httpx
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

API_BASE_URL = "http://localhost:3000"
HEALTH_TIMEOUT = 2.0
REQUEST_TIMEOUT = 30.0

STATE_OFFERING_SLOTS = "offering_slots"
STATE_CONFIRMING_BOOKING = "confirming_booking"

RULE = "=" * 60

logger = logging.getLogger(__name__)


class StepResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    passed: bool
    message: str
    data: Optional[Any] = None


def _error_payload(exc: Exception) -> Any:
    response = getattr(exc, "response", None)
    if response is None:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _truthy(value: Optional[str]) -> bool:
    return (value or "").lower() in {"1", "true", "yes", "on"}


class SmokeRun:
    """One pass over the voice API. `results` only ever grows."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        step_delay: float = 1.0,
        strict_flow: bool = False,
        health_attempts: int = 3,
        health_backoff: float = 0.5,
    ):
        self.client = client
        self.step_delay = step_delay
        self.strict_flow = strict_flow
        self.health_attempts = max(1, health_attempts)
        self.health_backoff = health_backoff
        self.results: List[StepResult] = []

    # ---- bookkeeping -----------------------------------------------------
    def record(self, result: StepResult) -> StepResult:
        self.results.append(result)
        print(f"{'✅' if result.passed else '❌'} {result.name}")
        if result.message:
            print(f"   {result.message}")
        if result.data is not None and not result.passed:
            print(f"   Data: {json.dumps(result.data, indent=2, default=str)}")
        print("")
        return result

    def fail(self, name: str, exc: Exception) -> None:
        logger.debug("%s failed", name, exc_info=exc)
        self.record(StepResult(name=name, passed=False, message=str(exc) or type(exc).__name__, data=_error_payload(exc)))

    async def pause(self, seconds: Optional[float] = None) -> None:
        delay = self.step_delay if seconds is None else seconds
        if delay > 0:
            await anyio.sleep(delay)

    async def _json(self, method: str, url: str, **kwargs) -> Any:
        r = await self.client.request(method, url, **kwargs)
        r.raise_for_status()
        return r.json()

    # ---- steps -------------------------------------------------------------
    async def check_backend_health(self) -> bool:
        """
        Probe the logs endpoint. Only a refused/failed connection means the server
        is down; it is retried with exponential backoff. Anything else (timeouts,
        4xx/5xx) means the server is up, maybe just without data yet.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.health_attempts),
            wait=wait_exponential(multiplier=self.health_backoff),
            retry=retry_if_exception_type(httpx.ConnectError),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            sleep=anyio.sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self.client.get("/voice/logs/all", timeout=HEALTH_TIMEOUT)
            return True
        except httpx.ConnectError as exc:
            logger.debug("Health probe gave up after %s attempts: %s", self.health_attempts, exc)
        except httpx.HTTPError as exc:
            logger.debug("Health probe got %r; treating server as up", exc)
            return True
        print("❌ Backend server is not running!")
        print("   Please start it with: npm run start:dev\n")
        return False

    async def start_session(self) -> Optional[str]:
        name = "Start Session"
        try:
            data = await self._json("POST", "/voice/session/start")
        except (httpx.HTTPError, ValueError) as exc:
            self.fail(name, exc)
            return None
        session_id = data.get("sessionId") if isinstance(data, dict) else None
        if session_id is not None:
            session_id = str(session_id)
        if session_id and data.get("greeting"):
            self.record(StepResult(
                name=name,
                passed=True,
                message=f"Session created: {session_id[:8]}...",
                data={"sessionId": session_id},
            ))
            return session_id
        self.record(StepResult(name=name, passed=False, message="Missing sessionId or greeting", data=data))
        return None

    async def get_history(self, session_id: str) -> bool:
        name = "Get Conversation History"
        try:
            data = await self._json("GET", f"/voice/session/{session_id}/history")
        except (httpx.HTTPError, ValueError) as exc:
            self.fail(name, exc)
            return False
        messages = data.get("messages") if isinstance(data, dict) else None
        has_messages = isinstance(messages, list) and len(messages) > 0
        self.record(StepResult(
            name=name,
            passed=has_messages,
            message=f"Found {len(messages)} messages" if has_messages else "No messages found",
            data={"messageCount": len(messages) if isinstance(messages, list) else None},
        ))
        return has_messages

    async def process_message(self, session_id: str, message: str) -> Optional[Dict[str, Any]]:
        """Send one utterance. Passes when the reply has a non-empty `response` and a `state`."""
        name = f'Process Message - "{message[:30]}..."'
        try:
            data = await self._json("POST", f"/voice/session/{session_id}/message", json={"message": message})
        except (httpx.HTTPError, ValueError) as exc:
            self.fail(name, exc)
            return None
        if not isinstance(data, dict):
            self.record(StepResult(name=name, passed=False, message="Response body is not an object", data=data))
            return None

        response = str(data.get("response") or "")
        state = data.get("state")
        passed = bool(response) and bool(state)
        self.record(StepResult(
            name=name,
            passed=passed,
            message=f"Response: {response[:50]}... | State: {state}" if passed else "Missing response or state",
            data={"response": response[:100], "state": state, "bookingCode": data.get("bookingCode")},
        ))
        return data

    def _flow_diverged(self, expected: str, actual: Optional[str]) -> bool:
        msg = f"Booking flow stopped: expected state {expected!r}, got {actual!r}"
        logger.warning(msg)
        if self.strict_flow:
            self.record(StepResult(name="Booking Flow", passed=False, message=msg, data={"state": actual}))
        else:
            print(f"⚠️  {msg}\n")
        return False

    async def booking_flow(self, session_id: str) -> bool:
        """Topic -> time preference -> pick slot -> confirm. True once a booking code comes back."""
        topic = await self.process_message(session_id, "I want to book an appointment for KYC/Onboarding")
        if topic is None:
            return False
        await self.pause()

        timing = await self.process_message(session_id, "I prefer next Tuesday")
        if timing is None:
            return False
        await self.pause()

        if timing.get("state") != STATE_OFFERING_SLOTS:
            return self._flow_diverged(STATE_OFFERING_SLOTS, timing.get("state"))
        slot = await self.process_message(session_id, "I choose the first slot")
        if slot is None:
            return False
        await self.pause()

        if slot.get("state") != STATE_CONFIRMING_BOOKING:
            return self._flow_diverged(STATE_CONFIRMING_BOOKING, slot.get("state"))
        confirm = await self.process_message(session_id, "Yes, confirm my booking")
        booking_code = (confirm or {}).get("bookingCode")
        if booking_code:
            self.record(StepResult(
                name="Booking Created",
                passed=True,
                message=f"Booking code: {booking_code}",
                data={"bookingCode": booking_code},
            ))
            return True
        if confirm and self.strict_flow:
            self.record(StepResult(name="Booking Created", passed=False, message="No booking code returned", data=confirm))
        return False

    async def get_logs(self) -> bool:
        name = "Get Conversation Logs"
        try:
            data = await self._json("GET", "/voice/logs/all")
        except (httpx.HTTPError, ValueError) as exc:
            self.fail(name, exc)
            return False
        has_logs = isinstance(data, list) and len(data) > 0
        self.record(StepResult(
            name=name,
            passed=has_logs,
            message=f"Found {len(data)} log entries" if has_logs else "No logs found",
            data={"logCount": len(data) if isinstance(data, list) else None},
        ))
        return has_logs

    # ---- driver --------------------------------------------------------------
    def print_summary(self) -> int:
        passed = [r for r in self.results if r.passed]
        failed = [r for r in self.results if not r.passed]
        total = len(self.results)
        rate = (len(passed) / total * 100) if total else 0.0

        print("\n" + RULE)
        print("📊 Test Summary")
        print(RULE)
        print(f"Total Tests: {total}")
        print(f"✅ Passed: {len(passed)}")
        print(f"❌ Failed: {len(failed)}")
        print(f"Success Rate: {rate:.1f}%")
        print("")
        if failed:
            print("❌ Failed Tests:")
            for r in failed:
                print(f"   - {r.name}: {r.message}")
            print("")
        print(RULE)
        print("")
        return len(failed)

    async def run(self) -> int:
        print(RULE)
        print("🧪 Voice API Smoke Test")
        print(RULE)
        print("")

        if not await self.check_backend_health():
            return 1
        print("✅ Backend server is running\n")

        session_id = await self.start_session()
        if not session_id:
            print("❌ Cannot continue without session. Exiting...\n")
            return 1

        await self.get_history(session_id)

        print("\n📝 Testing Intent Recognition...\n")
        await self.process_message(session_id, "I want to book an appointment")
        await self.pause(self.step_delay / 2)
        await self.process_message(session_id, "What slots are available?")
        await self.pause(self.step_delay / 2)

        print("\n📋 Testing Complete Booking Flow...\n")
        booking_session = await self.start_session()
        if booking_session:
            await self.booking_flow(booking_session)

        await self.get_logs()

        failed = self.print_summary()

        print("🔍 Verifying Real API Usage:")
        print("   Check backend logs for:")
        print('   - "initialized with real API" (Calendar, Sheets, Gmail)')
        print('   - "Google Calendar MCP Service initialized with real API"')
        print('   - "Google Sheets MCP Service initialized with real API"')
        print('   - "Gmail MCP Service initialized with real API"')
        print("")
        print("   If you see \"mock mode\" instead, check your .env file (python check_mcp_config.py).\n")

        return 1 if failed else 0


async def run_smoke(
    base_url: str = API_BASE_URL,
    step_delay: float = 1.0,
    strict_flow: bool = False,
    health_attempts: int = 3,
) -> int:
    async with httpx.AsyncClient(base_url=base_url, timeout=REQUEST_TIMEOUT) as client:
        return await SmokeRun(
            client,
            step_delay=step_delay,
            strict_flow=strict_flow,
            health_attempts=health_attempts,
        ).run()


def main() -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING").upper())
    base_url = os.getenv("VOICE_API_BASE_URL", API_BASE_URL)
    try:
        return anyio.run(
            run_smoke,
            base_url,
            float(os.getenv("SMOKE_STEP_DELAY", "1.0")),
            _truthy(os.getenv("SMOKE_STRICT_FLOW")),
            int(os.getenv("SMOKE_HEALTH_ATTEMPTS", "3")),
        )
    except Exception as e:
        logger.exception("Smoke test aborted")
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
