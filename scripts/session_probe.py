#!/usr/bin/env python3
"""Run one session check against a live PayAware backend.

Shows which screen the app would land on for the stored credentials,
optionally logging in first or replaying a deep link.  Credentials are
kept in the encrypted credential file, so consecutive runs behave like
consecutive app launches.

Usage
-----
Set environment variables and run::

    export PAYAWARE_BASE_URL="https://api.pay-aware.ru"
    export PAYAWARE_CREDENTIALS_PATH="$HOME/.payaware/credentials.bin"
    export PAYAWARE_CREDENTIALS_KEY="$(python scripts/session_probe.py --new-key)"
    python scripts/session_probe.py --login you@example.com

Options::

    --login EMAIL        Log in first (password read from PAYAWARE_PASSWORD or prompted)
    --pin PIN            PIN login for the stored user before routing
    --deep-link URL      Queue a deep link before routing
    --logout             Forget the stored session and exit
    --show-credentials   Print which credentials are stored (values redacted)
    --new-key            Print a fresh credentials key and exit
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import os
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from payaware import (  # noqa: E402
    PayAwareClient,
    PayAwareConfig,
    PayAwareError,
    RouteDecision,
    SessionRouter,
    generate_credentials_key,
)
from payaware._constants import CREDENTIAL_KEYS, KEY_USER_ID  # noqa: E402
from payaware._redact import redact_token  # noqa: E402
from payaware.storage import read_credential  # noqa: E402


class _PrintingNavigator:
    def navigate(self, decision: RouteDecision) -> None:
        params = {k: redact_token(v) if k == "token" else v for k, v in decision.params.items()}
        print(f"  route     : {decision.route.value} {params or ''}".rstrip())
        print(f"  trigger   : {decision.trigger.value} (seq={decision.sequence})")

    def show_error(self, error: PayAwareError) -> None:
        print(f"  error     : {type(error).__name__}: {error}")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decide the PayAware landing route for the stored session.")
    parser.add_argument("--login", metavar="EMAIL", help="Log in with EMAIL before routing")
    parser.add_argument("--pin", help="PIN login for the stored user before routing")
    parser.add_argument("--deep-link", metavar="URL", help="Queue URL as a pending deep link")
    parser.add_argument("--logout", action="store_true", help="Forget the stored session and exit")
    parser.add_argument("--show-credentials", action="store_true", help="List stored credentials (redacted)")
    parser.add_argument("--new-key", action="store_true", help="Print a new credentials key and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def _show_credentials(client: PayAwareClient) -> None:
    for key in CREDENTIAL_KEYS:
        value = await read_credential(client.store, key)
        shown = "<absent>" if value is None else (value if key == KEY_USER_ID else redact_token(value))
        print(f"  {key:<10}: {shown}")


async def run(args: argparse.Namespace) -> int:
    config = PayAwareConfig.from_env()
    if config.credentials_path is None:
        print("PAYAWARE_CREDENTIALS_PATH is not set; credentials will not survive this run", file=sys.stderr)

    async with PayAwareClient(config) as client:
        if args.logout:
            await client.logout()
            print("Session forgotten")
            return 0

        if args.login:
            password = os.environ.get("PAYAWARE_PASSWORD") or getpass.getpass("Password: ")
            token = await client.login(args.login, password)
            print(f"Logged in user_id={token.user_id} expires_at={token.expires_at}")

        if args.pin:
            user_id = await read_credential(client.store, KEY_USER_ID)
            if user_id is None:
                print("No stored user id; log in first", file=sys.stderr)
                return 2
            await client.login_with_pin(user_id, args.pin)
            print("PIN login succeeded")

        if args.show_credentials:
            await _show_credentials(client)

        router = SessionRouter(client.store, client, navigator=_PrintingNavigator(), config=config)
        client.on_session_expired = router.handle_session_expired
        if args.deep_link:
            router.deep_links.push(args.deep_link)
        await router.refresh()
    return 0


def main() -> None:
    args = _parse_args()
    if args.new_key:
        print(generate_credentials_key())
        return

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        code = asyncio.run(run(args))
    except PayAwareError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
