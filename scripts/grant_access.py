#!/usr/bin/env python3
"""
Grant access to an e-mail out of band: activate the entitlement and print a
fresh 24h access link.
Run from the project root: python -m scripts.grant_access buyer@example.com
or: PYTHONPATH=. python scripts/grant_access.py buyer@example.com
"""
import os
import sys

# project root on PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from accessgate.core.config import settings
from accessgate.schemas.records import EntitlementSource
from accessgate.services.access_tokens import AccessTokenStore
from accessgate.services.entitlements import EntitlementStore
from accessgate.utils.emails import looks_like_email, normalize_email
from accessgate.utils.tokens import build_access_url, new_token


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print("Usage: python scripts/grant_access.py email@example.com")
        return 1
    email = normalize_email(argv[1])
    if not looks_like_email(email):
        print(f"Not an e-mail: {argv[1]!r}")
        return 1

    EntitlementStore().set_active(email, source=EntitlementSource.ADMIN_SEED, meta={"via": "grant_access"})
    token = new_token()
    AccessTokenStore().create(token, email)

    hours = settings.access_token_ttl_ms / 3_600_000
    print("Access granted")
    print(f"  Email: {email}")
    print(f"  Link:  {build_access_url(token)}")
    print(f"  TTL:   {hours:g}h")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
