#!/usr/bin/env python3
"""
Mint a session token for local development and testing.

In production, session tokens come from the identity provider with the
``admin`` / ``security`` custom claims already attached. This script signs an
equivalent token with SECRET_KEY so the API can be exercised locally.

Usage:
    python scripts/issue_token.py --user-id alice
    python scripts/issue_token.py --user-id guard-1 --role security
    python scripts/issue_token.py --user-id root --role admin --expires-minutes 480
"""
import argparse
import os
import sys
from datetime import timedelta

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from admission.core.security import create_access_token  # noqa: E402
from admission.models import Role  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Mint a development session token")
    parser.add_argument("--user-id", required=True, help="User id to place in the 'sub' claim")
    parser.add_argument(
        "--role",
        choices=[role.value for role in Role],
        default=Role.USER.value,
        help="Role claim to attach",
    )
    parser.add_argument("--expires-minutes", type=int, help="Token lifetime in minutes")
    args = parser.parse_args()

    expires = timedelta(minutes=args.expires_minutes) if args.expires_minutes else None
    token = create_access_token(args.user_id, Role(args.role), expires_delta=expires)

    print("=" * 60)
    print(f"Session token for {args.user_id} ({args.role})")
    print("=" * 60)
    print()
    print(token)
    print()
    print("Send it as:  Authorization: Bearer <token>")


if __name__ == "__main__":
    main()
