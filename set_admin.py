#!/usr/bin/env python3
"""Grant or revoke admin rights for a Firebase user."""

import argparse
import sys

from firebase_admin import auth as firebase_auth

import auth
import users
from logger import setup_logger


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Set the admin claim on a BrainHints user.")
    parser.add_argument("uid", help="Firebase uid of the user")
    parser.add_argument("--revoke", action="store_true", help="Remove admin rights instead of granting them")
    args = parser.parse_args(argv)

    setup_logger()
    uid = args.uid.strip()
    if not uid:
        parser.error("uid cannot be empty")

    admin = not args.revoke
    try:
        auth.set_admin_claim(uid, admin)
    except firebase_auth.UserNotFoundError:
        print(f"No Firebase user with uid {uid}.", file=sys.stderr)
        return 1
    users.set_admin(uid, admin=admin)

    state = "is now an admin" if admin else "is no longer an admin"
    print(f"User {uid} {state}. New rights apply once the user's ID token refreshes.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
