#!/usr/bin/env python3
"""
Create admins and block/unblock users directly in the database.

Usage:
  python scripts/manage_users.py create-admin --email admin@example.com --password secret123 \
      --first-name Ada --last-name Admin
  python scripts/manage_users.py promote --email someone@example.com
  python scripts/manage_users.py block --email someone@example.com
  python scripts/manage_users.py unblock --email someone@example.com
"""
from __future__ import annotations

import argparse
import sys

from classifieds.core.security import hash_password
from classifieds.db.create_tables import create_all
from classifieds.domain.policy import ROLE_ADMIN
from classifieds.repositories.sql_repository import SQLRepository


def main() -> None:
    ap = argparse.ArgumentParser(description="Manage marketplace users")
    sub = ap.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-admin", help="Create a new admin account")
    create.add_argument("--email", required=True)
    create.add_argument("--password", required=True)
    create.add_argument("--first-name", required=True)
    create.add_argument("--last-name", required=True)

    for name in ("promote", "block", "unblock"):
        p = sub.add_parser(name)
        p.add_argument("--email", required=True)

    args = ap.parse_args()
    create_all()
    repo = SQLRepository()
    email = (args.email or "").strip().lower()
    if not email:
        raise SystemExit("Invalid email")

    if args.command == "create-admin":
        if repo.get_user_by_email(email):
            raise SystemExit(f"User '{email}' already exists (use promote)")
        if len(args.password) < 8:
            raise SystemExit("Password must be at least 8 characters")
        user = repo.create_user(
            email=email,
            password_hash=hash_password(args.password),
            first_name=args.first_name.strip(),
            last_name=args.last_name.strip(),
            role=ROLE_ADMIN,
        )
        print("OK: admin created")
        print(f"  ID: {user.id}")
        print(f"  Email: {user.email}")
        return

    user = repo.get_user_by_email(email)
    if not user:
        raise SystemExit(f"User '{email}' does not exist")
    if args.command == "promote":
        repo.set_user_role(user.id, ROLE_ADMIN)
    else:
        repo.set_user_blocked(user.id, args.command == "block")
    print(f"OK: {args.command} {email}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
