"""
Create an account directly in the store (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user USERNAME EMAIL PASSWORD ADDRESS [role]
Example:
  python -m app.scripts.create_user admin admin@example.com your-secure-password "1 Main St" Admin
"""
import argparse
import sys

from dotenv import load_dotenv

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory
from app.core.errors import AccountServiceError
from app.core.security import PasswordHasher
from app.models.user import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    Role,
    User,
)
from app.services.user_store import UserStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an account (no registration API for the first admin).")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("email", help="Email, unique across accounts")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("address", help="Postal address")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.USER.value,
        choices=[r.value for r in Role],
    )
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    if not args.email.strip() or not args.address.strip():
        print("Email and address are required.", file=sys.stderr)
        return 1

    load_dotenv()
    settings = get_settings()
    db = build_session_factory(build_engine(settings))()
    try:
        user = User(
            username=username,
            email=args.email.strip(),
            address=args.address.strip(),
            role=args.role,
        )
        PasswordHasher(rounds=settings.BCRYPT_ROUNDS).prepare_for_write(user, args.password)
        UserStore(db).insert(user)
    except AccountServiceError as e:
        print(f"Could not create account: {e.message}", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created account '{username}' <{user.email}> with role '{args.role}' (id {user.id}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
