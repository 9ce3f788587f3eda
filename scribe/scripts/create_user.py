"""
Create a user with any role (e.g. the first admin). Run from project root:
  python -m scribe.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME [role]
Example:
  python -m scribe.scripts.create_user admin@blog.io 'S3cure-pass' Ada Admin admin
"""
import argparse
import sys

from scribe.auth.abilities import ROLE_ORDER
from scribe.core.database import SessionLocal
from scribe.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_COMPLEXITY_MESSAGE,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    is_complex_password,
)
from scribe.models.user import User
from scribe.services import users as user_service


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Scribe user with an explicit role.")
    parser.add_argument("email", help="Login email")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("first_name", help=f"First name ({NAME_MIN_LEN}-{NAME_MAX_LEN} chars)")
    parser.add_argument("last_name", help=f"Last name ({NAME_MIN_LEN}-{NAME_MAX_LEN} chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default="guest",
        choices=[r.value for r in ROLE_ORDER],
    )
    args = parser.parse_args(argv)

    email = args.email.strip().lower()
    if "@" not in email:
        print("Invalid email address.", file=sys.stderr)
        return 1
    for name in (args.first_name.strip(), args.last_name.strip()):
        if not NAME_MIN_LEN <= len(name) <= NAME_MAX_LEN:
            print(f"Names must be {NAME_MIN_LEN}-{NAME_MAX_LEN} characters.", file=sys.stderr)
            return 1
    if not PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    if not is_complex_password(args.password):
        print(PASSWORD_COMPLEXITY_MESSAGE, file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        if user_service.find_by_email(db, email) is not None:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            email=email,
            first_name=args.first_name.strip(),
            last_name=args.last_name.strip(),
            password_hash=hash_password(args.password),
            role=args.role,
        )
        user_service.save(db, user)
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
