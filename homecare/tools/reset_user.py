from __future__ import annotations

import sys

from sqlalchemy import delete

from homecare.auth_models import User
from homecare.db import auth_session


def reset_user(username: str) -> int:
    """Remove an identity record by username. Profiles in the application store are left alone."""
    with auth_session() as auth:
        res = auth.execute(delete(User).where(User.username == username))
        return res.rowcount or 0


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Usage: python -m homecare.tools.reset_user <username>")
        raise SystemExit(2)

    username = args[0].strip().lower()
    if not username:
        print("Invalid username.")
        raise SystemExit(2)

    removed = reset_user(username)
    if removed:
        print(f"OK: user '{username}' deleted.")
    else:
        print(f"User '{username}' not found.")


if __name__ == "__main__":
    main()
