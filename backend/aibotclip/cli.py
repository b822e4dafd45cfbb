"""Management CLI for admin accounts.

Usage:
    python -m aibotclip.cli create-admin <email> <password> [full name]
    python -m aibotclip.cli grant-admin <email>
"""

import sys

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from aibotclip.auth.password import hash_password
from aibotclip.config import settings
from aibotclip.models.user import ADMIN_ROLE, User, UserRoleGrant


def _grant(session: Session, user: User) -> bool:
    existing = session.execute(
        select(UserRoleGrant).where(
            UserRoleGrant.user_id == user.id, UserRoleGrant.role == ADMIN_ROLE
        )
    ).scalar_one_or_none()
    if existing:
        return False
    session.add(UserRoleGrant(user_id=user.id, role=ADMIN_ROLE))
    return True


def create_admin(email: str, password: str, full_name: str = "") -> None:
    engine = create_engine(settings.database_url_sync)
    with Session(engine) as session:
        email = email.lower()
        user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user:
            print(f"  User {email} already exists; use grant-admin")
            sys.exit(1)
        user = User(email=email, hashed_password=hash_password(password), full_name=full_name)
        session.add(user)
        session.flush()
        _grant(session, user)
        session.commit()
        print(f"  Created admin {email}")


def grant_admin(email: str) -> None:
    engine = create_engine(settings.database_url_sync)
    with Session(engine) as session:
        user = session.execute(
            select(User).where(User.email == email.lower())
        ).scalar_one_or_none()
        if not user:
            print(f"  No user {email}")
            sys.exit(1)
        if _grant(session, user):
            session.commit()
            print(f"  Granted admin to {email}")
        else:
            print(f"  {email} is already an admin")


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    args = sys.argv[2:]
    if cmd == "create-admin" and len(args) >= 2:
        create_admin(args[0], args[1], " ".join(args[2:]))
    elif cmd == "grant-admin" and len(args) == 1:
        grant_admin(args[0])
    else:
        print("Usage: python -m aibotclip.cli [create-admin <email> <password> [name]|grant-admin <email>]")
        sys.exit(2)
