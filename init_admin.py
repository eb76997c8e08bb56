"""
Create tables and make sure the platform admin exists.

    ADMIN_EMAIL=ops@example.com python init_admin.py
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


# ======================================================
# ENV
# ======================================================

load_dotenv()

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Admin")

if not ADMIN_EMAIL:
    raise RuntimeError("ADMIN_EMAIL is not set")

sys.path.insert(0, str(Path(__file__).resolve().parent / "backend"))

from washbook.database import SessionLocal, init_db  # noqa: E402
from washbook.services.bootstrap import ensure_super_admin  # noqa: E402


def main():
    init_db()
    with SessionLocal() as db:
        user, changed = ensure_super_admin(db, ADMIN_EMAIL, ADMIN_NAME)
        user_id = user.id
    if changed:
        print(f"[BOOTSTRAP] Super admin ready: {ADMIN_EMAIL} (id={user_id})")
    else:
        print(f"[BOOTSTRAP] {ADMIN_EMAIL} is already a super admin")


if __name__ == "__main__":
    main()
