# scripts/reset_db.py
import argparse, os, shutil, sys, datetime

from sqlmodel import Session

from app.core.db import make_engine
from app.core.evaluation_store import clear_evaluations
from app.core.settings import settings

SQLITE_PREFIX = "sqlite:///"


def backup(db_url: str):
    if not db_url.startswith(SQLITE_PREFIX):
        print("[--] Backup skipped (not a SQLite file)")
        return
    path = db_url[len(SQLITE_PREFIX):]
    if not os.path.exists(path):
        print(f"[ERR] Database file not found: {path}")
        sys.exit(1)
    ts = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    dst = f"{os.path.splitext(path)[0]}.backup-{ts}.db"
    shutil.copyfile(path, dst)
    print(f"[OK] Backup -> {dst}")


def main():
    p = argparse.ArgumentParser(description="Reset helpers for the evaluation database")
    p.add_argument("--db", default=settings.DATABASE_URL, help="SQLAlchemy database URL")
    p.add_argument("--no-backup", action="store_true", help="skip the SQLite file backup")
    sub = p.add_subparsers(dest="mode", required=True)
    sub.add_parser("reset-evaluations", help="Delete every evaluation session with its answers and field values")

    args = p.parse_args()

    if not args.no_backup:
        backup(args.db)

    if args.mode == "reset-evaluations":
        with Session(make_engine(args.db)) as session:
            removed = clear_evaluations(session)
        print(f"[OK] evaluation_sessions: {removed} -> 0")


if __name__ == "__main__":
    main()
