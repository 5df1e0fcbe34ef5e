# scripts/init_db.py
import argparse
import logging

from sqlmodel import Session

from app.core.db import init_db, make_engine
from app.core.logging import setup_logging
from app.core.seed import seed_sample_hierarchy
from app.core.settings import settings

logger = logging.getLogger("init_db")


def main():
    p = argparse.ArgumentParser(description="Create the schema (and optionally seed sample data)")
    p.add_argument("--db", default=settings.DATABASE_URL, help="SQLAlchemy database URL")
    p.add_argument("--seed", action="store_true", help="insert the sample property type if the database is empty")
    args = p.parse_args()

    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    engine = make_engine(args.db)
    init_db(engine)
    logger.info("schema ensured", extra={"db": args.db})

    if args.seed:
        with Session(engine) as session:
            seed_sample_hierarchy(session)


if __name__ == "__main__":
    main()
