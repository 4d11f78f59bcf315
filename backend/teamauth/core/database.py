from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from teamauth.core.config import settings

DATABASE_URL = settings.database_url


def _engine_options(url: str) -> dict:
    # SQLite needs check_same_thread, pooled Postgres connections get pinged before reuse
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": 1800}


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
