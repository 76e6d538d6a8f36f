from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from core.config import DatabaseConfigs, DatabasePoolConfigs


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "echo": DatabasePoolConfigs.ECHO}
    return {
        "pool_size": DatabasePoolConfigs.POOL_SIZE,
        "max_overflow": DatabasePoolConfigs.MAX_OVERFLOW,
        "pool_timeout": DatabasePoolConfigs.POOL_TIMEOUT,
        "pool_recycle": DatabasePoolConfigs.POOL_RECYCLE,
        "pool_pre_ping": DatabasePoolConfigs.POOL_PRE_PING,
        "echo": DatabasePoolConfigs.ECHO,
        "connect_args": {"sslmode": "require"} if "sslmode=require" in url else {},
    }


engine = create_engine(DatabaseConfigs.DATABASE_URL, **_engine_options(DatabaseConfigs.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
