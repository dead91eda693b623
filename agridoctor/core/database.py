from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from agridoctor.core import config

# SQLite for local development; set DATABASE_URL for PostgreSQL etc.
connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency to get a DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Largest id a SQLite INTEGER column can hold
MAX_ID = 2 ** 63 - 1
