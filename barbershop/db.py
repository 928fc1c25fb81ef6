# barbershop/db.py

import logging

from fastapi import Request
from sqlmodel import SQLModel, Session, create_engine

from . import config
from .repository import InMemoryRepository, SqlRepository

logger = logging.getLogger(__name__)

connect_args = {}
if config.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False  # required for SQLite + FastAPI

# Engine = connection to the database
engine = create_engine(
    config.DATABASE_URL,
    echo=False,          # set to True to see SQL
    connect_args=connect_args,
)


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ready (%s)", engine.url.render_as_string(hide_password=True))


# Dependency: one repository per request
def get_repository(request: Request):
    store = getattr(request.app.state, "memory_store", None)
    if store is not None:
        yield InMemoryRepository(store)
        return
    with Session(engine) as session:
        yield SqlRepository(session)
