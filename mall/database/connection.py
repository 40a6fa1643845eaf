import logging
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from mall.configuration.settings import Configuration

configuration = Configuration()


def _build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        # In-memory SQLite must share one connection across threads
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


engine = _build_engine(configuration.get_database_url())


def init_db():
    import mall.models  # noqa: F401  registers the tables

    SQLModel.metadata.create_all(engine)
    logging.info("DATABASE >>> Tables created")


def get_session():
    with Session(engine) as session:
        yield session
