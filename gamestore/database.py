from sqlmodel import SQLModel, create_engine, Session
from gamestore.config import get_settings

engine = create_engine(
    get_settings().database_url,
    echo=False,
    pool_pre_ping=True,
    pool_recycle=1800
)


def create_db_and_tables():
    from gamestore.models import user, order, order_item, order_event
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
