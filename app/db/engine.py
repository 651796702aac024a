# app/db/engine.py

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def get_engine(db_url: str, foreign_keys: bool = True) -> Engine:
    # echo=True if you want to see SQL printed in the terminal
    connect_args = {}
    if db_url.startswith("sqlite"):
        # The due-date scan runs on its own thread
        connect_args["check_same_thread"] = False

    engine = create_engine(db_url, future=True, connect_args=connect_args)

    if engine.dialect.name == "sqlite" and foreign_keys:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
