from app.config import get_settings
from app.db.engine import get_engine
from app.db.store import Store
from app.logging_config import configure_logging


def main():
    settings = get_settings()
    configure_logging(settings)
    store = Store(get_engine(settings.database_url, settings.sqlite_foreign_keys))
    # Only missing tables are created; existing data is kept
    store.create_schema()
    store.dispose()
    print("DB schema ready.")


if __name__ == "__main__":
    main()
