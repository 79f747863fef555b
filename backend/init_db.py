# init_db.py (in backend folder)

from sqlalchemy import inspect

from app.core.config import Settings
from app.infra.postgres import create_db_engine, init_db as create_tables


def reset_message_schema(database_url: str | None = None) -> dict:
    """Drop and recreate the relay schema; returns {table: [column, ...]}"""
    database_url = database_url or Settings.from_env().database_url
    engine = create_db_engine(database_url)

    print("⚠️  Resetting relay schema (all stored messages are lost)...")
    create_tables(engine, drop=True)

    inspector = inspect(engine)
    layout = {
        table: [col["name"] for col in inspector.get_columns(table)]
        for table in inspector.get_table_names()
    }
    for table, columns in layout.items():
        indexes = [i["name"] for i in inspector.get_indexes(table)]
        print(f"✅ {table}: columns={columns} indexes={indexes}")

    engine.dispose()
    return layout


if __name__ == "__main__":
    reset_message_schema()
