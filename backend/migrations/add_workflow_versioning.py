"""
Migration: Add optimistic-lock version columns and the pending-transfer index.

1. version INTEGER on every workflow table; a concurrent transition that
   loses the race fails its UPDATE ... WHERE version = ? and is reported
   as a conflict.
2. uq_transfer_pending_livestock - at most one PENDING ownership transfer
   per livestock.
"""
from sqlalchemy import create_engine, text
import os

# Use same DB URL pattern as main app
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{os.getenv('USER', 'postgres')}@localhost:5432/digistock"
)

VERSIONED_TABLES = [
    "livestock",
    "police_clearances",
    "movement_permits",
    "ownership_transfers",
]


def column_exists(conn, table_name: str, column_name: str) -> bool:
    """Check if a column exists on a table."""
    result = conn.execute(text("""
        SELECT EXISTS (
            SELECT FROM information_schema.columns
            WHERE table_name = :table_name AND column_name = :column_name
        )
    """), {"table_name": table_name, "column_name": column_name})
    return result.fetchone()[0]


def run_migration():
    """Add version columns and the partial unique index."""
    engine = create_engine(DATABASE_URL)

    with engine.connect() as conn:
        for table in VERSIONED_TABLES:
            if column_exists(conn, table, "version"):
                print(f"{table}.version already exists")
            else:
                conn.execute(text(f"""
                    ALTER TABLE {table}
                    ADD COLUMN version INTEGER NOT NULL DEFAULT 1
                """))
                print(f"Added version column to {table}")

        conn.execute(text("""
            CREATE UNIQUE INDEX IF NOT EXISTS uq_transfer_pending_livestock
            ON ownership_transfers (livestock_id)
            WHERE status = 'PENDING'
        """))
        print("Ensured uq_transfer_pending_livestock index")

        conn.commit()

if __name__ == "__main__":
    run_migration()
