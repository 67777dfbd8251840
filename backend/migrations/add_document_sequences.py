"""
Migration: Add document_sequences table.

Replaces count-based document numbering with one atomic counter row per
scope (PC-XX for clearances, DG-YYYY for permits). Each counter is seeded
from the highest number already issued in its scope so new numbers never
collide with existing documents.
"""
from sqlalchemy import create_engine, text
import os

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{os.getenv('USER', 'postgres')}@localhost:5432/digistock"
)

SEED_FROM = {
    "police_clearances": "clearance_number",
    "movement_permits": "permit_number",
}


def run_migration():
    """Create document_sequences and seed it from existing documents."""
    engine = create_engine(DATABASE_URL)

    with engine.connect() as conn:
        # Check if document_sequences table exists
        result = conn.execute(text("""
            SELECT table_name
            FROM information_schema.tables
            WHERE table_name = 'document_sequences'
        """))

        if result.fetchone():
            print("document_sequences table already exists")
        else:
            conn.execute(text("""
                CREATE TABLE document_sequences (
                    scope VARCHAR(32) PRIMARY KEY,
                    last_value INTEGER NOT NULL DEFAULT 0
                )
            """))
            print("Created document_sequences table")

        for table, column in SEED_FROM.items():
            # PC-HA-000042 -> scope PC-HA, value 42
            result = conn.execute(text(f"""
                INSERT INTO document_sequences (scope, last_value)
                SELECT split_part({column}, '-', 1) || '-' || split_part({column}, '-', 2),
                       MAX(CAST(split_part({column}, '-', 3) AS INTEGER))
                FROM {table}
                WHERE {column} ~ '^[A-Z]+-[A-Z0-9]+-[0-9]+$'
                GROUP BY 1
                ON CONFLICT (scope) DO UPDATE
                SET last_value = GREATEST(document_sequences.last_value, EXCLUDED.last_value)
            """))
            print(f"Seeded {result.rowcount} sequence scope(s) from {table}.{column}")

        conn.commit()

if __name__ == "__main__":
    run_migration()
