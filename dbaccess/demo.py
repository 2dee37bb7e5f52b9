"""Walk through the dbaccess API against a configured database.

Usage:
    python -m dbaccess.demo --config db.properties [--database postgresql]
"""

import argparse
import sys
from typing import List, Optional

from helpers.debug_util import DebugUtil

from .config import DBConfigLoader
from .database_manager import DatabaseManager, Row
from .exceptions import DatabaseError, QueryError
from .factory import DatabaseManagerFactory

USERS_TABLE = "users"


def _print_rows(rows: List[Row]) -> None:
    for row in rows:
        print(row)


def run_demo(db: DatabaseManager) -> None:
    """Run the fixed demo sequence on ``db``."""
    print("Testing the database connection...")
    db.connect()

    print("\nCreating the users table if it does not exist...")
    columns = ", ".join(
        [
            db.dialect.auto_increment_primary_key("id"),
            "name VARCHAR(100)",
            "age INT",
            "email VARCHAR(100)",
        ]
    )
    db.create_table_if_not_exists(USERS_TABLE, columns)

    print("\nInserting sample rows...")
    db.execute_update(f"INSERT INTO {USERS_TABLE} (name, age, email) VALUES (?, ?, ?)", "Jean Dupont", 35, "jean@example.com")
    db.execute_update(f"INSERT INTO {USERS_TABLE} (name, age, email) VALUES (?, ?, ?)", "Marie Martin", 28, "marie@example.com")

    print("\nRunning a SELECT...")
    _print_rows(db.execute_query(f"SELECT * FROM {USERS_TABLE} WHERE age > ?", 25))

    print("\nRunning an UPDATE...")
    updated = db.execute_update(f"UPDATE {USERS_TABLE} SET name = ? WHERE id = ?", "New Name", 1)
    print(f"Rows updated: {updated}")

    print("\nRunning a transaction...")
    db.begin_transaction()
    try:
        db.execute_update(
            f"INSERT INTO {USERS_TABLE} (name, age, email) VALUES (?, ?, ?)", "Test User", 30, "test@example.com"
        )
        db.execute_update(f"UPDATE {USERS_TABLE} SET name = ? WHERE id = ?", "Changed Name", 2)
        db.commit_transaction()
        print("Transaction committed.")
    except QueryError as e:
        db.rollback_transaction()
        print(f"Transaction rolled back: {e}", file=sys.stderr)

    print("\nRows after the transaction:")
    _print_rows(db.execute_query(f"SELECT * FROM {USERS_TABLE}"))
    print(f"Total rows: {db.count_all(USERS_TABLE)}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Exercise the dbaccess API against a configured database.")
    parser.add_argument("--config", default="db.properties", help="Path to the properties file")
    parser.add_argument("--database", help="Backend to use (defaults to default.database)")
    parser.add_argument("--loud", action="store_true", help="Print debug messages to stdout")
    args = parser.parse_args(argv)

    debug_util = DebugUtil(mode="loud" if args.loud else None)
    factory = DatabaseManagerFactory(DBConfigLoader(args.config), debug_util=debug_util)
    try:
        if args.database:
            db = factory.create_database_manager(args.database)
        else:
            db = factory.create_default_database_manager()
        with db:
            run_demo(db)
    except DatabaseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
