"""Schema bootstrap used by ``create_app`` (AUTO_INIT_DB) and ``scripts/init_db.py``."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Mapping

import mysql.connector

from ..core.exceptions import PersistenceError
from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

# schema.sql names a database for manual use; the configured one wins.
_DATABASE_DIRECTIVE = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;")
_LINE_COMMENT = re.compile(r"(?m)^\s*--.*$")


def schema_statements(sql: str) -> Iterator[str]:
    """Split a schema file into executable statements.

    Only line comments are understood, and statements must not contain
    ``;`` inside string literals.
    """
    sql = _LINE_COMMENT.sub("", _DATABASE_DIRECTIVE.sub("", sql))
    for chunk in sql.split(";"):
        stmt = chunk.strip()
        if stmt:
            yield stmt


def _run(conn_factory: DatabaseConnection, statements, *, with_database: bool = True) -> list:
    try:
        conn = conn_factory.connect(with_database=with_database)
    except mysql.connector.Error as e:
        raise PersistenceError(f"Cannot connect to database: {e.msg}") from e
    try:
        cur = conn.cursor()
        rows: list = []
        for stmt in statements:
            cur.execute(stmt)
            if cur.with_rows:
                rows = cur.fetchall()
        conn.commit()
        return rows
    except mysql.connector.Error as e:
        conn.rollback()
        raise PersistenceError(f"Schema statement failed: {e.msg}") from e
    finally:
        conn.close()


def ensure_database_exists(db_config: Mapping) -> None:
    config = DBConfig.from_settings(db_config)
    _run(
        DatabaseConnection(config),
        [f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"],
        with_database=False,
    )


def apply_schema(db_config: Mapping, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    statements = list(schema_statements(Path(schema_path).read_text(encoding="utf-8")))
    _run(DatabaseConnection(DBConfig.from_settings(db_config)), statements)
    logger.info("Applied %d schema statements from %s", len(statements), schema_path)


def list_tables(db_config: Mapping) -> list[str]:
    rows = _run(DatabaseConnection(DBConfig.from_settings(db_config)), ["SHOW TABLES"])
    return [row[0] for row in rows]
