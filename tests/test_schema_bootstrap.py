from pathlib import Path

from src.class_attendance.class_attendance.database.bootstrap import schema_statements
from src.class_attendance.class_attendance.database.connection import DBConfig

SCHEMA = Path(__file__).resolve().parents[1] / "database" / "schema.sql"


def test_schema_statements_drop_database_directives_and_comments():
    sql = """
    -- demo; not a statement
    CREATE DATABASE IF NOT EXISTS demo;
    USE demo;
    CREATE TABLE a (id INT);

    CREATE TABLE b (id INT)
    """

    assert list(schema_statements(sql)) == ["CREATE TABLE a (id INT)", "CREATE TABLE b (id INT)"]


def test_shipped_schema_creates_every_table():
    statements = list(schema_statements(SCHEMA.read_text(encoding="utf-8")))

    assert all(s.upper().startswith("CREATE TABLE IF NOT EXISTS") for s in statements)
    created = {s.split()[5] for s in statements}
    assert created == {
        "users",
        "teaching_classes",
        "class_students",
        "attendance_sessions",
        "session_present",
        "session_absent",
        "attendance_logs",
        "student_scores",
    }


def test_db_config_defaults():
    config = DBConfig.from_settings({"host": "db", "user": "app"})

    assert config == DBConfig(host="db", port=3306, user="app", password="", database="class_attendance")
