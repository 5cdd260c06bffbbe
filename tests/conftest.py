"""
Pytest configuration for rowgate.

Provides fixtures for:
- An in-memory sqlite connection (unit tests never need a server)
- A schema with UUID-keyed and auto-increment tables
- The sample Record / Table classes bound to that schema
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Generator

import pytest

from rowgate.domain.record import Field, Record
from rowgate.domain.table import Table
from rowgate.infrastructure.db import Db

SQLITE_MEMORY_DSN = "sqlite::memory:"

SCHEMA = (
    """
    CREATE TABLE teams (
        id BLOB PRIMARY KEY,
        name TEXT NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE users (
        id BLOB PRIMARY KEY,
        team_id BLOB REFERENCES teams (id),
        email TEXT NOT NULL,
        age INTEGER,
        active INTEGER NOT NULL DEFAULT 1,
        updated_at TEXT
    )
    """,
    """
    CREATE TABLE articles (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        views INTEGER DEFAULT 0,
        note TEXT
    )
    """,
)


class Team(Record):
    name = Field(str)


class User(Record):
    uuid_columns = ("team_id",)
    casts = {"active": "bool"}
    computed_columns = ("display_name",)

    email = Field(str)
    age = Field(int)


class Article(Record):
    uses_uuid = False
    casts = {"views": "int"}

    title = Field(str)


class TeamTable(Table):
    table_name = "teams"
    record_class = Team


class UserTable(Table):
    table_name = "users"
    record_class = User


class ArticleTable(Table):
    table_name = "articles"
    record_class = Article


@pytest.fixture
def db() -> Generator[Db, None, None]:
    """
    Fresh in-memory sqlite connection per test.
    """
    connection = Db(SQLITE_MEMORY_DSN)
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture(scope="session")
def schema() -> tuple:
    """
    DDL for the teams / users / articles tables (sqlite).
    """
    return SCHEMA


@pytest.fixture
def schema_db(db: Db, schema: tuple) -> Db:
    """
    Connection with the teams / users / articles tables created.
    """
    for statement in schema:
        db.execute(statement)
    return db


@pytest.fixture(scope="session")
def models() -> SimpleNamespace:
    """
    Sample Record and Table classes matching SCHEMA.
    """
    return SimpleNamespace(
        Team=Team,
        User=User,
        Article=Article,
        TeamTable=TeamTable,
        UserTable=UserTable,
        ArticleTable=ArticleTable,
    )
