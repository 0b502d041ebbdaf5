"""Schema and demo data loading for local setups and CI databases."""

from __future__ import annotations

import re
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Union

import mysql.connector

from .mysql_base import OPEN_SESSION_INDEX

PathLike = Union[str, Path]

# Quoted literals, '--' comments and ';' are the only tokens the splitter cares about.
_SQL_TOKEN = re.compile(
    r"""
      '(?:[^'\\]|\\.)*'
    | "(?:[^"\\]|\\.)*"
    | --[^\n]*
    | ;
    | [^'";-]+
    | .
    """,
    re.S | re.X,
)

_CREATE_DB = re.compile(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$")
_USE_DB = re.compile(r"(?im)^\s*USE\b.*?;\s*$")


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: int

    @classmethod
    def from_config(cls, db_config: dict) -> "DBTarget":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "eduride")),
            connection_timeout=int(db_config.get("connection_timeout", 5)),
        )

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


@contextmanager
def _server(target: DBTarget, *, use_database: bool = True) -> Iterator:
    params = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        connection_timeout=target.connection_timeout,
        use_pure=True,
    )
    if use_database:
        params["database"] = target.database
    conn = mysql.connector.connect(**params)
    try:
        yield conn
    finally:
        conn.close()


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a SQL script on ';' outside of quotes, dropping '--' comments."""

    pending: list[str] = []
    for match in _SQL_TOKEN.finditer(sql):
        token = match.group(0)
        if token.startswith("--"):
            continue
        if token == ";":
            stmt = "".join(pending).strip()
            pending.clear()
            if stmt:
                yield stmt
            continue
        pending.append(token)

    tail = "".join(pending).strip()
    if tail:
        yield tail


def _read_script(path: PathLike) -> str:
    # Scripts may pin a database name; the configured one always wins.
    sql = Path(path).read_text(encoding="utf-8")
    return _USE_DB.sub("", _CREATE_DB.sub("", sql))


def run_sql_file(db_config: dict, path: PathLike) -> int:
    """Execute every statement of ``path`` in one transaction; returns the count."""

    executed = 0
    with _server(DBTarget.from_config(db_config)) as conn:
        cur = conn.cursor()
        for stmt in iter_sql_statements(_read_script(path)):
            cur.execute(stmt)
            executed += 1
        conn.commit()
    return executed


def ensure_database_exists(db_config: dict) -> None:
    target = DBTarget.from_config(db_config)
    with _server(target, use_database=False) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: PathLike) -> int:
    ensure_database_exists(db_config)
    return run_sql_file(db_config, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: PathLike) -> int:
    return run_sql_file(db_config, seed_path)


def list_tables(db_config: dict) -> list[str]:
    with _server(DBTarget.from_config(db_config)) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]


def has_open_session_guard(db_config: dict) -> bool:
    """True when the unique index that serializes concurrent entry scans exists."""

    target = DBTarget.from_config(db_config)
    with _server(target) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT COUNT(*) FROM information_schema.STATISTICS
            WHERE TABLE_SCHEMA=%s AND TABLE_NAME='attendance_sessions' AND INDEX_NAME=%s
            """,
            (target.database, OPEN_SESSION_INDEX),
        )
        (count,) = cur.fetchone()
        return int(count) > 0
