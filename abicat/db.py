"""
This module creates sqlite3 connections and the cache schema.
"""

from sqlite3 import Connection, connect
from os.path import exists


def connection_from_path(path: str) -> Connection:
    """
    Creates a connection to a database at ``path``.
    If the file at ``path`` doesn't exist, creates a new one and
    initializes a database schema.

    The connection may be used from several threads, callers are
    responsible for serializing access (see :class:`abicat.core.Core`).

    Args:
        path: The absolute path to the database (or ``:memory:``)

    Returns:
        An instance of sqlite3 Connection

    Note:
        The schema migrations are currently not supported.
    """

    is_fresh = path == ":memory:" or not exists(path)
    conn = connect(path, check_same_thread=False)
    if is_fresh:
        _init_db(conn)

    return conn


def _init_db(conn: Connection):
    """
    Initialize db schema

    Args:
        conn: Connection to the database
    """
    cursor = conn.cursor()
    # Contracts table
    cursor.execute(
        """CREATE TABLE IF NOT EXISTS contracts
            (chain text, address text, name text, abi text, label text, \
            src text, updated_at integer)"""
    )
    cursor.execute(
        """CREATE UNIQUE INDEX IF NOT EXISTS idx_contracts_id \
        ON contracts(chain,address)
    """
    )

    # Function selectors table
    cursor.execute(
        """CREATE TABLE IF NOT EXISTS fn_selectors
                (selector text, name text, inputs text, outputs text)"""
    )
    cursor.execute(
        """CREATE UNIQUE INDEX IF NOT EXISTS idx_fn_selectors_id
            ON fn_selectors(selector,name,inputs)"""
    )

    conn.commit()
