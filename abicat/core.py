"""
Implements :class:`Core` that is used in other modules.
"""

import os
from sqlite3 import Connection
from threading import RLock
from functools import cached_property

from abicat.db import connection_from_path

db_cache = {}
lock_cache = {}
_cache_lock = RLock()


class Core:
    """
    A base class for any class that wants to use
    the Sqlite3 cache database.

    When deriving this class, you're providing the OS path
    to the database or an already opened connection. The connection
    is instantiated on demand, so the class is lightweight and safe
    to derive from any other class.

    **Caching**

    The sqlite3 connection is cached by the OS path of the database,
    so every repo pointing at the same path shares one connection.

    **Threads**

    The fetch dispatcher writes from its own thread while requests
    read from others. The shared connection is opened with
    ``check_same_thread=False`` and every statement must run under
    :attr:`lock`, which is shared by all users of the same connection.

    Args:
        cache_path: OS path to the cache database
        conn: an instance of database connection (overrides cache_path)
    """

    #: OS path to the cache database.
    #: Can be ``None`` if :class:`sqlite3.Connection` is injected directly.
    cache_path: str | None

    def __init__(
        self,
        cache_path: str | None = None,
        conn: Connection | None = None,
    ):
        self.cache_path = cache_path
        self._conn = conn

    @cached_property
    def conn(self) -> Connection:
        """
        :class:`sqlite3.Connection` to a database cache
        """
        if not self._conn is None:
            return self._conn

        if self.cache_path is None:
            self.cache_path = os.environ.get("ABICAT_CACHE_PATH")

        if self.cache_path is None:
            raise ValueError(
                "Cache database path is not set. \
                Use `ABICAT_CACHE_PATH` env variable or pass cache_path explicitly"
            )

        with _cache_lock:
            if not self.cache_path in db_cache:
                db_cache[self.cache_path] = connection_from_path(self.cache_path)

        return db_cache[self.cache_path]

    @cached_property
    def lock(self) -> RLock:
        """
        Lock serializing access to :attr:`conn` across threads
        """
        with _cache_lock:
            return lock_cache.setdefault(id(self.conn), RLock())

    def commit(self):
        """
        Commits all changes pending on the database connection.
        """
        with self.lock:
            self.conn.commit()

    def rollback(self):
        """
        Rollbacks all changes pending on the database connection.
        """
        with self.lock:
            self.conn.rollback()
