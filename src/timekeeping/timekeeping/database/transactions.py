from __future__ import annotations

from typing import ContextManager, Protocol

from .connection import DatabaseConnection
from .mysql_base import atomic


class TransactionManager(Protocol):
    def atomic(self) -> ContextManager:
        raise NotImplementedError


class MySQLTransactionManager(TransactionManager):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def atomic(self):
        return atomic(self._conn_factory)
