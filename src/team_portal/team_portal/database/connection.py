from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Mapping, Optional

import mysql.connector
from mysql.connector import pooling

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "team_portal"
    pool_size: int = 0

    @classmethod
    def from_dict(cls, db_config: Mapping) -> "DBConfig":
        return cls(
            host=str(db_config.get("host") or "localhost"),
            port=int(db_config.get("port") or 3306),
            user=str(db_config.get("user") or "root"),
            password=str(db_config.get("password") or ""),
            database=str(db_config.get("database") or "team_portal"),
            pool_size=int(db_config.get("pool_size") or 0),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict:
        kwargs = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "charset": "utf8mb4",
            "autocommit": False,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs


class DatabaseConnection:
    """Hands out MySQL connections, one per repository call.

    With ``pool_size > 0`` connections come from a ``MySQLConnectionPool``
    (``close()`` returns them to the pool); otherwise each call opens a fresh
    connection.
    """

    _instance: Optional["DatabaseConnection"] = None
    _instance_lock = threading.Lock()

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None
        self._pool_lock = threading.Lock()

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        with cls._instance_lock:
            if cls._instance is None or cls._instance.config != config:
                cls._instance = DatabaseConnection(config)
            return cls._instance

    def _get_pool(self) -> pooling.MySQLConnectionPool:
        with self._pool_lock:
            if self._pool is None:
                self._pool = pooling.MySQLConnectionPool(
                    pool_name=f"team_portal_{self._config.database}",
                    pool_size=self._config.pool_size,
                    **self._config.connect_kwargs(),
                )
                logger.info("MySQL pool ready (size=%d)", self._config.pool_size)
            return self._pool

    def connect(self, *, with_database: bool = True):
        if with_database and self._config.pool_size > 0:
            return self._get_pool().get_connection()
        return mysql.connector.connect(**self._config.connect_kwargs(with_database=with_database))
