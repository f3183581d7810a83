# src/kubefleet/core/db.py

import logging
from contextlib import asynccontextmanager

import aiosqlite
import asyncpg

from .config import config
from .exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

SQLITE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS worker_nodes (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        hostname TEXT NOT NULL DEFAULT '',
        ip_address TEXT NOT NULL DEFAULT '',
        cpu_cores INTEGER NOT NULL DEFAULT 0,
        cpu_architecture TEXT NOT NULL DEFAULT 'amd64',
        total_memory TEXT NOT NULL DEFAULT '0',
        total_storage TEXT NOT NULL DEFAULT '0',
        operating_system TEXT NOT NULL DEFAULT 'linux',
        kernel_version TEXT,
        os_image TEXT,
        container_runtime TEXT,
        kubelet_version TEXT,
        max_pods INTEGER NOT NULL DEFAULT 110,
        allocated_cpu REAL NOT NULL DEFAULT 0,
        allocated_memory REAL NOT NULL DEFAULT 0,
        allocated_storage REAL NOT NULL DEFAULT 0,
        current_pods INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'PENDING',
        is_ready BOOLEAN NOT NULL DEFAULT 0,
        is_schedulable BOOLEAN NOT NULL DEFAULT 1,
        labels TEXT,
        taints TEXT,
        last_heartbeat TEXT,
        last_health_check TEXT,
        created_at TEXT,
        updated_at TEXT
    );
"""

POSTGRES_SCHEMA = """
    CREATE TABLE IF NOT EXISTS worker_nodes (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        hostname TEXT NOT NULL DEFAULT '',
        ip_address TEXT NOT NULL DEFAULT '',
        cpu_cores INTEGER NOT NULL DEFAULT 0,
        cpu_architecture TEXT NOT NULL DEFAULT 'amd64',
        total_memory TEXT NOT NULL DEFAULT '0',
        total_storage TEXT NOT NULL DEFAULT '0',
        operating_system TEXT NOT NULL DEFAULT 'linux',
        kernel_version TEXT,
        os_image TEXT,
        container_runtime TEXT,
        kubelet_version TEXT,
        max_pods INTEGER NOT NULL DEFAULT 110,
        allocated_cpu DOUBLE PRECISION NOT NULL DEFAULT 0,
        allocated_memory DOUBLE PRECISION NOT NULL DEFAULT 0,
        allocated_storage DOUBLE PRECISION NOT NULL DEFAULT 0,
        current_pods INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'PENDING',
        is_ready BOOLEAN NOT NULL DEFAULT FALSE,
        is_schedulable BOOLEAN NOT NULL DEFAULT TRUE,
        labels TEXT,
        taints TEXT,
        last_heartbeat TIMESTAMPTZ,
        last_health_check TIMESTAMPTZ,
        created_at TIMESTAMPTZ,
        updated_at TIMESTAMPTZ
    );
"""


class DatabaseManager:
    """
    Manages the connection to the database (SQLite or PostgreSQL).
    Connecting also creates the worker_nodes table when it is missing.
    """

    def __init__(self, db_type: str = None, db_path: str = None):
        self.db_type = db_type or config.DB_TYPE
        self.db_path = db_path or config.DB_PATH
        self.connection = None
        self.pool = None

    async def connect(self):
        """
        Establishes a connection to the configured database.
        """
        try:
            if self.db_type == "sqlite":
                self.connection = await aiosqlite.connect(self.db_path)
                self.connection.row_factory = aiosqlite.Row
                await self.setup_sqlite()
                logger.info("Successfully connected to SQLite database.")
            elif self.db_type == "postgres":
                self.pool = await asyncpg.create_pool(
                    dsn=config.DB_CONNECTION_STRING,
                    min_size=1,
                    max_size=10,
                    server_settings={"search_path": config.DB_SCHEMA},
                )
                logger.info("Successfully initialized PostgreSQL connection pool.")
                await self.setup_postgres()
            else:
                raise ValueError("Unsupported database type specified in config.")
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Could not connect to the database: {e}")
            raise DatabaseConnectionError(f"Could not connect to the {self.db_type} database: {e}") from e

    @asynccontextmanager
    async def connection_scope(self):
        """
        Yields a database connection.
        For PostgreSQL, acquires a connection from the pool and releases it.
        For SQLite, yields the single persistent connection.
        """
        if self.db_type == "postgres":
            if not self.pool:
                await self.connect()
            async with self.pool.acquire() as conn:
                yield conn
        else:
            if self.connection is None:
                await self.connect()
            yield self.connection

    async def close(self):
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("PostgreSQL connection pool closed.")
        if self.connection:
            await self.connection.close()
            self.connection = None
            logger.info("Database connection closed.")

    async def setup_sqlite(self):
        """
        Creates the necessary tables for SQLite if they don't exist.
        """
        await self.connection.execute(SQLITE_SCHEMA)
        await self.connection.execute("CREATE INDEX IF NOT EXISTS idx_worker_nodes_status ON worker_nodes (status);")
        await self.connection.commit()
        logger.info("SQLite database tables are set up.")

    async def setup_postgres(self):
        """
        Creates the necessary tables for PostgreSQL if they don't exist.
        """
        async with self.pool.acquire() as conn:
            await conn.execute(POSTGRES_SCHEMA)
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_worker_nodes_status ON worker_nodes (status);")
        logger.info("PostgreSQL database tables are set up.")


db_manager = DatabaseManager()
