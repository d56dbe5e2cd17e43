from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator
import functools
import logging

import mysql.connector
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from LearningAssistantApp.core.exceptions import DatabaseConnectionError, handle_database_error

logger = logging.getLogger(__name__)

MYSQL_UNKNOWN_DATABASE = 1049


class DatabaseConnectionInterface(ABC):
    @abstractmethod
    def get_connection(self) -> Connection:
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @abstractmethod
    def transaction(self):
        pass


class ConnectionProvider(DatabaseConnectionInterface):
    """Owns one lazily-opened connection shared by every repository of an application.

    ``transaction()`` is the only way repositories touch the connection: the
    outermost block begins and commits (or rolls back), nested blocks join it.
    """

    def __init__(
            self,
            url: str,
            connect_timeout: int = 10,
            statement_timeout_ms: int = 30000,
            create_if_missing: bool = True,
            echo: bool = False
    ):
        self.url = make_url(url)
        self.connect_timeout = connect_timeout
        self.statement_timeout_ms = statement_timeout_ms
        self.create_if_missing = create_if_missing
        self.echo = echo
        self._engine: Engine | None = None
        self._connection: Connection | None = None
        self._depth = 0

    @property
    def dialect_name(self) -> str:
        return self.url.get_backend_name()

    def _connect_args(self) -> dict:
        if self.dialect_name == "mysql":
            return {"connection_timeout": self.connect_timeout}
        if self.dialect_name == "sqlite":
            return {"timeout": self.connect_timeout}
        return {}

    def _get_engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self.url, echo=self.echo, connect_args=self._connect_args())
            event.listen(self._engine, "connect", self._on_connect)
            if self.dialect_name == "sqlite":
                # pysqlite defers BEGIN on its own, which breaks SAVEPOINT; emit it ourselves
                event.listen(self._engine, "begin", self._on_begin)
        return self._engine

    @staticmethod
    def _on_begin(connection: Connection) -> None:
        connection.exec_driver_sql("BEGIN")

    def _on_connect(self, dbapi_connection, connection_record) -> None:
        if self.dialect_name == "sqlite":
            dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            if self.dialect_name == "sqlite":
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute(f"PRAGMA busy_timeout={int(self.statement_timeout_ms)}")
            elif self.dialect_name == "mysql":
                cursor.execute(f"SET SESSION max_execution_time={int(self.statement_timeout_ms)}")
        finally:
            cursor.close()

    @staticmethod
    def _is_unknown_database(error: DBAPIError) -> bool:
        return getattr(error.orig, "errno", None) == MYSQL_UNKNOWN_DATABASE

    def _create_database(self) -> None:
        """Create the configured MySQL schema through a server-level connection."""
        database = self.url.database
        connection = None
        try:
            connection = mysql.connector.connect(
                host=self.url.host,
                port=self.url.port or 3306,
                user=self.url.username,
                password=self.url.password,
                connection_timeout=self.connect_timeout
            )
            cursor = connection.cursor()
            try:
                cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{database}`")
                connection.commit()
                logger.info(f"Database {database} created")
            finally:
                cursor.close()
        except mysql.connector.Error as error:
            logger.exception(f"Failed to create database {database}")
            raise DatabaseConnectionError(
                f"Could not create database {database}: {error}", {"database": database}
            ) from error
        finally:
            if connection is not None and connection.is_connected():
                connection.close()

    def _open(self) -> Connection:
        try:
            return self._get_engine().connect()
        except DBAPIError as error:
            if not (self.dialect_name == "mysql" and self.create_if_missing and self._is_unknown_database(error)):
                raise
            logger.warning(f"Database {self.url.database} does not exist, creating it")
        self._create_database()
        return self._get_engine().connect()

    def get_connection(self) -> Connection:
        if self._connection is not None:
            if not self._connection.closed and not self._connection.invalidated:
                return self._connection
            logger.warning("Discarding a closed or invalidated connection")
            self._connection.close()
            self._connection = None
            self._depth = 0

        try:
            self._connection = self._open()
        except SQLAlchemyError as error:
            logger.exception("Failed to connect to database")
            raise DatabaseConnectionError(
                f"Failed to connect to database: {error}",
                {"url": self.url.render_as_string(hide_password=True)}
            ) from error
        logger.info("Database connection established successfully")
        return self._connection

    def is_connected(self) -> bool:
        """True if a connection can be obtained and answers a trivial query; never raises."""
        try:
            connection = self.get_connection()
        except DatabaseConnectionError:
            return False
        if self._depth:
            return not connection.invalidated
        try:
            connection.execute(text("SELECT 1"))
            connection.rollback()
            return True
        except SQLAlchemyError as error:
            logger.warning(f"Connection liveness check failed: {error}")
            return False

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        connection = self.get_connection()
        if self._depth:
            self._depth += 1
            try:
                yield connection
            finally:
                self._depth -= 1
            return

        if connection.in_transaction():
            logger.warning("Rolling back a transaction left open outside of transaction()")
            connection.rollback()
        self._depth = 1
        try:
            with connection.begin():
                yield connection
        finally:
            self._depth = 0

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            logger.info("Database connection closed")
        if self._engine is not None:
            self._engine.dispose()
        self._connection = None
        self._engine = None
        self._depth = 0


def atomic(method):
    """Run a service method inside ``self.provider.transaction()``.

    Repository calls made by the method join that transaction, so they commit
    or roll back together.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            with self.provider.transaction():
                return method(self, *args, **kwargs)
        except SQLAlchemyError as error:
            logger.exception(f"{method.__qualname__} failed")
            raise handle_database_error(error, method.__name__) from error
    return wrapper
