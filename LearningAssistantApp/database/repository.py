"""
Generic table-backed repository.

Every statement runs inside ``provider.transaction()``: standalone calls get
their own transaction, calls made while a service holds a transaction join
it. SQLAlchemy failures are logged and re-raised as typed application errors,
so ``False``/``None``/``[]`` only ever mean "no matching rows".
"""

from typing import Any, Callable, Generic, List, Type, TypeVar
import logging

from sqlalchemy import Table, func, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from LearningAssistantApp.core.exceptions import LearningAssistantError, handle_database_error
from LearningAssistantApp.database.connection import DatabaseConnectionInterface

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class TableRepository(Generic[T]):
    """Query helpers shared by every repository; no assumption about the key."""
    table: Table
    model: Type[T]
    entity_name: str = "entity"

    def __init__(self, provider: DatabaseConnectionInterface):
        self.provider = provider

    def default_order(self) -> list:
        return [self.table.c.created_at.desc(), self.table.c.id.desc()]

    def _run(self, operation: str, work: Callable[[Connection], R]) -> R:
        try:
            with self.provider.transaction() as connection:
                return work(connection)
        except LearningAssistantError:
            raise
        except IntegrityError as error:
            logger.warning(f"{self.entity_name}.{operation} violated a constraint: {error.orig}")
            raise handle_database_error(error, f"{self.entity_name}.{operation}") from error
        except SQLAlchemyError as error:
            logger.exception(f"{self.entity_name}.{operation} failed")
            raise handle_database_error(error, f"{self.entity_name}.{operation}") from error

    def _fetch_all(self, operation: str, *criteria, order_by: list | None = None) -> List[T]:
        statement = select(self.table).where(*criteria).order_by(*(order_by or self.default_order()))

        def work(connection: Connection) -> List[T]:
            return [self.model.from_row(row) for row in connection.execute(statement).mappings()]

        return self._run(operation, work)

    def _fetch_one(self, operation: str, *criteria) -> T | None:
        statement = select(self.table).where(*criteria).limit(1)

        def work(connection: Connection) -> T | None:
            row = connection.execute(statement).mappings().first()
            return self.model.from_row(row) if row is not None else None

        return self._run(operation, work)

    def _count(self, operation: str, *criteria) -> int:
        statement = select(func.count()).select_from(self.table).where(*criteria)
        return self._run(operation, lambda connection: connection.execute(statement).scalar_one())


class BaseRepository(TableRepository[T]):
    """add / update / delete / get_by_id keyed on a single column."""
    key_column: str = "id"
    assigns_id: bool = True

    @property
    def key(self):
        return self.table.c[self.key_column]

    def add(self, entity: T) -> bool:
        def work(connection: Connection) -> bool:
            result = connection.execute(self.table.insert().values(**entity.to_row()))
            if self.assigns_id:
                entity.id = result.inserted_primary_key[0]
            return result.rowcount > 0

        return self._run("add", work)

    def update(self, entity: T) -> bool:
        identifier = getattr(entity, self.key_column)
        if identifier is None:
            return False
        statement = self.table.update().where(self.key == identifier).values(**entity.to_row())
        return self._run("update", lambda connection: connection.execute(statement).rowcount > 0)

    def delete(self, identifier: Any) -> bool:
        statement = self.table.delete().where(self.key == identifier)
        return self._run("delete", lambda connection: connection.execute(statement).rowcount > 0)

    def get_by_id(self, identifier: Any) -> T | None:
        return self._fetch_one("get_by_id", self.key == identifier)

    def list_all(self) -> List[T]:
        return self._fetch_all("list_all")

    def count(self) -> int:
        return self._count("count")
