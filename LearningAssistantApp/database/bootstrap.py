from abc import ABC, abstractmethod
from typing import List
import logging

from sqlalchemy import func, inspect, select
from sqlalchemy.exc import SQLAlchemyError

from LearningAssistantApp.core.choices import EnrollmentLevel, UserRole
from LearningAssistantApp.core.exceptions import DatabaseOperationError, handle_database_error
from LearningAssistantApp.database.connection import DatabaseConnectionInterface
from LearningAssistantApp.database.schema import CANONICAL_TABLE, metadata, valid_ids
from LearningAssistantApp.users.models import ValidRegistrationID

logger = logging.getLogger(__name__)

DEFAULT_UNIVERSITY = "Mohamed Khider Biskra"

DEFAULT_VALID_IDS = [
    ValidRegistrationID("UNTS00000001", UserRole.TEACHER, None, DEFAULT_UNIVERSITY),
    ValidRegistrationID("UNTS00000002", UserRole.TEACHER, None, DEFAULT_UNIVERSITY),
    ValidRegistrationID("UNST00000001", UserRole.STUDENT, EnrollmentLevel.L1.value, DEFAULT_UNIVERSITY),
    ValidRegistrationID("UNST00000002", UserRole.STUDENT, EnrollmentLevel.L2.value, DEFAULT_UNIVERSITY),
]


class DatabaseSchemaManagerInterface(ABC):
    @abstractmethod
    def create_schema(self) -> bool:
        pass

    @abstractmethod
    def seed_valid_ids(self) -> int:
        pass


class SchemaBootstrapper(DatabaseSchemaManagerInterface):
    def __init__(self, provider: DatabaseConnectionInterface,
                 default_valid_ids: List[ValidRegistrationID] | None = None):
        self.provider = provider
        self.default_valid_ids = DEFAULT_VALID_IDS if default_valid_ids is None else default_valid_ids

    def schema_exists(self) -> bool:
        with self.provider.transaction() as connection:
            return inspect(connection).has_table(CANONICAL_TABLE)

    def missing_tables(self) -> List[str]:
        try:
            with self.provider.transaction() as connection:
                present = set(inspect(connection).get_table_names())
        except SQLAlchemyError as error:
            logger.exception("Failed to inspect the database schema")
            raise handle_database_error(error, "missing_tables") from error
        return [table.name for table in metadata.sorted_tables if table.name not in present]

    def create_schema(self) -> bool:
        """Create every missing table in dependency order.

        A schema left half-built by an interrupted start is completed.
        Returns False when every table already exists.
        """
        missing = self.missing_tables()
        if not missing:
            logger.info("Schema already present, skipping table creation")
            return False
        if len(missing) < len(metadata.sorted_tables):
            logger.warning(f"Schema is incomplete, creating missing tables: {', '.join(missing)}")

        with self.provider.transaction() as connection:
            for table in metadata.sorted_tables:
                if table.name not in missing:
                    continue
                try:
                    table.create(connection, checkfirst=True)
                except SQLAlchemyError as error:
                    logger.exception(f"Failed to create table {table.name}")
                    raise DatabaseOperationError(
                        f"Failed to create table {table.name}: {error}", {"table": table.name}
                    ) from error
                logger.debug(f"Created table {table.name}")
        logger.info(f"Database schema created successfully ({len(missing)} tables)")
        return True

    def seed_valid_ids(self) -> int:
        """Insert the default allowlist when empty, otherwise back-fill missing defaults.

        Returns the number of rows inserted.
        """
        try:
            with self.provider.transaction() as connection:
                existing_count = connection.execute(select(func.count()).select_from(valid_ids)).scalar_one()
                if existing_count == 0:
                    missing = list(self.default_valid_ids)
                else:
                    present = set(connection.execute(select(valid_ids.c.matricule)).scalars())
                    missing = [valid_id for valid_id in self.default_valid_ids if valid_id.matricule not in present]
                if missing:
                    connection.execute(valid_ids.insert(), [valid_id.to_row() for valid_id in missing])
        except SQLAlchemyError as error:
            logger.exception("Failed to seed valid registration IDs")
            raise handle_database_error(error, "seed_valid_ids") from error

        if existing_count == 0:
            logger.info(f"Seeded {len(missing)} default valid registration IDs")
        elif missing:
            logger.info(f"Back-filled {len(missing)} missing valid registration IDs")
        return len(missing)

    def bootstrap(self) -> None:
        self.create_schema()
        self.seed_valid_ids()
