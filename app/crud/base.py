from typing import Generic, TypeVar, Type, Optional, List, Any, Dict, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from app.database import Base

ModelType = TypeVar("ModelType", bound=Base)


def insert_ignoring_conflicts(db: Session, model: Type[Base], values: Dict[str, Any], index_elements: Sequence[str]):
    """
    INSERT ... ON CONFLICT (index_elements) DO NOTHING for the session's dialect.

    Atomic and race-condition safe: concurrent writers of the same unique key
    converge on a single row. Does NOT commit.
    """
    dialect = db.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = insert(model).values(**values).on_conflict_do_nothing(index_elements=list(index_elements))
    db.execute(stmt)


class CRUDBase(Generic[ModelType]):
    """
    Generic CRUD class for seed data keyed by natural unique columns.

    Rows are written with upsert-by-unique-key so that running the same
    seed twice leaves the table unchanged.

    Type Parameters:
        ModelType: SQLAlchemy model class
    """

    # Natural key columns backing the unique constraint used for upserts
    unique_fields: Sequence[str] = ()

    def __init__(self, model: Type[ModelType]):
        """
        Initialize CRUD object with model class.

        Args:
            model: SQLAlchemy model class
        """
        self.model = model

    def get_by_key(self, db: Session, **key: Any) -> Optional[ModelType]:
        """
        Retrieve a single record by its natural key.

        Args:
            db: Database session
            **key: Column values making up the unique key

        Returns:
            Model instance or None if not found
        """
        stmt = select(self.model).filter_by(**key)
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def get_multi(self, db: Session, *, tenant_id: Optional[int] = None) -> List[ModelType]:
        """
        Retrieve all records, optionally filtered by tenant.

        Args:
            db: Database session
            tenant_id: Tenant ID for isolation (tenant-scoped models only)

        Returns:
            List of model instances
        """
        stmt = select(self.model)
        if tenant_id is not None:
            stmt = stmt.where(self.model.tenant_id == tenant_id)
        result = db.execute(stmt)
        return list(result.scalars().all())

    def count(self, db: Session, *, tenant_id: Optional[int] = None) -> int:
        stmt = select(func.count()).select_from(self.model)
        if tenant_id is not None:
            stmt = stmt.where(self.model.tenant_id == tenant_id)
        return db.execute(stmt).scalar_one()

    def upsert(self, db: Session, *, values: Dict[str, Any]) -> ModelType:
        """
        Insert a record unless one with the same natural key exists.

        Existing rows are left untouched. Flushes but does NOT commit; the
        caller decides the transaction boundary.

        Args:
            db: Database session
            values: Column values, must include every unique field

        Returns:
            The inserted or pre-existing model instance
        """
        insert_ignoring_conflicts(db, self.model, values, self.unique_fields)
        db.flush()
        key = {field: values[field] for field in self.unique_fields}
        obj = self.get_by_key(db, **key)
        return obj
