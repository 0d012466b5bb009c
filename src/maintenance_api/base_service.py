"""
Base service class with common CRUD operations
"""

from abc import ABC, abstractmethod
from datetime import datetime, UTC
from typing import Generic, TypeVar

from sqlmodel import Session, SQLModel, select

from maintenance_api.common.error_handlers import ResourceNotFoundError, safe_execute

T = TypeVar("T", bound=SQLModel)
CreateT = TypeVar("CreateT")
UpdateT = TypeVar("UpdateT")


class BaseService(ABC, Generic[T, CreateT, UpdateT]):
    """Base service class with common CRUD operations"""

    resource_name: str | None = None

    def __init__(self, model: type[T]):
        self.model = model

    @property
    def _resource_name(self) -> str:
        return self.resource_name or self.model.__name__

    @abstractmethod
    def _create_instance(self, data: CreateT, **kwargs) -> T:
        """Create a new model instance. Must be implemented by subclasses."""
        pass

    def _validate_references(self, session: Session, data: CreateT | UpdateT) -> None:
        """Check foreign keys before writing. Override in subclasses if needed."""
        return None

    def create(self, session: Session, data: CreateT, **kwargs) -> T:
        """Create a new entity"""
        self._validate_references(session, data)

        def create_operation():
            instance = self._create_instance(data, **kwargs)
            session.add(instance)
            session.flush()  # Get ID without committing
            return instance

        entity = safe_execute(session, create_operation)
        session.refresh(entity)
        return entity

    def get_by_id(self, session: Session, entity_id: int) -> T:
        """Get entity by ID"""
        result = session.get(self.model, entity_id)
        if result is None:
            raise ResourceNotFoundError(self._resource_name, entity_id)
        return result

    def get_all(
        self, session: Session, skip: int = 0, limit: int = 100, **filters
    ) -> list[T]:
        """Get all entities with optional equality filters, ordered by ID"""
        statement = select(self.model)

        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                statement = statement.where(getattr(self.model, key) == value)

        statement = statement.order_by(self.model.id).offset(skip).limit(limit)
        return list(session.exec(statement).all())

    def update(self, session: Session, entity_id: int, data: UpdateT) -> T:
        """Update entity"""
        # This will raise ResourceNotFoundError if not found
        entity = self.get_by_id(session, entity_id)
        self._validate_references(session, data)

        def update_operation():
            update_data = data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if hasattr(entity, field):
                    setattr(entity, field, value)

            if hasattr(entity, "updated_at"):
                entity.updated_at = datetime.now(UTC)

            session.add(entity)
            session.flush()
            return entity

        entity = safe_execute(session, update_operation)
        session.refresh(entity)
        return entity

    def delete(self, session: Session, entity_id: int) -> bool:
        """Delete entity"""
        # This will raise ResourceNotFoundError if not found
        entity = self.get_by_id(session, entity_id)

        def delete_operation():
            session.delete(entity)
            return True

        return safe_execute(session, delete_operation)
