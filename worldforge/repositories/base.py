"""Base repository with shared, owner-scoped get-by-ID patterns.

Subclasses specify model_class, id_column, owner_column and
not_found_error; the base provides the common implementations.

Every lookup takes an optional ``owner_id``. ``None`` means "any owner"
(the admin view); a string restricts the query to rows created by that
user, so a row owned by someone else looks exactly like a missing row.
"""

from typing import TypeVar, Generic, Optional, Type
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import WorldforgeException

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., PlaygroundNode)
        id_column:       Name of the primary-key column (default "id")
        owner_column:    Name of the ownership column (default "created_by")
        not_found_error: Exception class to raise from get_by_id
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    owner_column: str = "created_by"
    not_found_error: Type[WorldforgeException]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self, owner_id: Optional[str] = None) -> Query:
        """Base query, restricted to *owner_id*'s rows when given."""
        query = self.db.query(self.model_class)
        if owner_id is not None:
            query = query.filter(getattr(self.model_class, self.owner_column) == owner_id)
        return query

    def get_by_id(self, entity_id: str, owner_id: Optional[str] = None) -> ModelT:
        """Get entity by primary key. Raises not_found_error if missing or not visible."""
        entity = self.get_by_id_optional(entity_id, owner_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str, owner_id: Optional[str] = None) -> Optional[ModelT]:
        """Get entity by primary key, or None if missing or not visible."""
        col = getattr(self.model_class, self.id_column)
        return self._base_query(owner_id).filter(col == entity_id).first()
