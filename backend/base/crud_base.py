"""Base CRUD class for the management blueprints."""
from flask import abort, request
from typing import Type, Optional, Dict, Any, Iterable, Tuple, List
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from shared.schemas import PaginationQuery
from ..models import db
from ..utils import pagination_meta, get_json_body, validate_payload
import logging


def serialize_model(resource, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    """Serialize a model row to a camelCase dictionary.

    Args:
        resource: SQLAlchemy model instance
        exclude: Column names left out of the result

    Returns:
        Dictionary keyed by camelCase column names
    """
    result = {}
    for column in resource.__table__.columns:
        if column.name in exclude:
            continue
        value = getattr(resource, column.name)
        # Handle datetime serialization
        if hasattr(value, 'isoformat'):
            result[to_camel(column.name)] = value.isoformat()
        # Handle enum serialization
        elif hasattr(value, 'value'):
            result[to_camel(column.name)] = value.value
        else:
            result[to_camel(column.name)] = value
    return result


class CRUDBase:
    """Common operations shared by resources managed through the API.

    This class encapsulates common patterns for:
    - Paginated list retrieval
    - Lookup by identifier with a 404 on miss
    - Request body parsing and schema validation
    - Deletion

    Subclasses may override serialize() to add related data.
    """

    exclude: Tuple[str, ...] = ()

    def __init__(self, model_class: Type, label: str, logger_name: Optional[str] = None):
        """Initialize CRUD base class.

        Args:
            model_class: SQLAlchemy model class
            label: Human readable resource name used in messages (e.g. 'User')
            logger_name: Optional logger name (defaults to class name)
        """
        self.model = model_class
        self.label = label
        self.logger = logging.getLogger(logger_name or self.__class__.__name__)

    def get_list(self, pagination: PaginationQuery, query=None) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """Get one page of resources.

        Args:
            pagination: Validated page and limit
            query: Optional pre-filtered query (defaults to all rows)

        Returns:
            Tuple of (serialized items, pagination meta)
        """
        query = query if query is not None else self.model.query
        total = query.order_by(None).count()
        items = query.order_by(self.model.created_at.desc()) \
            .offset(pagination.skip).limit(pagination.limit).all()
        return [self.serialize(item) for item in items], pagination_meta(pagination.page, pagination.limit, total)

    def get_or_404(self, resource_id: str):
        resource = db.session.get(self.model, resource_id)
        if resource is None:
            abort(404, description=f'{self.label} not found')
        return resource

    def delete(self, resource_id: str) -> None:
        resource = self.get_or_404(resource_id)
        try:
            db.session.delete(resource)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        self.logger.info(f"Deleted {self.label.lower()}: {resource_id}")

    def serialize(self, resource) -> Dict[str, Any]:
        """Serialize resource to dictionary.

        Subclasses should override this method to customize serialization.
        """
        return serialize_model(resource, self.exclude)

    def get_json_data(self) -> Dict[str, Any]:
        """Get and validate JSON data from request.

        Raises:
            ValidationError: If JSON is invalid or not a dict
        """
        return get_json_body()

    def validate(self, schema: Type[BaseModel], data: Dict[str, Any]) -> BaseModel:
        return validate_payload(schema, data)

    def get_pagination(self) -> PaginationQuery:
        return self.validate(PaginationQuery, request.args.to_dict())
