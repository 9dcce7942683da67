import logging
from typing import Any

from pydantic import BaseModel
from sqlalchemy.engine.row import Row

logger = logging.getLogger(__name__)

_FALLBACKS = {dict: dict, str: str, bool: bool, int: int, float: float}


class CustomBaseModel(BaseModel):
    """Custom base model for all response schemas.
    - coerce simple typed fields before init
    - fall back to the field default when a value cannot be coerced
    - build a schema from a db row, ORM object or dict
    """

    def __init__(self, **data: Any) -> None:
        fields = self.__class__.model_fields
        for attr, value in data.items():
            field = fields.get(attr)
            if field is None or value is None:
                continue
            attr_type = field.annotation
            if attr_type not in _FALLBACKS:
                continue
            try:  # try to convert the value to the type of the attribute
                data[attr] = attr_type(value)
            except (TypeError, ValueError):
                logger.warning("Invalid value for key: %s, using default", attr)
                if field.is_required():
                    data[attr] = _FALLBACKS[attr_type]()
                else:
                    data[attr] = field.get_default(call_default_factory=True)
        super().__init__(**data)

    @classmethod
    def from_record(cls, record: Any, **extra: Any):
        if isinstance(record, Row):
            values = record._asdict()
        elif isinstance(record, dict):
            values = dict(record)
        elif hasattr(record, "__table__"):
            values = {c.name: getattr(record, c.name) for c in record.__table__.columns}
        else:
            raise ValueError(f"Invalid record type: {type(record)}")
        values.update(extra)
        return cls(**{k: v for k, v in values.items() if k in cls.model_fields})
