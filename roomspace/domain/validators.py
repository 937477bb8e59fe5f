from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from roomspace.errors import ValidationError, format_validation_error

M = TypeVar("M", bound=BaseModel)


def parse_payload(model: Type[M], data: Any) -> M:
    """
    Validate an untyped payload against a declared schema.

    Checks run in field-declaration order and only the first violation is
    reported; nothing is partially accepted.
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValidationError("payload must be an object")
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError(format_validation_error(e.errors())) from e


def parse_query(model: Type[M], params: Mapping[str, str]) -> M:
    # empty query values count as absent (?category=&sortBy=price_low)
    cleaned = {k: v for k, v in params.items() if v != ""}
    return parse_payload(model, cleaned)
