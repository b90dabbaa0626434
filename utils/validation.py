"""Helpers for turning pydantic validation failures into short user-facing messages"""
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def describe_errors(errors) -> str:
    """Returns a one-line message for the first error reported by pydantic."""
    if not errors:
        return "Invalid input"
    error = errors[0]
    message = error.get("msg", "Invalid input")
    if error.get("type") == "value_error":
        # Messages raised by our own validators are already user-facing
        return message.removeprefix("Value error, ")
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {message}" if location else message


def parse_input(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """Validates `data` against `model`, raising the domain ValidationError on failure."""
    try:
        return model.model_validate(data)
    except SchemaValidationError as e:
        raise ValidationError(describe_errors(e.errors())) from e
