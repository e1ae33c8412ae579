# lotus_backend/schemas/common.py
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from lotus_backend.core.errors import ValidationError

M = TypeVar("M", bound=BaseModel)


def parse(model_cls: Type[M], data: Any) -> M:
    """Validate ``data`` into ``model_cls``, raising the engine's ValidationError."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        errors = [
            {"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg")}
            for e in exc.errors()
        ]
        raise ValidationError(f"Invalid {model_cls.__name__}", errors=errors) from exc
