# bookmarket/validation.py
"""Schema checks for raw input before it reaches a store.

Every helper raises :class:`bookmarket.errors.ValidationError` carrying a
``field_errors`` mapping of ``{field: [messages]}``.
"""

from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from .errors import ValidationError
from .schemas import BookDraft, BookPatch, LoginForm, ProfileUpdate, UserCreate

ModelT = TypeVar("ModelT", bound=BaseModel)


def _message(error: Dict[str, Any]) -> str:
    if error["type"] == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return error["msg"]


def field_errors(exc: SchemaError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(field, []).append(_message(error))
    return errors


def parse(model: Type[ModelT], data: Mapping[str, Any]) -> ModelT:
    try:
        return model.model_validate(dict(data))
    except SchemaError as exc:
        errors = field_errors(exc)
        field, messages = next(iter(errors.items()))
        raise ValidationError(f"Validation failed: {field}: {messages[0]}", errors) from exc


def _supplied(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def parse_draft(data: Mapping[str, Any], owner_id: int) -> BookDraft:
    return parse(BookDraft, {**_supplied(data), "owner_id": owner_id})


def parse_patch(data: Mapping[str, Any]) -> BookPatch:
    """Build a patch from form data; keys that are absent or ``None`` are not supplied."""
    return parse(BookPatch, _supplied(data))


def parse_login(data: Mapping[str, Any]) -> LoginForm:
    return parse(LoginForm, data)


def parse_profile(data: Mapping[str, Any]) -> ProfileUpdate:
    return parse(ProfileUpdate, _supplied(data))


def parse_user(data: Mapping[str, Any]) -> UserCreate:
    return parse(UserCreate, data)


def check_id(value: Any) -> int:
    """Return ``value`` as a positive integer id."""
    if isinstance(value, bool):
        raise ValidationError("Invalid ID provided.", {"id": ["Must be a positive integer"]})
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise ValidationError("Invalid ID provided.", {"id": ["Must be a positive integer"]})
    return value


def ensure_draft(draft: BookDraft) -> BookDraft:
    return parse(BookDraft, draft.model_dump())


def ensure_patch(patch: BookPatch) -> BookPatch:
    return parse(BookPatch, patch.model_dump(include=patch.model_fields_set))
