# bookmarket/schemas.py
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

PRICE_PATTERN = re.compile(r"^\d+(\.\d{1,2})?$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SortOrder = Literal["asc", "desc", "none"]


class Category(str, Enum):
    TECHNOLOGY = "Technology"
    SCIENCE = "Science"
    HISTORY = "History"
    FANTASY = "Fantasy"
    BIOGRAPHY = "Biography"


VALID_CATEGORIES = [c.value for c in Category]


def _parse_price(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if not PRICE_PATTERN.match(value):
            raise ValueError("Must be a valid price (e.g., 10.00)")
        return float(value)
    return value


def _round_price(value: Any) -> float:
    try:
        rounded = float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        raise ValueError("Must be a valid price (e.g., 10.00)") from exc
    if rounded <= 0:
        raise ValueError("Price must be greater than 0")
    return rounded


class Book(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    author: str
    # Stored as plain text: a record keeps its category even if the set changes.
    category: str
    price: float
    owner_id: int = Field(validation_alias=AliasChoices("owner_id", "ownerId"))
    thumbnail: str = ""


class BookDraft(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    author: str = Field(..., min_length=1, max_length=100)
    category: Category
    price: float = Field(..., gt=0)
    owner_id: int = Field(..., gt=0)
    thumbnail: str = ""

    @field_validator("price", mode="before")
    @classmethod
    def check_price_format(cls, value: Any) -> Any:
        return _parse_price(value)

    @field_validator("price")
    @classmethod
    def round_price(cls, value: float) -> float:
        return _round_price(value)


class BookPatch(BaseModel):
    """Partial update: only fields present in ``model_fields_set`` are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    author: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[Category] = None
    price: Optional[float] = Field(None, gt=0)
    thumbnail: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def check_price_format(cls, value: Any) -> Any:
        return _parse_price(value)

    @field_validator("price")
    @classmethod
    def round_price(cls, value: Optional[float]) -> Optional[float]:
        return None if value is None else _round_price(value)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "BookPatch":
        cleared = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if cleared:
            raise ValueError(f"Fields cannot be cleared: {', '.join(cleared)}")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", include=self.model_fields_set)


class ScanCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner_id: Optional[int] = None
    category: Optional[str] = None
    search: str = ""


class CatalogQuery(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1)
    search: str = ""
    sort: SortOrder = "none"
    owner_id: Optional[int] = None
    category: Optional[str] = None


class BookPage(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    items: List[Book]


class SafeUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    image: Optional[str] = None


class User(SafeUser):
    password: str


def sanitize_user(user: User) -> SafeUser:
    return SafeUser.model_validate(user.model_dump(exclude={"password"}))


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=6, max_length=72)
    image: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address.")
        return value


class LoginForm(BaseModel):
    email: str
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address.")
        return value


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=254)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address.")
        return value


class ActionResult(BaseModel):
    success: bool
    message: str
    book: Optional[Book] = None
    user: Optional[SafeUser] = None
    field_errors: Optional[Dict[str, List[str]]] = None
    status_code: int = Field(200, exclude=True)
