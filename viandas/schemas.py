from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, EmailStr, Field, model_validator
from pydantic.config import ConfigDict

from .auth import validate_password_strength
from .utils import strip_html

MAX_PRICE = Decimal("999.99")
PASSWORD_RULE = "password must have at least 8 characters, one uppercase letter, one lowercase letter and one digit"


class Role(str, Enum):
    user = "user"
    admin = "admin"


class OrderSize(str, Enum):
    small = "small"
    medium = "medium"
    large = "large"
    extra_large = "extra-large"


class OrderStatus(str, Enum):
    pending = "pending"
    preparing = "preparing"
    ready = "ready"
    delivered = "delivered"
    cancelled = "cancelled"


def _strong_password(value: str) -> str:
    if not validate_password_strength(value):
        raise ValueError(PASSWORD_RULE)
    return value


def _clean_text(value):
    if isinstance(value, str):
        return strip_html(value)
    return value


StrongPassword = Annotated[str, Field(max_length=128), AfterValidator(_strong_password)]
# HTML is stripped before the length checks run
CleanText = Annotated[str, BeforeValidator(_clean_text)]


# -------------------- Users --------------------

class UserRegister(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr = Field(..., max_length=255)
    password: StrongPassword


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = Field(default=None, max_length=255)
    password: Optional[StrongPassword] = None
    # only honoured for admins, see the users routes
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: StrongPassword
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("passwords do not match")
        return self


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    role: str = "user"
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResult(BaseModel):
    user: UserRead
    token: str


# -------------------- Orders --------------------

class OrderCreate(BaseModel):
    client: CleanText = Field(..., min_length=2, max_length=100)
    size: OrderSize
    complement: Optional[CleanText] = Field(default=None, max_length=200)
    price: Decimal = Field(..., gt=0, le=MAX_PRICE)


class OrderUpdate(BaseModel):
    client: Optional[CleanText] = Field(default=None, min_length=2, max_length=100)
    size: Optional[OrderSize] = None
    complement: Optional[CleanText] = Field(default=None, max_length=200)
    price: Optional[Decimal] = Field(default=None, gt=0, le=MAX_PRICE)
    status: Optional[OrderStatus] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderFilters(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    status: Optional[OrderStatus] = None
    client: Optional[str] = Field(default=None, max_length=100)
    # set by the route for non-admin callers
    user_id: Optional[int] = None


class OrderRead(BaseModel):
    id: int
    user_id: int
    client: str
    size: str
    complement: Optional[str] = None
    price: Decimal
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -------------------- Files --------------------

class FileRead(BaseModel):
    id: str
    original_name: str
    key: str
    size: int
    content_type: str
    url: str
    user_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StorageStats(BaseModel):
    total_files: int
    total_size: int
    average_size: float
    type_distribution: dict[str, int]
