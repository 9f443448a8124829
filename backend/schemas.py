"""
Request schemas for the tech store API.

Each model validates one operation's input before anything touches MongoDB.
Product and filter fields keep the catalogue's wire names (``categoria``,
``marca``, ``precio`` ...) as aliases so existing clients and stored
documents keep working.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

PAYMENT_METHODS = ("paypal", "mercadopago", "wompi")
USER_ROLES = ("admin", "user")
MAX_PRODUCT_IMAGES = 5
MIN_DESCRIPTION_LENGTH = 20
SORTABLE_PRODUCT_FIELDS = (
    "precio",
    "marca",
    "modelo",
    "categoria",
    "stock",
    "nombreCompleto",
    "createdAt",
)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RegisterInput(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: Literal[USER_ROLES] = "user"

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, value):
        value = _blank_to_none(value)
        return "user" if value is None else str(value).strip().lower()


class LoginInput(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class ProductCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    category: str = Field(..., alias="categoria", min_length=1)
    brand: str = Field(..., alias="marca", min_length=1)
    model: str = Field(..., alias="modelo", min_length=1)
    price: float = Field(..., alias="precio", ge=0)
    description: str = Field(
        ..., alias="descripcion", min_length=MIN_DESCRIPTION_LENGTH
    )
    images: List[str] = Field(
        ..., alias="imagenes", min_length=1, max_length=MAX_PRODUCT_IMAGES
    )
    stock: int = Field(5, ge=0)
    available: bool = Field(True, alias="disponible")
    featured: bool = Field(False, alias="destacado")
    features: List[str] = Field(default_factory=list, alias="caracteristicas")

    @field_validator("images", "features", mode="before")
    @classmethod
    def wrap_single_value(cls, value):
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value

    @field_validator("stock", "available", "featured", mode="before")
    @classmethod
    def use_default_when_blank(cls, value, info):
        if _blank_to_none(value) is None:
            return cls.model_fields[info.field_name].default
        return value


class ProductUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    category: Optional[str] = Field(None, alias="categoria", min_length=1)
    brand: Optional[str] = Field(None, alias="marca", min_length=1)
    model: Optional[str] = Field(None, alias="modelo", min_length=1)
    price: Optional[float] = Field(None, alias="precio", ge=0)
    description: Optional[str] = Field(
        None, alias="descripcion", min_length=MIN_DESCRIPTION_LENGTH
    )
    images: Optional[List[str]] = Field(
        None, alias="imagenes", min_length=1, max_length=MAX_PRODUCT_IMAGES
    )
    stock: Optional[int] = Field(None, ge=0)
    available: Optional[bool] = Field(None, alias="disponible")
    featured: Optional[bool] = Field(None, alias="destacado")
    features: Optional[List[str]] = Field(None, alias="caracteristicas")


class ProductFilters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category: Optional[str] = Field(None, alias="categoria")
    brand: Optional[str] = Field(None, alias="marca")
    min_price: Optional[float] = Field(None, alias="minPrice")
    max_price: Optional[float] = Field(None, alias="maxPrice")

    @field_validator("*", mode="before")
    @classmethod
    def drop_blank(cls, value):
        return _blank_to_none(value)


class ProductSearch(ProductFilters):
    model: Optional[str] = Field(None, alias="modelo")
    sort_by: Literal[SORTABLE_PRODUCT_FIELDS] = Field("precio", alias="sortBy")
    sort_order: Literal["asc", "desc"] = Field("asc", alias="sortOrder")
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)

    @field_validator("sort_by", "sort_order", "page", "limit", mode="before")
    @classmethod
    def use_default_when_blank(cls, value, info):
        if _blank_to_none(value) is None:
            return cls.model_fields[info.field_name].default
        return value


class OrderItemInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId", pattern=r"^[0-9a-fA-F]{24}$")
    name: str = ""
    price: float = Field(0, ge=0)
    quantity: int = Field(1, ge=1)


class OrderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[OrderItemInput] = Field(..., min_length=1)
    total: float = Field(..., ge=0)
    payment_method: Literal[PAYMENT_METHODS] = Field(..., alias="paymentMethod")
