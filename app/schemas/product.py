# app/schemas/product.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class ProductCreate(SQLModel):
    """
    Payload for creating a catalog product (seeding / catalog tooling).

    - code is trimmed and upper-cased.
    """

    model_config = ConfigDict(extra="forbid")

    title: str = Field(max_length=100, min_length=3)
    description: str = Field(default="", max_length=500)
    code: str = Field(max_length=20)
    price: float = Field(gt=0)
    stock: int = Field(default=0, ge=0)
    is_active: bool = True
    category: str = Field(max_length=50)

    @field_validator("title", "category")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("code cannot be empty")
        return v


class ProductUpdate(SQLModel):
    """
    Partial catalog edit. All fields are optional; stock changes made here
    are restocks and corrections, never sales.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=100, min_length=3)
    description: str | None = Field(default=None, max_length=500)
    price: float | None = Field(default=None, gt=0)
    stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    category: str | None = Field(default=None, max_length=50)

    @field_validator("title", "category")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ProductRead(SQLModel):
    id: uuid.UUID
    title: str
    description: str
    code: str
    price: float
    stock: int
    is_active: bool
    in_stock: bool
    category: str
    created_at: datetime


class ProductResponse(SQLModel):
    status: Literal["success"] = "success"
    product: ProductRead


class ProductListResponse(SQLModel):
    status: Literal["success"] = "success"
    products: list[ProductRead]
