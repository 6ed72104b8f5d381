"""Pydantic schemas for marketplace products."""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from creatorhub.core.pricing import current_unit_price
from creatorhub.models.product import PRODUCT_CATEGORIES
from creatorhub.schemas.common import Pagination

ProductType = Literal["digital", "physical", "service"]
ProductStatus = Literal["draft", "active", "inactive", "suspended"]
License = Literal["personal", "commercial", "extended"]


class _SaleWindow(BaseModel):
    @model_validator(mode="after")
    def _sale_window(self):
        start = getattr(self, "sale_start_date", None)
        end = getattr(self, "sale_end_date", None)
        if start is not None and end is not None and end < start:
            raise ValueError("sale_end_date must not be before sale_start_date")
        return self


class ProductCreate(_SaleWindow):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    short_description: str | None = Field(default=None, max_length=500)
    category: str
    tags: list[str] = Field(default_factory=list)
    type: ProductType = "digital"
    license: License = "personal"
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    sale_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    is_on_sale: bool = False
    sale_start_date: datetime | None = None
    sale_end_date: datetime | None = None
    status: ProductStatus = "draft"

    @field_validator("category")
    @classmethod
    def _category(cls, v: str) -> str:
        if v not in PRODUCT_CATEGORIES:
            raise ValueError(f"Category must be one of: {PRODUCT_CATEGORIES}")
        return v

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be empty")
        return v


class ProductUpdate(_SaleWindow):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    short_description: str | None = None
    tags: list[str] | None = None
    license: License | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    sale_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    is_on_sale: bool | None = None
    sale_start_date: datetime | None = None
    sale_end_date: datetime | None = None
    status: Literal["draft", "active", "inactive"] | None = None

    # Omitting these leaves them unchanged; an explicit null is an error.
    @field_validator("title", "description", "price", "tags", "license", "is_on_sale", "status")
    @classmethod
    def _not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ProductRead(BaseModel):
    id: int
    title: str
    slug: str
    description: str
    short_description: str | None
    vendor_id: int
    vendor_name: str | None
    category: str
    tags: list[str]
    type: str
    license: str
    price: Decimal
    currency: str
    sale_price: Decimal | None
    is_on_sale: bool
    sale_start_date: datetime | None
    sale_end_date: datetime | None
    current_price: Decimal | None = None
    discount_percentage: int = 0
    status: str
    is_approved: bool
    views: int
    purchases: int
    created_at: datetime | None

    model_config = {"from_attributes": True}

    @classmethod
    def from_product(cls, product, as_of: datetime | None = None) -> ProductRead:
        read = cls.model_validate(product)
        read.current_price = current_unit_price(product, as_of)
        if product.is_on_sale and product.sale_price is not None and product.price:
            pct = (product.price - product.sale_price) / product.price * 100
            read.discount_percentage = int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return read


class ProductListResponse(BaseModel):
    products: list[ProductRead]
    pagination: Pagination


class ProductApproval(BaseModel):
    is_approved: bool
    rejection_reason: str | None = Field(default=None, max_length=500)


class Category(BaseModel):
    id: str
    name: str
    description: str
