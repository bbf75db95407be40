"""Canonical catalog models shared by every consumer of the storefront."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class ProductCategory(str, Enum):
    """Closed set of storefront categories."""

    APPAREL = "apparel"
    ACCESSORIES = "accessories"
    BOOKS = "books"
    GIFTS = "gifts"
    SEASONAL = "seasonal"


class VariantType(str, Enum):
    """Presentation group a variant belongs to."""

    SIZE = "size"
    COLOR = "color"
    STYLE = "style"
    MATERIAL = "material"


class ProductImage(BaseModel):
    id: str
    url: str
    alt: str = ""
    is_main: bool = False
    order: int = Field(0, ge=0)


class ProductVariant(BaseModel):
    """Single purchasable option of a product."""

    id: str
    name: str
    type: VariantType = VariantType.STYLE
    price: Decimal | None = Field(
        None,
        ge=0,
        description="Overrides the product base price when present",
    )
    stock_count: int | None = None
    sku: str | None = None
    is_available: bool = True


class Dimensions(BaseModel):
    length: float
    width: float
    height: float


def _epoch() -> datetime:
    return datetime.fromtimestamp(0, UTC)


class Product(BaseModel):
    """Canonical product consumed by every view and by the local cart."""

    id: str = Field(..., description="Unique identifier of the product")
    handle: str | None = None
    name: str
    description: str = ""
    short_description: str = ""
    category: ProductCategory = ProductCategory.GIFTS
    price: Decimal = Field(..., ge=0)
    sale_price: Decimal | None = Field(None, ge=0)
    images: list[ProductImage] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    in_stock: bool = True
    stock_count: int = 0
    featured: bool = False
    tags: list[str] = Field(default_factory=list)
    weight: float | None = None
    dimensions: Dimensions | None = None
    materials: list[str] = Field(default_factory=list)
    care_instructions: str | None = None
    created_at: datetime = Field(default_factory=_epoch)
    updated_at: datetime = Field(default_factory=_epoch)

    # Only populated for products coming from the commerce backend
    collections: list[str] = Field(default_factory=list)
    vendor: str | None = None
    product_type: str | None = None

    catalog_warnings: list[str] = Field(
        default_factory=list,
        description="Consistency problems detected while building the product",
    )

    @model_validator(mode="after")
    def _check_sale_price(self) -> Product:
        if self.sale_price is not None and self.sale_price >= self.price:
            raise ValueError("sale_price must be lower than price")
        return self

    @property
    def effective_price(self) -> Decimal:
        """Price a shopper pays right now."""
        return self.sale_price if self.sale_price is not None else self.price

    @property
    def on_sale(self) -> bool:
        return self.sale_price is not None

    @property
    def discount_percentage(self) -> int:
        if self.sale_price is None or not self.price:
            return 0
        return int(round((self.price - self.sale_price) / self.price * 100))

    @property
    def main_image(self) -> ProductImage | None:
        for image in self.images:
            if image.is_main:
                return image
        return self.images[0] if self.images else None

    def find_variant(self, variant_id: str | None) -> ProductVariant | None:
        if variant_id is None:
            return None
        return next((v for v in self.variants if v.id == variant_id), None)

    def variants_by_type(self) -> dict[VariantType, list[ProductVariant]]:
        """Group variants for presentation; the flat list stays untouched."""
        groups: dict[VariantType, list[ProductVariant]] = {}
        for variant in self.variants:
            groups.setdefault(variant.type, []).append(variant)
        return groups

    def consistency_issues(self) -> list[str]:
        """Return the reasons this product cannot be trusted as-is."""
        issues: list[str] = []
        if not self.in_stock:
            available = [v.id for v in self.variants if v.is_available]
            if available:
                issues.append(
                    "product is out of stock but exposes available variants: "
                    + ", ".join(available)
                )
        return issues


class CategoryData(BaseModel):
    """Category facet shown by filter navigation.

    ``product_count`` is derived from whatever product set is loaded at the
    time (often a single page), so it understates totals once pagination is
    in effect.
    """

    id: ProductCategory
    name: str
    slug: str
    description: str
    icon: str
    featured: bool = False
    product_count: int = 0
    count_is_approximate: bool = True


class Collection(BaseModel):
    """Merchandising collection exposed by the commerce backend."""

    id: str
    handle: str
    title: str
    description: str = ""
    image: ProductImage | None = None
