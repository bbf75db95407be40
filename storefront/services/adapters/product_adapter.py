"""Map catalog nodes returned by the commerce backend onto canonical products.

Every function here is pure. ``adapt_product`` never raises: malformed or
partially populated nodes degrade to best-effort values so that one bad node
cannot take down the adaptation of a whole page.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from storefront.models.product import (
    CategoryData,
    Collection,
    Product,
    ProductCategory,
    ProductImage,
    ProductVariant,
    VariantType,
)
from storefront.services.adapters.fields import (
    as_dict,
    edges,
    int_or_none,
    parse_money,
    parse_timestamp,
    string_list,
    text,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = ProductCategory.GIFTS
SHORT_DESCRIPTION_LENGTH = 150
GID_PREFIX = "gid://shopify/"

# Ordered: the first keyword found in the product type wins.
PRODUCT_TYPE_KEYWORDS: tuple[tuple[str, ProductCategory], ...] = (
    ("shirt", ProductCategory.APPAREL),
    ("hoodie", ProductCategory.APPAREL),
    ("apparel", ProductCategory.APPAREL),
    ("clothing", ProductCategory.APPAREL),
    ("bag", ProductCategory.ACCESSORIES),
    ("mug", ProductCategory.ACCESSORIES),
    ("accessory", ProductCategory.ACCESSORIES),
    ("accessories", ProductCategory.ACCESSORIES),
    ("sticker", ProductCategory.ACCESSORIES),
    ("book", ProductCategory.BOOKS),
    ("guide", ProductCategory.BOOKS),
    ("education", ProductCategory.BOOKS),
    ("gift", ProductCategory.GIFTS),
    ("collectible", ProductCategory.GIFTS),
    ("seasonal", ProductCategory.SEASONAL),
    ("holiday", ProductCategory.SEASONAL),
)

VARIANT_OPTION_TYPES: tuple[tuple[str, VariantType], ...] = (
    ("size", VariantType.SIZE),
    ("colour", VariantType.COLOR),
    ("color", VariantType.COLOR),
    ("material", VariantType.MATERIAL),
    ("style", VariantType.STYLE),
)

BASE_CATEGORIES: tuple[dict[str, Any], ...] = (
    {
        "id": ProductCategory.APPAREL,
        "name": "Apparel",
        "description": "T-shirts, hoodies, and wearable sanctuary gear",
        "icon": "Shirt",
        "featured": True,
    },
    {
        "id": ProductCategory.ACCESSORIES,
        "name": "Accessories",
        "description": "Bags, mugs, stickers, and everyday items",
        "icon": "ShoppingBag",
        "featured": True,
    },
    {
        "id": ProductCategory.BOOKS,
        "name": "Books & Education",
        "description": "Educational materials and rescue stories",
        "icon": "BookOpen",
        "featured": False,
    },
    {
        "id": ProductCategory.GIFTS,
        "name": "Gifts",
        "description": "Perfect gifts for animal lovers",
        "icon": "Gift",
        "featured": True,
    },
    {
        "id": ProductCategory.SEASONAL,
        "name": "Seasonal",
        "description": "Holiday and seasonal sanctuary items",
        "icon": "Calendar",
        "featured": False,
    },
)


# ---------------------------------------------------------------------------
# Mapping tables
# ---------------------------------------------------------------------------


def map_product_type_to_category(product_type: str | None) -> ProductCategory:
    """Map the backend's free-form product type onto the closed category set."""

    lowered = (product_type or "").lower()
    for keyword, category in PRODUCT_TYPE_KEYWORDS:
        if keyword in lowered:
            return category
    return DEFAULT_CATEGORY


def infer_variant_type(selected_options: Any) -> VariantType:
    for option in selected_options if isinstance(selected_options, list) else []:
        name = text(as_dict(option).get("name")).lower()
        for keyword, variant_type in VARIANT_OPTION_TYPES:
            if keyword in name:
                return variant_type
    return VariantType.STYLE


def shorten(description: str, limit: int = SHORT_DESCRIPTION_LENGTH) -> str:
    if len(description) <= limit:
        return description
    return description[:limit].rstrip() + "..."


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


def adapt_images(node: dict[str, Any], fallback_alt: str) -> list[ProductImage]:
    images: list[ProductImage] = []
    for index, image in enumerate(edges(node.get("images"))):
        url = text(image.get("url") or image.get("src"))
        if not url:
            continue
        images.append(
            ProductImage(
                id=text(image.get("id"), f"image-{index}"),
                url=url,
                alt=text(image.get("altText")) or fallback_alt,
                is_main=not images,
                order=len(images),
            )
        )
    return images


def adapt_variant(variant: dict[str, Any], index: int) -> ProductVariant:
    available = variant.get("availableForSale", variant.get("available"))
    return ProductVariant(
        id=text(variant.get("id"), f"variant-{index}"),
        name=text(variant.get("title"), "Default"),
        type=infer_variant_type(variant.get("selectedOptions")),
        price=parse_money(variant.get("price")),
        stock_count=int_or_none(variant.get("quantityAvailable")),
        sku=text(variant.get("sku")) or None,
        is_available=bool(available),
    )


def adapt_product(node: Any) -> Product:
    """Convert one catalog node into a canonical ``Product``. Never raises."""

    node = as_dict(node)
    title = text(node.get("title"), "Untitled product")
    description = text(node.get("description"))
    tags = string_list(node.get("tags"))
    product_type = text(node.get("productType"))

    variants = [
        adapt_variant(variant, index)
        for index, variant in enumerate(edges(node.get("variants")))
    ]

    price = parse_money(as_dict(node.get("priceRange")).get("minVariantPrice"))
    if price is None:
        variant_prices = [v.price for v in variants if v.price is not None]
        price = min(variant_prices) if variant_prices else Decimal("0")
    compare_at = parse_money(
        as_dict(node.get("compareAtPriceRange")).get("minVariantPrice")
    )
    # A compare-at price above the selling price means the product is on sale:
    # the compare-at value is the regular price and the selling price the sale.
    sale_price = None
    if compare_at is not None and compare_at > price:
        price, sale_price = compare_at, price

    available = node.get("availableForSale")
    in_stock = (
        bool(available)
        if available is not None
        else any(variant.is_available for variant in variants)
    )

    values = {
        "id": text(node.get("id"), "unknown"),
        "handle": text(node.get("handle")) or None,
        "name": title,
        "description": description,
        "short_description": shorten(description),
        "category": map_product_type_to_category(product_type),
        "price": price,
        "sale_price": sale_price,
        "images": adapt_images(node, title),
        "variants": variants,
        "in_stock": in_stock,
        "stock_count": sum(variant.stock_count or 0 for variant in variants),
        "featured": any(tag.lower() == "featured" for tag in tags),
        "tags": tags,
        "created_at": parse_timestamp(node.get("createdAt")),
        "updated_at": parse_timestamp(node.get("updatedAt")),
        "collections": [
            text(collection.get("handle"))
            for collection in edges(node.get("collections"))
            if collection.get("handle")
        ],
        "vendor": text(node.get("vendor")) or None,
        "product_type": product_type or None,
    }

    try:
        product = Product(**values)
    except ValidationError as exc:
        logger.warning("Degrading malformed catalog node %s: %s", values["id"], exc)
        product = Product(
            id=values["id"],
            name=title,
            price=Decimal("0"),
            in_stock=False,
            catalog_warnings=[f"malformed catalog node: {exc.error_count()} errors"],
        )

    issues = product.consistency_issues()
    if issues:
        logger.warning(
            "Inconsistent catalog node",
            extra={"product_id": product.id, "issues": issues},
        )
        product.catalog_warnings.extend(issues)

    if not is_valid_product_node(node):
        product.catalog_warnings.append("catalog node is missing required fields")

    return product


def adapt_products(nodes: Iterable[Any]) -> list[Product]:
    return [adapt_product(node) for node in nodes]


def adapt_product_connection(connection: Any) -> tuple[list[Product], dict[str, Any]]:
    """Adapt a ``{edges, pageInfo}`` connection into products and page info."""

    connection = as_dict(connection)
    page_info = as_dict(connection.get("pageInfo"))
    return adapt_products(edges(connection)), {
        "has_next_page": bool(page_info.get("hasNextPage")),
        "has_previous_page": bool(page_info.get("hasPreviousPage")),
        "end_cursor": page_info.get("endCursor") or None,
    }


def adapt_collection(node: Any) -> Collection | None:
    """Adapt a collection node; nodes without id or handle are dropped."""

    node = as_dict(node)
    if not node.get("id") or not node.get("handle"):
        logger.warning("Skipping collection node without id or handle")
        return None
    image = as_dict(node.get("image"))
    return Collection(
        id=text(node["id"]),
        handle=text(node["handle"]),
        title=text(node.get("title"), text(node["handle"])),
        description=text(node.get("description")),
        image=ProductImage(
            id=text(image.get("id"), f"{node['handle']}-image"),
            url=text(image["url"]),
            alt=text(image.get("altText")),
            is_main=True,
        )
        if image.get("url")
        else None,
    )


def adapt_collection_connection(connection: Any) -> list[Collection]:
    collections = (adapt_collection(node) for node in edges(connection))
    return [collection for collection in collections if collection is not None]


def build_category_data(products: Iterable[Product]) -> list[CategoryData]:
    """Derive category facets from the currently loaded products.

    The counts only cover ``products``; they are not backend totals.
    """

    counts = Counter(product.category for product in products)
    return [
        CategoryData(
            slug=base["id"].value,
            product_count=counts.get(base["id"], 0),
            **base,
        )
        for base in BASE_CATEGORIES
    ]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def build_gid(resource_type: str, resource_id: str) -> str:
    """Return ``resource_id`` as a backend global id unless it already is one."""
    if resource_id.startswith(GID_PREFIX):
        return resource_id
    return f"{GID_PREFIX}{resource_type}/{resource_id}"


def is_valid_product_node(node: Any) -> bool:
    node = as_dict(node)
    return bool(
        node.get("id")
        and node.get("title")
        and node.get("handle")
        and node.get("availableForSale") is not None
    )


def is_valid_cart_payload(payload: Any) -> bool:
    payload = as_dict(payload)
    return bool(
        payload.get("id")
        and payload.get("lines") is not None
        and payload.get("cost")
        and payload.get("checkoutUrl")
    )
