"""
Marketplace endpoints: product catalogue, checkout and vendor views.

- Catalogue reads are public; unapproved listings are only visible to their
  vendor and to admin-tier staff.
- Product writes are limited to the owning vendor.
- Checkout snapshots each product's current unit price and prices the order
  once, at creation.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from creatorhub.api.v1.deps import (
    get_current_identity,
    get_current_user,
    get_db,
    get_optional_identity,
)
from creatorhub.core.access import Identity
from creatorhub.core.config import settings
from creatorhub.core.pricing import LineItem, current_unit_price, price_order
from creatorhub.models.order import Order, OrderItem
from creatorhub.models.product import PRODUCT_CATEGORIES, Product, slugify
from creatorhub.models.user import User
from creatorhub.schemas.common import DeleteResponse, Pagination
from creatorhub.schemas.order import (
    OrderCreate,
    OrderCreatedResponse,
    OrderItemRead,
    OrderListResponse,
    OrderRead,
    OrderUpdate,
    VendorDashboardResponse,
    VendorDashboardStats,
    VendorRecentOrder,
    VendorSale,
    VendorSalesResponse,
)
from creatorhub.schemas.product import (
    Category,
    ProductCreate,
    ProductListResponse,
    ProductRead,
    ProductUpdate,
)

router = APIRouter(prefix="/marketplace", tags=["marketplace"])
logger = logging.getLogger(__name__)

_SORTABLE = {
    "created_at": Product.created_at,
    "price": Product.price,
    "title": Product.title,
    "views": Product.views,
    "purchases": Product.purchases,
}

_CATEGORY_INFO = {
    "digital-products": ("Digital Products", "Downloadable digital goods"),
    "courses": ("Online Courses", "Educational content and training"),
    "templates": ("Templates", "Website, design, and document templates"),
    "ebooks": ("E-books", "Digital books and guides"),
    "software": ("Software", "Applications and tools"),
    "consulting": ("Consulting", "Professional services and advice"),
    "design-services": ("Design Services", "Graphic design and creative services"),
    "marketing-services": ("Marketing Services", "Marketing and promotion services"),
    "physical-products": ("Physical Products", "Tangible goods"),
    "other": ("Other", "Miscellaneous products and services"),
}


def _like(term: str) -> str:
    # Escape SQL LIKE metacharacters to prevent wildcard injection
    safe = term.replace("%", r"\%").replace("_", r"\_")
    return f"%{safe}%"


async def _unique_slug(db: AsyncSession, title: str, exclude_id: int | None = None) -> str:
    base = slugify(title) or "product"
    candidate = base
    while True:
        query = select(Product.id).where(Product.slug == candidate)
        if exclude_id is not None:
            query = query.where(Product.id != exclude_id)
        if (await db.execute(query)).first() is None:
            return candidate
        candidate = f"{base}-{secrets.token_hex(3)}"


async def _owned_product(db: AsyncSession, product_id: int, vendor_id: int) -> Product:
    result = await db.execute(
        select(Product).where(Product.id == product_id, Product.vendor_id == vendor_id)
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found or unauthorized")
    return product


# ── Catalogue (public) ──────────────────────────────────────────────
@router.get("/products", response_model=ProductListResponse)
async def list_products(
    category: str | None = None,
    search: str | None = Query(default=None, max_length=100),
    min_price: Decimal | None = Query(default=None, ge=0),
    max_price: Decimal | None = Query(default=None, ge=0),
    sort_by: Literal["created_at", "price", "title", "views", "purchases"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> ProductListResponse:
    filters = [Product.status == "active", Product.is_approved.is_(True)]
    if category and category != "all":
        filters.append(Product.category == category)
    if search:
        pattern = _like(search)
        filters.append(
            Product.title.ilike(pattern, escape="\\")
            | Product.description.ilike(pattern, escape="\\")
        )
    if min_price is not None:
        filters.append(Product.price >= min_price)
    if max_price is not None:
        filters.append(Product.price <= max_price)

    column = _SORTABLE[sort_by]
    order = column.desc() if sort_order == "desc" else column.asc()

    total = (await db.execute(select(func.count(Product.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Product)
        .where(*filters)
        .order_by(order, Product.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    now = datetime.now(timezone.utc)
    return ProductListResponse(
        products=[ProductRead.from_product(p, now) for p in result.scalars().all()],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/products/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity | None = Depends(get_optional_identity),
) -> ProductRead:
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    listed = product.status == "active" and product.is_approved
    privileged = identity is not None and (
        identity.id == product.vendor_id or identity.is_admin_tier
    )
    if not listed and not privileged:
        raise HTTPException(status_code=404, detail="Product not found")

    if identity is None or identity.id != product.vendor_id:
        product.views = (product.views or 0) + 1
        await db.commit()
        await db.refresh(product)
    return ProductRead.from_product(product)


@router.get("/categories", response_model=list[Category])
async def list_categories() -> list[Category]:
    return [
        Category(id=cid, name=_CATEGORY_INFO[cid][0], description=_CATEGORY_INFO[cid][1])
        for cid in PRODUCT_CATEGORIES
    ]


# ── Vendor product management ───────────────────────────────────────
@router.post("/products", response_model=ProductRead, status_code=201)
async def create_product(
    body: ProductCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ProductRead:
    """Create a listing. The caller becomes a vendor; listings start unapproved."""
    if not user.is_vendor:
        user.is_vendor = True

    product = Product(
        **body.model_dump(),
        slug=await _unique_slug(db, body.title),
        vendor_id=user.id,
        vendor_name=user.full_name,
        currency=settings.BASE_CURRENCY,
        is_approved=False,
    )
    db.add(product)
    await db.commit()
    await db.refresh(product)
    logger.info("Vendor %d created product %d (%s)", user.id, product.id, product.slug)
    return ProductRead.from_product(product)


@router.put("/products/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: int,
    body: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> ProductRead:
    product = await _owned_product(db, product_id, identity.id)

    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(product, field, value)
    if "title" in changes:
        product.slug = await _unique_slug(db, product.title, exclude_id=product.id)
    if (
        product.sale_start_date is not None
        and product.sale_end_date is not None
        and product.sale_end_date < product.sale_start_date
    ):
        raise HTTPException(status_code=422, detail="sale_end_date must not be before sale_start_date")

    await db.commit()
    await db.refresh(product)
    logger.info("Vendor %d updated product %d", identity.id, product_id)
    return ProductRead.from_product(product)


@router.delete("/products/{product_id}", response_model=DeleteResponse)
async def delete_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> DeleteResponse:
    """Soft-delete (deactivate) a listing. Existing orders keep referencing it."""
    product = await _owned_product(db, product_id, identity.id)
    product.status = "inactive"
    await db.commit()
    logger.info("Vendor %d deactivated product %d", identity.id, product_id)
    return DeleteResponse(success=True, message=f"Product '{product.title}' deactivated")


@router.get("/vendor/products", response_model=ProductListResponse)
async def list_vendor_products(
    status: str = "all",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> ProductListResponse:
    filters = [Product.vendor_id == identity.id]
    if status != "all":
        filters.append(Product.status == status)

    total = (await db.execute(select(func.count(Product.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Product)
        .where(*filters)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return ProductListResponse(
        products=[ProductRead.from_product(p) for p in result.scalars().all()],
        pagination=Pagination.build(page, limit, total),
    )


# ── Orders ──────────────────────────────────────────────────────────
@router.post("/orders", response_model=OrderCreatedResponse, status_code=201)
async def create_order(
    body: OrderCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> OrderCreatedResponse:
    """Checkout: snapshot current prices, then price the order exactly once."""
    now = datetime.now(timezone.utc)
    line_items: list[LineItem] = []
    products: list[Product] = []

    for item in body.items:
        product = await db.get(Product, item.product_id)
        if product is None or product.status != "active" or not product.is_approved:
            raise HTTPException(
                status_code=400,
                detail=f"Product {item.product_id} not found",
            )
        products.append(product)
        line_items.append(
            LineItem(
                product_id=product.id,
                quantity=item.quantity,
                unit_price=current_unit_price(product, now),
                vendor_id=product.vendor_id,
                title=product.title,
            )
        )

    priced = price_order(line_items, order_prefix=settings.ORDER_NUMBER_PREFIX)

    order = Order.from_priced(
        priced,
        customer_id=identity.id,
        customer_email=identity.email,
        is_digital=all(p.type == "digital" for p in products),
        shipping_address=body.shipping_address.model_dump() if body.shipping_address else None,
        customer_notes=body.customer_notes,
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)
    logger.info(
        "Order %s created by user %d: subtotal=%s fee=%s",
        order.order_number,
        identity.id,
        priced.subtotal,
        priced.platform_fee,
    )
    return OrderCreatedResponse(
        message="Order created successfully",
        order=OrderRead.model_validate(order),
    )


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    status: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> OrderListResponse:
    filters = [Order.customer_id == identity.id]
    if status:
        filters.append(Order.status == status)

    total = (await db.execute(select(func.count(Order.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Order)
        .where(*filters)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return OrderListResponse(
        orders=[OrderRead.model_validate(o) for o in result.scalars().all()],
        pagination=Pagination.build(page, limit, total),
    )


async def _visible_order(db: AsyncSession, order_id: int, identity: Identity) -> Order:
    order = await db.get(Order, order_id)
    if order is None or (order.customer_id != identity.id and not identity.is_admin_tier):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.get("/orders/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> Order:
    return await _visible_order(db, order_id, identity)


@router.patch("/orders/{order_id}", response_model=OrderRead)
async def update_order(
    order_id: int,
    body: OrderUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> Order:
    """Edit delivery details. Pricing columns are never touched here."""
    order = await _visible_order(db, order_id, identity)
    if order.customer_id != identity.id:
        raise HTTPException(status_code=404, detail="Order not found")

    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(order, field, value)

    await db.commit()
    await db.refresh(order)
    logger.info("Order %s details updated: %s", order.order_number, sorted(changes))
    return order


# ── Vendor sales ────────────────────────────────────────────────────
@router.get("/vendor/sales", response_model=VendorSalesResponse)
async def vendor_sales(
    status: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> VendorSalesResponse:
    """Orders containing the caller's products, trimmed to the caller's lines."""
    order_ids = select(OrderItem.order_id).where(OrderItem.vendor_id == identity.id)
    filters = [Order.id.in_(order_ids)]
    if status:
        filters.append(Order.status == status)

    total = (await db.execute(select(func.count(Order.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Order)
        .where(*filters)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    sales = []
    for order in result.scalars().all():
        mine = [i for i in order.items if i.vendor_id == identity.id]
        sales.append(
            VendorSale(
                order_id=order.id,
                order_number=order.order_number,
                status=order.status,
                created_at=order.created_at,
                items=[OrderItemRead.model_validate(i) for i in mine],
                gross=sum((i.unit_price * i.quantity for i in mine), Decimal("0")),
            )
        )
    return VendorSalesResponse(sales=sales, pagination=Pagination.build(page, limit, total))


@router.get("/vendor/dashboard", response_model=VendorDashboardResponse)
async def vendor_dashboard(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> VendorDashboardResponse:
    vendor_id = identity.id

    total_products = (
        await db.execute(select(func.count(Product.id)).where(Product.vendor_id == vendor_id))
    ).scalar() or 0
    active_products = (
        await db.execute(
            select(func.count(Product.id)).where(
                Product.vendor_id == vendor_id, Product.status == "active"
            )
        )
    ).scalar() or 0

    # Only paid orders count as sales.
    paid_items = await db.execute(
        select(OrderItem.order_id, OrderItem.unit_price, OrderItem.quantity)
        .join(Order, Order.id == OrderItem.order_id)
        .where(OrderItem.vendor_id == vendor_id, Order.payment_status == "completed")
    )
    total_sales = Decimal("0")
    paid_orders: set[int] = set()
    for order_id, unit_price, quantity in paid_items.all():
        total_sales += unit_price * quantity
        paid_orders.add(order_id)

    recent = await db.execute(
        select(Order)
        .where(Order.id.in_(select(OrderItem.order_id).where(OrderItem.vendor_id == vendor_id)))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(5)
    )
    recent_orders = [
        VendorRecentOrder(
            id=order.id,
            order_number=order.order_number,
            total=sum(
                (i.unit_price * i.quantity for i in order.items if i.vendor_id == vendor_id),
                Decimal("0"),
            ),
            status=order.status,
            created_at=order.created_at,
        )
        for order in recent.scalars().all()
    ]

    return VendorDashboardResponse(
        stats=VendorDashboardStats(
            total_products=total_products,
            active_products=active_products,
            total_sales=total_sales,
            total_orders=len(paid_orders),
        ),
        recent_orders=recent_orders,
    )
