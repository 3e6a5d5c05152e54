# crud/order.py - order placement, order reads and status changes
import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

import schemas
from errors import AccessDenied, BookstoreError, InsufficientStock, NotFound, ValidationError
from models import Book, Order, OrderItem, OrderStatus, PaymentStatus, Role, User

logger = logging.getLogger(__name__)


async def place_order(
    db: AsyncSession,
    user_id: int,
    items: Iterable[Tuple[int, int]],
    shipping_address: str,
    payment_method: str,
) -> Order:
    """
    Reserve stock for every (book_id, quantity) pair and persist the order.

    Each decrement is a guarded UPDATE (``stock >= quantity``), so two
    concurrent orders can never both take the last copies. All decrements
    and the order insert share one transaction: if any line fails nothing
    is committed.
    """
    items = list(items)
    if not items:
        raise ValidationError("Order must contain at least one item")
    if any(quantity < 1 for _, quantity in items):
        raise ValidationError("Quantity must be at least 1")
    if not shipping_address or not shipping_address.strip():
        raise ValidationError("Shipping address is required")
    if not payment_method or not payment_method.strip():
        raise ValidationError("Payment method is required")

    try:
        if await db.get(User, user_id) is None:
            raise NotFound(f"User not found with id: {user_id}")

        order = Order(
            user_id=user_id,
            shipping_address=shipping_address.strip(),
            payment_method=payment_method.strip(),
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )
        total = Decimal("0")

        for book_id, quantity in items:
            book = await db.get(Book, book_id, with_for_update=True)
            if book is None:
                raise NotFound(f"Book not found with id: {book_id}")

            result = await db.execute(
                update(Book)
                .where(Book.id == book_id, Book.stock >= quantity)
                .values(stock=Book.stock - quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InsufficientStock(book.title)

            line = OrderItem(book_id=book.id, quantity=quantity, price=book.price)
            order.items.append(line)
            total += line.subtotal

        order.total_price = total
        db.add(order)
        await db.commit()
    except BookstoreError as e:
        await db.rollback()
        logger.info("Order rejected for user %s: %s", user_id, e.message)
        raise
    except Exception:
        await db.rollback()
        raise

    order_id = order.id
    logger.info("Order %s placed by user %s: %d line(s), total %s",
                order_id, user_id, len(items), total)
    # decremented rows were updated behind the identity map
    db.expire_all()
    return await get_order_row(db, order_id, reload=True)


async def get_order_row(db: AsyncSession, order_id: int, reload: bool = False) -> Order:
    stmt = select(Order).where(Order.id == order_id)
    if reload:
        stmt = stmt.execution_options(populate_existing=True)
    order = (await db.execute(stmt)).scalar_one_or_none()
    if order is None:
        raise NotFound(f"Order not found with id: {order_id}")
    return order


async def get_order(db: AsyncSession, order_id: int, caller_id: int, caller_role: Role) -> Order:
    order = await get_order_row(db, order_id)
    if order.user_id != caller_id and caller_role != Role.ADMIN:
        raise AccessDenied("Access denied")
    return order


async def list_orders_for_user(db: AsyncSession, user_id: int) -> List[Order]:
    stmt = (select(Order).where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc()))
    result = await db.execute(stmt)
    return result.scalars().all()


async def list_all_orders(db: AsyncSession) -> List[Order]:
    result = await db.execute(select(Order).order_by(Order.created_at.desc(), Order.id.desc()))
    return result.scalars().all()


async def update_order_status(db: AsyncSession, order_id: int, status: OrderStatus) -> Order:
    order = await get_order_row(db, order_id)
    previous = order.status
    order.status = status
    await db.commit()
    order = await get_order_row(db, order_id, reload=True)
    logger.info("Order %s status %s -> %s", order_id, previous.value, status.value)
    return order


async def update_payment_status(db: AsyncSession, order_id: int, payment_status: PaymentStatus) -> Order:
    order = await get_order_row(db, order_id)
    order.payment_status = payment_status
    if payment_status == PaymentStatus.PAID:
        order.status = OrderStatus.PROCESSING
    await db.commit()
    order = await get_order_row(db, order_id, reload=True)
    logger.info("Order %s payment status -> %s", order_id, payment_status.value)
    return order


# ─────────────────────── ADMIN STATISTICS ───────────────────────
async def revenue_since(db: AsyncSession, since: datetime) -> Decimal:
    total = await db.scalar(
        select(func.sum(Order.total_price))
        .where(Order.payment_status == PaymentStatus.PAID, Order.created_at >= since)
    )
    return Decimal(total) if total is not None else Decimal("0")


async def count_orders(db: AsyncSession) -> int:
    return await db.scalar(select(func.count(Order.id))) or 0


async def count_orders_since(db: AsyncSession, since: datetime) -> int:
    return await db.scalar(select(func.count(Order.id)).where(Order.created_at >= since)) or 0


# ─────────────────────── RESPONSES ───────────────────────
async def to_schema(db: AsyncSession, order: Order) -> schemas.Order:
    username = await db.scalar(select(User.username).where(User.id == order.user_id))

    book_ids = {item.book_id for item in order.items}
    books = {}
    if book_ids:
        result = await db.execute(select(Book).where(Book.id.in_(book_ids)))
        books = {b.id: b for b in result.scalars()}

    return schemas.Order(
        id=order.id,
        user_id=order.user_id,
        username=username,
        order_items=[
            schemas.OrderItem(
                id=item.id,
                book=schemas.BookSummary.model_validate(books[item.book_id]) if item.book_id in books else None,
                quantity=item.quantity,
                price=item.price,
                subtotal=item.subtotal,
            )
            for item in order.items
        ],
        total_price=order.total_price,
        status=order.status,
        payment_status=order.payment_status,
        shipping_address=order.shipping_address,
        payment_method=order.payment_method,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )
