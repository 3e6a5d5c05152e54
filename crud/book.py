# crud/book.py - catalog store
import logging
from typing import List, Optional

from sqlalchemy import delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

import schemas
from crud.review import average_rating, review_count
from errors import Conflict, NotFound
from models import Book, OrderItem, Review

logger = logging.getLogger(__name__)


async def get_book(db: AsyncSession, book_id: int) -> Book:
    book = await db.get(Book, book_id)
    if book is None:
        raise NotFound(f"Book not found with id: {book_id}")
    return book


async def find_book_by_isbn(db: AsyncSession, isbn: str) -> Optional[Book]:
    result = await db.execute(select(Book).where(Book.isbn == isbn))
    return result.scalar_one_or_none()


async def get_book_by_isbn(db: AsyncSession, isbn: str) -> Book:
    book = await find_book_by_isbn(db, isbn)
    if book is None:
        raise NotFound(f"Book not found with ISBN: {isbn}")
    return book


async def list_books(db: AsyncSession) -> List[Book]:
    result = await db.execute(select(Book).order_by(Book.id))
    return result.scalars().all()


async def search_books(db: AsyncSession, q: str) -> List[Book]:
    pattern = f"%{q.lower()}%"
    stmt = select(Book).where(or_(
        func.lower(Book.title).like(pattern),
        func.lower(Book.author).like(pattern),
    )).order_by(Book.id)
    result = await db.execute(stmt)
    return result.scalars().all()


async def list_books_by_genre(db: AsyncSession, genre: str) -> List[Book]:
    result = await db.execute(select(Book).where(Book.genre == genre).order_by(Book.id))
    return result.scalars().all()


async def list_in_stock(db: AsyncSession) -> List[Book]:
    result = await db.execute(select(Book).where(Book.stock > 0).order_by(Book.id))
    return result.scalars().all()


async def list_genres(db: AsyncSession) -> List[str]:
    result = await db.execute(select(Book.genre).distinct().order_by(Book.genre))
    return result.scalars().all()


async def create_book(db: AsyncSession, book_data: schemas.BookCreate) -> Book:
    if await find_book_by_isbn(db, book_data.isbn):
        raise Conflict(f"Book with ISBN {book_data.isbn} already exists")

    new_book = Book(**book_data.model_dump())
    db.add(new_book)
    await db.commit()
    await db.refresh(new_book)
    logger.info("Created book %s (%s)", new_book.id, new_book.isbn)
    return new_book


async def update_book(db: AsyncSession, book_id: int, book_data: schemas.BookCreate) -> Book:
    book = await get_book(db, book_id)

    other = await find_book_by_isbn(db, book_data.isbn)
    if other is not None and other.id != book.id:
        raise Conflict(f"Book with ISBN {book_data.isbn} already exists")

    for field, value in book_data.model_dump().items():
        setattr(book, field, value)
    await db.commit()
    await db.refresh(book)
    logger.info("Updated book %s", book.id)
    return book


async def delete_book(db: AsyncSession, book_id: int):
    """Delete a book and its reviews; books already sold on an order are kept."""
    await get_book(db, book_id)

    ordered = await db.scalar(select(exists().where(OrderItem.book_id == book_id)))
    if ordered:
        raise Conflict(f"Book with id {book_id} is referenced by existing orders")

    await db.execute(delete(Review).where(Review.book_id == book_id))
    await db.execute(delete(Book).where(Book.id == book_id))
    await db.commit()
    logger.info("Deleted book %s", book_id)


async def to_schema(db: AsyncSession, book: Book) -> schemas.Book:
    """Book response with its rating summary computed on read."""
    out = schemas.Book.model_validate(book)
    out.average_rating = await average_rating(db, book.id)
    out.total_reviews = await review_count(db, book.id)
    return out
