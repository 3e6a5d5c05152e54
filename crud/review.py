# crud/review.py - reviews and the per-book rating summary
import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

import schemas
from errors import AccessDenied, Conflict, NotFound
from models import Book, Review, Role, User

logger = logging.getLogger(__name__)


async def average_rating(db: AsyncSession, book_id: int) -> float:
    avg = await db.scalar(select(func.avg(Review.rating)).where(Review.book_id == book_id))
    return float(avg) if avg is not None else 0.0


async def review_count(db: AsyncSession, book_id: int) -> int:
    count = await db.scalar(select(func.count(Review.id)).where(Review.book_id == book_id))
    return count or 0


async def get_review(db: AsyncSession, review_id: int) -> Review:
    review = await db.get(Review, review_id)
    if review is None:
        raise NotFound(f"Review not found with id: {review_id}")
    return review


async def list_reviews_for_book(db: AsyncSession, book_id: int) -> List[Review]:
    if await db.get(Book, book_id) is None:
        raise NotFound(f"Book not found with id: {book_id}")
    stmt = (select(Review).where(Review.book_id == book_id)
            .order_by(Review.created_at.desc(), Review.id.desc()))
    result = await db.execute(stmt)
    return result.scalars().all()


async def create_review(db: AsyncSession, user_id: int, data: schemas.ReviewCreate) -> Review:
    if await db.get(Book, data.book_id) is None:
        raise NotFound(f"Book not found with id: {data.book_id}")

    existing = await db.execute(
        select(Review.id).where(Review.user_id == user_id, Review.book_id == data.book_id)
    )
    if existing.first() is not None:
        raise Conflict("You have already reviewed this book")

    review = Review(user_id=user_id, book_id=data.book_id, rating=data.rating, comment=data.comment)
    db.add(review)
    await db.commit()
    await db.refresh(review)
    logger.info("User %s reviewed book %s (%s/5)", user_id, data.book_id, data.rating)
    return review


async def update_review(db: AsyncSession, review_id: int, caller_id: int,
                        data: schemas.ReviewUpdate) -> Review:
    review = await get_review(db, review_id)
    if review.user_id != caller_id:
        raise AccessDenied("You can only update your own reviews")

    review.rating = data.rating
    review.comment = data.comment
    await db.commit()
    await db.refresh(review)
    return review


async def delete_review(db: AsyncSession, review_id: int, caller_id: int, caller_role: Role):
    review = await get_review(db, review_id)
    if review.user_id != caller_id and caller_role != Role.ADMIN:
        raise AccessDenied("Access denied")

    await db.delete(review)
    await db.commit()
    logger.info("Review %s deleted by user %s", review_id, caller_id)


async def to_schema(db: AsyncSession, review: Review) -> schemas.Review:
    username = await db.scalar(select(User.username).where(User.id == review.user_id))
    return schemas.Review(
        id=review.id,
        user_id=review.user_id,
        username=username,
        book_id=review.book_id,
        rating=review.rating,
        comment=review.comment,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )
