# seed.py - idempotent bootstrap data; run directly or with SEED_DATA=1 on startup
import asyncio
import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from crud.user import create_user, username_exists
from models import Book, Role
from services.auth import hash_password

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    {"username": "admin", "email": "admin@bookstore.com", "password": "admin123",
     "role": Role.ADMIN, "first_name": "Admin", "last_name": "User"},
    {"username": "customer", "email": "customer@bookstore.com", "password": "customer123",
     "role": Role.CUSTOMER, "first_name": "John", "last_name": "Doe",
     "address": "123 Main St", "phone": "123-456-7890"},
]

SAMPLE_BOOKS = [
    ("The Great Gatsby", "F. Scott Fitzgerald", "Fiction", "A classic American novel about the Jazz Age."),
    ("To Kill a Mockingbird", "Harper Lee", "Fiction", "A powerful story about racial injustice."),
    ("1984", "George Orwell", "Dystopian", "A dystopian novel about totalitarianism."),
    ("Pride and Prejudice", "Jane Austen", "Romance", "A romantic novel of manners."),
    ("The Catcher in the Rye", "J.D. Salinger", "Fiction", "A controversial coming-of-age story."),
    ("Lord of the Rings", "J.R.R. Tolkien", "Fantasy", "An epic fantasy adventure."),
    ("Harry Potter", "J.K. Rowling", "Fantasy", "A magical fantasy series."),
    ("The Hobbit", "J.R.R. Tolkien", "Fantasy", "A fantasy adventure novel."),
    ("Animal Farm", "George Orwell", "Dystopian", "A political allegory."),
    ("Brave New World", "Aldous Huxley", "Dystopian", "A dystopian social science fiction."),
    ("The Chronicles of Narnia", "C.S. Lewis", "Fantasy", "A fantasy series for children."),
    ("Moby Dick", "Herman Melville", "Adventure", "A maritime adventure novel."),
]
SAMPLE_IMAGE = "https://images.unsplash.com/photo-1544947950-fa07a98d237f?w=400"


async def seed_data(db: AsyncSession):
    for spec in SAMPLE_USERS:
        spec = dict(spec)
        if await username_exists(db, spec["username"]):
            continue
        password = spec.pop("password")
        await create_user(db, password_hash=hash_password(password), **spec)
        logger.info("Seeded user %s", spec["username"])

    if await db.scalar(select(func.count(Book.id))):
        return
    for i, (title, author, genre, description) in enumerate(SAMPLE_BOOKS):
        db.add(Book(
            title=title,
            author=author,
            genre=genre,
            isbn=f"97801234567{i + 1:02d}",
            price=Decimal(f"{10 + i * 2}.99"),
            description=description,
            stock=50 + i * 10,
            image_url=SAMPLE_IMAGE,
        ))
    await db.commit()
    logger.info("Seeded %d sample books", len(SAMPLE_BOOKS))


async def main():
    from database import AsyncSessionLocal, init_db

    await init_db()
    async with AsyncSessionLocal() as db:
        await seed_data(db)


if __name__ == "__main__":
    from config import LOG_FORMAT, LOG_LEVEL

    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    asyncio.run(main())
