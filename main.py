# main.py - Bookstore REST API
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Annotated, List, Optional

from fastapi import Depends, FastAPI, Path, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

import crud.book as books
import crud.order as orders
import crud.review as reviews
import schemas
from config import CORS_ORIGINS, DEFAULT_REVENUE_DAYS, LOG_FORMAT, LOG_LEVEL, SEED_DATA
from database import AsyncSessionLocal, get_db, init_db
from errors import BookstoreError
from models import OrderStatus, PaymentStatus, User, utcnow
from services.auth import authenticate, current_user, register_user, require_admin

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

PathId = Annotated[int, Path(le=schemas.MAX_INT)]


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    if SEED_DATA:
        from seed import seed_data

        async with AsyncSessionLocal() as db:
            await seed_data(db)
    yield


app = FastAPI(title="Bookstore", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookstoreError)
async def bookstore_error_handler(request: Request, exc: BookstoreError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ─────────────────────── AUTH ───────────────────────
@app.post("/api/register", response_model=schemas.TokenResponse, status_code=201)
async def register(payload: schemas.RegisterRequest, db: AsyncSession = Depends(get_db)):
    return await register_user(db, payload)


@app.post("/api/login", response_model=schemas.TokenResponse)
async def login(payload: schemas.LoginRequest, db: AsyncSession = Depends(get_db)):
    return await authenticate(db, payload.username, payload.password)


@app.get("/api/users/me", response_model=schemas.UserProfile)
async def profile(user: User = Depends(current_user)):
    return user


# ─────────────────────── BOOKS ───────────────────────
@app.get("/api/books", response_model=List[schemas.Book])
async def list_books(
    search: Optional[str] = None,
    genre: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    if search:
        rows = await books.search_books(db, search)
    elif genre:
        rows = await books.list_books_by_genre(db, genre)
    else:
        rows = await books.list_books(db)
    return [await books.to_schema(db, b) for b in rows]


@app.get("/api/books/genres", response_model=List[str])
async def list_genres(db: AsyncSession = Depends(get_db)):
    return await books.list_genres(db)


@app.get("/api/books/in-stock", response_model=List[schemas.Book])
async def list_in_stock(db: AsyncSession = Depends(get_db)):
    return [await books.to_schema(db, b) for b in await books.list_in_stock(db)]


@app.get("/api/books/{book_id}", response_model=schemas.Book)
async def get_book(book_id: PathId, db: AsyncSession = Depends(get_db)):
    return await books.to_schema(db, await books.get_book(db, book_id))


@app.post("/api/books", response_model=schemas.Book, status_code=201)
async def create_book(
    payload: schemas.BookCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await books.to_schema(db, await books.create_book(db, payload))


@app.put("/api/books/{book_id}", response_model=schemas.Book)
async def update_book(
    book_id: PathId,
    payload: schemas.BookCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await books.to_schema(db, await books.update_book(db, book_id, payload))


@app.delete("/api/books/{book_id}", status_code=204)
async def delete_book(
    book_id: PathId,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    await books.delete_book(db, book_id)
    return Response(status_code=204)


# ─────────────────────── ORDERS ───────────────────────
@app.get("/api/orders", response_model=List[schemas.Order])
async def my_orders(db: AsyncSession = Depends(get_db), user: User = Depends(current_user)):
    return [await orders.to_schema(db, o) for o in await orders.list_orders_for_user(db, user.id)]


@app.get("/api/orders/all", response_model=List[schemas.Order])
async def all_orders(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    return [await orders.to_schema(db, o) for o in await orders.list_all_orders(db)]


@app.get("/api/orders/{order_id}", response_model=schemas.Order)
async def get_order(order_id: PathId, db: AsyncSession = Depends(get_db), user: User = Depends(current_user)):
    return await orders.to_schema(db, await orders.get_order(db, order_id, user.id, user.role))


@app.post("/api/orders", response_model=schemas.Order, status_code=201)
async def create_order(
    payload: schemas.CreateOrderRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(current_user),
):
    order = await orders.place_order(
        db,
        user.id,
        [(item.book_id, item.quantity) for item in payload.items],
        payload.shipping_address,
        payload.payment_method,
    )
    return await orders.to_schema(db, order)


@app.put("/api/orders/{order_id}/status", response_model=schemas.Order)
async def update_order_status(
    order_id: PathId,
    status: OrderStatus,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await orders.to_schema(db, await orders.update_order_status(db, order_id, status))


@app.put("/api/orders/{order_id}/payment-status", response_model=schemas.Order)
async def update_payment_status(
    order_id: PathId,
    payment_status: PaymentStatus,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await orders.to_schema(db, await orders.update_payment_status(db, order_id, payment_status))


# ─────────────────────── REVIEWS ───────────────────────
@app.get("/api/reviews/book/{book_id}", response_model=List[schemas.Review])
async def book_reviews(book_id: PathId, db: AsyncSession = Depends(get_db)):
    return [await reviews.to_schema(db, r) for r in await reviews.list_reviews_for_book(db, book_id)]


@app.post("/api/reviews", response_model=schemas.Review, status_code=201)
async def create_review(
    payload: schemas.ReviewCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(current_user),
):
    return await reviews.to_schema(db, await reviews.create_review(db, user.id, payload))


@app.put("/api/reviews/{review_id}", response_model=schemas.Review)
async def update_review(
    review_id: PathId,
    payload: schemas.ReviewUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(current_user),
):
    return await reviews.to_schema(db, await reviews.update_review(db, review_id, user.id, payload))


@app.delete("/api/reviews/{review_id}", status_code=204)
async def delete_review(
    review_id: PathId,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(current_user),
):
    await reviews.delete_review(db, review_id, user.id, user.role)
    return Response(status_code=204)


# ─────────────────────── ADMIN ───────────────────────
@app.get("/api/admin/stats", response_model=schemas.AdminStats)
async def admin_stats(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    since = utcnow() - timedelta(days=DEFAULT_REVENUE_DAYS)
    return schemas.AdminStats(
        total_revenue=await orders.revenue_since(db, since),
        total_orders=await orders.count_orders(db),
        recent_orders=await orders.count_orders_since(db, since),
    )


@app.get("/api/admin/revenue", response_model=schemas.RevenueReport)
async def admin_revenue(
    days: int = Query(DEFAULT_REVENUE_DAYS, ge=1, le=36500),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    since: datetime = utcnow() - timedelta(days=days)
    return schemas.RevenueReport(revenue=await orders.revenue_since(db, since), period=f"{days} days")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
