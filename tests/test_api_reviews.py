import pytest


async def _review(client, headers, book_id, rating=4, comment="Good read"):
    return await client.post("/api/reviews", headers=headers,
                             json={"book_id": book_id, "rating": rating, "comment": comment})


@pytest.mark.asyncio
async def test_review_updates_book_rating(client, customer_headers, make_user, headers_for, make_book):
    book = await make_book()
    bob = headers_for(await make_user("bob"))

    first = await _review(client, customer_headers, book.id, rating=5)
    assert first.status_code == 201
    assert first.json()["username"] == "alice"
    await _review(client, bob, book.id, rating=2)

    body = (await client.get(f"/api/books/{book.id}")).json()
    assert body["average_rating"] == 3.5
    assert body["total_reviews"] == 2


@pytest.mark.asyncio
async def test_one_review_per_user_and_book(client, customer_headers, make_book):
    book = await make_book()

    created = await _review(client, customer_headers, book.id)
    duplicate = await _review(client, customer_headers, book.id)
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "You have already reviewed this book"

    deleted = await client.delete(f"/api/reviews/{created.json()['id']}", headers=customer_headers)
    assert deleted.status_code == 204
    assert (await _review(client, customer_headers, book.id)).status_code == 201


@pytest.mark.asyncio
async def test_review_validation(client, customer_headers, make_book):
    book = await make_book()
    assert (await _review(client, customer_headers, book.id, rating=0)).status_code == 422
    assert (await _review(client, customer_headers, book.id, rating=6)).status_code == 422
    assert (await _review(client, customer_headers, 999)).status_code == 404
    assert (await _review(client, {}, book.id)).status_code == 401


@pytest.mark.asyncio
async def test_only_owner_updates_review(client, customer_headers, admin_headers, make_user,
                                         headers_for, make_book):
    book = await make_book()
    bob = headers_for(await make_user("bob"))
    review = (await _review(client, customer_headers, book.id)).json()
    url = f"/api/reviews/{review['id']}"

    assert (await client.put(url, json={"rating": 1}, headers=bob)).status_code == 403
    assert (await client.put(url, json={"rating": 1}, headers=admin_headers)).status_code == 403

    resp = await client.put(url, json={"rating": 3, "comment": "On reflection"}, headers=customer_headers)
    assert resp.status_code == 200
    assert resp.json()["rating"] == 3
    assert resp.json()["comment"] == "On reflection"
    assert (await client.put("/api/reviews/999", json={"rating": 1}, headers=customer_headers)).status_code == 404


@pytest.mark.asyncio
async def test_delete_review_owner_or_admin(client, customer_headers, admin_headers, make_user,
                                            headers_for, make_book):
    book = await make_book()
    bob = headers_for(await make_user("bob"))
    review = (await _review(client, customer_headers, book.id)).json()
    url = f"/api/reviews/{review['id']}"

    assert (await client.delete(url, headers=bob)).status_code == 403
    assert (await client.delete(url, headers=admin_headers)).status_code == 204
    assert (await client.delete(url, headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_reviews_for_book_newest_first(client, customer_headers, make_user, headers_for, make_book):
    book = await make_book()
    bob = headers_for(await make_user("bob"))
    older = (await _review(client, customer_headers, book.id)).json()
    newer = (await _review(client, bob, book.id)).json()

    resp = await client.get(f"/api/reviews/book/{book.id}")

    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()] == [newer["id"], older["id"]]
    assert (await client.get("/api/reviews/book/999")).status_code == 404


@pytest.mark.asyncio
async def test_deleting_book_removes_its_reviews(client, customer_headers, admin_headers, make_book):
    book = await make_book()
    await _review(client, customer_headers, book.id)

    assert (await client.delete(f"/api/books/{book.id}", headers=admin_headers)).status_code == 204
    assert (await client.get(f"/api/reviews/book/{book.id}")).status_code == 404
