def test_index_lists_books(client, test_book):
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "War and Peace" in response.text


def test_books_page(client, test_book, other_book):
    response = client.get("/books")
    assert response.status_code == 200
    assert "Leo Tolstoy" in response.text
    assert "The Art of War" in response.text


def test_users_page_shows_borrowed_titles(client, test_user, test_book):
    client.post(f"/api/users/{test_user.id}/borrow/{test_book.id}")

    response = client.get("/users")
    assert response.status_code == 200
    assert "test@example.com" in response.text
    assert "War and Peace" in response.text


def test_views_not_in_openapi(client):
    paths = client.get("/openapi.json").json()["paths"]
    assert "/api/books" in paths
    assert "/books" not in paths
