import os
from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI, Depends
from sqlalchemy.orm import Session
from dotenv import load_dotenv

from catalog.crud import (
    borrow_book,
    create_book,
    create_user_record,
    delete_book,
    find_available_books,
    get_book,
    get_user_by_id,
    list_books,
    list_users,
    return_book,
    search_books,
    update_book,
)
from catalog.exceptions import add_exception_handlers
from catalog.models import Base
from catalog.schemas import (
    BookCreate,
    BookSchema,
    BookSearchParams,
    BookUpdate,
    DeleteResponse,
    UserCreate,
    UserSchema,
)
from catalog.storage import engine, get_db
from catalog.views import router as views_router

from typing import List

load_dotenv()
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.testing = app.state.testing if hasattr(app.state, "testing") else False

    if not app.state.testing:
        logger.info("Creating catalog tables")
        Base.metadata.create_all(bind=engine)
    yield
    if not app.state.testing:
        logger.info("Disposing database engine")
        engine.dispose()


app = FastAPI(
    title="Library Catalog API",
    lifespan=lifespan,
    description="Books, users and loans for the library catalog",
    version="1.0.0",
)

add_exception_handlers(app)
app.include_router(views_router)


# Books
@app.get("/api/books", response_model=List[BookSchema])
def list_book_records(db: Session = Depends(get_db)):
    return list_books(db)


@app.get("/api/books/search", response_model=List[BookSchema])
def search_book_records(
    params: BookSearchParams = Depends(), db: Session = Depends(get_db)
):
    return search_books(db, params.title, params.author, params.genre)


@app.get("/api/books/available", response_model=List[BookSchema])
def list_available_books(db: Session = Depends(get_db)):
    return find_available_books(db)


@app.get("/api/books/{id}", response_model=BookSchema)
def fetch_single_book(id: int, db: Session = Depends(get_db)):
    return get_book(db, id)


@app.post("/api/books", response_model=BookSchema)
def add_book(book: BookCreate, db: Session = Depends(get_db)):
    logger.info(f"Received request to add book: {book.title}")
    return create_book(db, book)


@app.put("/api/books/{id}", response_model=BookSchema)
def modify_book(id: int, book: BookUpdate, db: Session = Depends(get_db)):
    return update_book(db, id, book)


@app.delete("/api/books/{id}", response_model=DeleteResponse)
def remove_book(id: int, db: Session = Depends(get_db)):
    return {"deleted": delete_book(db, id)}


# Users
@app.get("/api/users", response_model=List[UserSchema])
def list_user_records(db: Session = Depends(get_db)):
    return list_users(db)


@app.get("/api/users/{id}", response_model=UserSchema)
def fetch_single_user(id: int, db: Session = Depends(get_db)):
    return get_user_by_id(db, id)


@app.post("/api/users", response_model=UserSchema)
def create_user(user: UserCreate, db: Session = Depends(get_db)):
    return create_user_record(db, user)


@app.post("/api/users/{user_id}/borrow/{book_id}", response_model=UserSchema)
def borrow_book_item(user_id: int, book_id: int, db: Session = Depends(get_db)):
    return borrow_book(db, user_id, book_id)


@app.post("/api/users/{user_id}/return/{book_id}", response_model=UserSchema)
def return_book_item(user_id: int, book_id: int, db: Session = Depends(get_db)):
    return return_book(db, user_id, book_id)


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("CATALOG_HOST", "0.0.0.0")
    port = int(os.getenv("CATALOG_PORT", "8000"))
    logger.info(f"Starting catalog server on {host}:{port}")
    uvicorn.run(app, host=host, port=port)
