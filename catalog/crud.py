import logging
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import List, Optional

from catalog import models, schemas
from catalog.exceptions import (
    BookNotAvailableError,
    BookNotBorrowedError,
    BookNotFoundError,
    BookStateError,
    UserNotFoundError,
    DatabaseError,
)

logger = logging.getLogger(__name__)


# Books

def list_books(db: Session) -> List[models.Book]:
    try:
        return db.query(models.Book).order_by(models.Book.id).all()
    except SQLAlchemyError as e:
        raise DatabaseError("fetch", str(e))


def get_book(db: Session, book_id: int) -> models.Book:
    try:
        book = db.query(models.Book).filter(models.Book.id == book_id).first()
        if book is None:
            raise BookNotFoundError(book_id)
        return book
    except SQLAlchemyError as e:
        raise DatabaseError("fetch", str(e))


def search_books_by_title(db: Session, title: str) -> List[models.Book]:
    try:
        return (
            db.query(models.Book)
            .filter(models.Book.title.icontains(title, autoescape=True))
            .order_by(models.Book.id)
            .all()
        )
    except SQLAlchemyError as e:
        raise DatabaseError("search", str(e))


def search_books_by_author(db: Session, author: str) -> List[models.Book]:
    try:
        return (
            db.query(models.Book)
            .filter(models.Book.author.icontains(author, autoescape=True))
            .order_by(models.Book.id)
            .all()
        )
    except SQLAlchemyError as e:
        raise DatabaseError("search", str(e))


def find_books_by_genre(db: Session, genre: str) -> List[models.Book]:
    try:
        return (
            db.query(models.Book)
            .filter(models.Book.genre == genre)
            .order_by(models.Book.id)
            .all()
        )
    except SQLAlchemyError as e:
        raise DatabaseError("search", str(e))


def find_available_books(db: Session) -> List[models.Book]:
    try:
        return (
            db.query(models.Book)
            .filter(models.Book.available == True)  # noqa: E712
            .order_by(models.Book.id)
            .all()
        )
    except SQLAlchemyError as e:
        raise DatabaseError("fetch", str(e))


def search_books(
    db: Session,
    title: Optional[str] = None,
    author: Optional[str] = None,
    genre: Optional[str] = None,
) -> List[models.Book]:
    """Honor only the first non-empty criterion, in title, author, genre order."""
    if title:
        return search_books_by_title(db, title)
    if author:
        return search_books_by_author(db, author)
    if genre:
        return find_books_by_genre(db, genre)
    return list_books(db)


def create_book(db: Session, item: schemas.BookCreate) -> models.Book:
    try:
        db_item = models.Book(**item.model_dump())
        db.add(db_item)
        db.commit()
        db.refresh(db_item)
        logger.info(f"Created book {db_item.id}: {db_item.title}")
        return db_item
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError("create", str(e))


def update_book(db: Session, book_id: int, item: schemas.BookUpdate) -> models.Book:
    try:
        book = get_book(db, book_id)
        # available must stay false exactly while a loan row exists
        on_loan = bool(book.borrowers)
        if item.available and on_loan:
            logger.warning(f"Refusing to mark lent book {book_id} as available")
            raise BookStateError(book_id, "Book is currently on loan")
        if not item.available and not on_loan:
            logger.warning(f"Refusing to mark book {book_id} unavailable without a loan")
            raise BookStateError(book_id, "Book is not on loan")

        for field, value in item.model_dump().items():
            setattr(book, field, value)

        db.commit()
        db.refresh(book)
        logger.info(f"Updated book {book_id}")
        return book
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError("update", str(e))


def delete_book(db: Session, book_id: int) -> bool:
    try:
        book = get_book(db, book_id)
        # Loan rows go with the book through the many-to-many secondary
        db.delete(book)
        db.commit()
        logger.info(f"Deleted book {book_id}")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError("delete", str(e))


# Users

def list_users(db: Session) -> List[models.User]:
    try:
        return (
            db.query(models.User)
            .options(selectinload(models.User.books))
            .order_by(models.User.id)
            .all()
        )
    except SQLAlchemyError as e:
        raise DatabaseError("fetch", str(e))


def get_user_by_id(db: Session, user_id: int) -> models.User:
    try:
        user = (
            db.query(models.User)
            .options(selectinload(models.User.books))
            .filter(models.User.id == user_id)
            .first()
        )
        if user is None:
            raise UserNotFoundError(user_id)
        return user
    except SQLAlchemyError as e:
        raise DatabaseError("fetch", str(e))


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    """Return the lowest-id user with this email, or None.

    Email is not unique, so duplicates resolve to the oldest record.
    """
    try:
        return (
            db.query(models.User)
            .options(selectinload(models.User.books))
            .filter(models.User.email == email)
            .order_by(models.User.id)
            .first()
        )
    except SQLAlchemyError as e:
        raise DatabaseError("fetch", str(e))


def create_user_record(db: Session, user: schemas.UserCreate) -> models.User:
    try:
        db_user = models.User(**user.model_dump())
        db.add(db_user)
        db.commit()
        logger.info(f"Created user {db_user.id}: {db_user.email}")
        return get_user_by_id(db, db_user.id)
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError("create", str(e))


# Loans

def borrow_book(db: Session, user_id: int, book_id: int) -> models.User:
    get_user_by_id(db, user_id)
    book = get_book(db, book_id)
    if not book.available:
        logger.warning(f"User {user_id} tried to borrow unavailable book {book_id}")
        raise BookNotAvailableError(book_id)

    try:
        # Conditional flip so a concurrent borrower that already committed wins
        claimed = (
            db.query(models.Book)
            .filter(models.Book.id == book_id, models.Book.available == True)  # noqa: E712
            .update({models.Book.available: False}, synchronize_session="fetch")
        )
        if claimed == 0:
            db.rollback()
            logger.warning(f"Book {book_id} was lent concurrently")
            raise BookNotAvailableError(book_id)

        db.execute(models.loans.insert().values(user_id=user_id, book_id=book_id))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Book {book_id} was lent concurrently")
        raise BookNotAvailableError(book_id)
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError("borrow", str(e))

    logger.info(f"User {user_id} borrowed book {book_id}")
    return get_user_by_id(db, user_id)


def return_book(db: Session, user_id: int, book_id: int) -> models.User:
    get_user_by_id(db, user_id)
    get_book(db, book_id)

    try:
        removed = db.execute(
            models.loans.delete().where(
                models.loans.c.user_id == user_id,
                models.loans.c.book_id == book_id,
            )
        ).rowcount
        if removed == 0:
            db.rollback()
            logger.warning(f"User {user_id} tried to return book {book_id} not held")
            raise BookNotBorrowedError(user_id, book_id)

        db.query(models.Book).filter(models.Book.id == book_id).update(
            {models.Book.available: True}, synchronize_session="fetch"
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseError("return", str(e))

    logger.info(f"User {user_id} returned book {book_id}")
    return get_user_by_id(db, user_id)
