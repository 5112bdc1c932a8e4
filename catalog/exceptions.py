from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)


class LibraryException(Exception):
    """Base exception for library-related errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


# Not found
class BookNotFoundError(LibraryException):
    """Raised when a book is not found in the database."""

    status_code = 404

    def __init__(self, book_id: int):
        self.book_id = book_id
        super().__init__(f"Book not found with id: {book_id}")


class UserNotFoundError(LibraryException):
    """Raised when a user is not found in the database."""

    status_code = 404

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User not found with id: {user_id}")


# Invalid state transitions
class BookNotAvailableError(LibraryException):
    """Raised when a book is not available for borrowing."""

    def __init__(self, book_id: int):
        self.book_id = book_id
        super().__init__("Book is not available for borrowing")


class BookNotBorrowedError(LibraryException):
    """Raised when returning a book the user does not hold."""

    def __init__(self, user_id: int, book_id: int):
        self.user_id = user_id
        self.book_id = book_id
        super().__init__("User has not borrowed this book")


class BookStateError(LibraryException):
    def __init__(self, book_id: int, message: str):
        self.book_id = book_id
        super().__init__(message)


class DatabaseError(LibraryException):
    status_code = 500

    def __init__(self, operation: str, details: str):
        self.operation = operation
        super().__init__(f"Database error during {operation}: {details}")


# API exception handlers

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.error(f"HTTP error {exc.status_code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Request validation error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": "Invalid request parameters. Please check your input."},
    )


async def response_validation_exception_handler(
    request: Request, exc: ResponseValidationError
):
    logger.error(f"Response validation error: {exc.errors()}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "The server encountered an unexpected error. Please contact support."
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please contact support."},
    )


async def database_exception_handler(request: Request, exc: DatabaseError):
    logger.error(f"Database error: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": "A database error occurred. Please contact support."},
    )


async def library_exception_handler(request: Request, exc: LibraryException):
    logger.error(f"Library error ({exc.status_code}): {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)},
    )


def add_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(
        ResponseValidationError, response_validation_exception_handler
    )
    app.add_exception_handler(Exception, general_exception_handler)
    app.add_exception_handler(DatabaseError, database_exception_handler)
    app.add_exception_handler(LibraryException, library_exception_handler)
