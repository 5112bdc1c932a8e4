from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Table
from sqlalchemy.orm import relationship

from sqlalchemy.orm import declarative_base

Base = declarative_base()


# A row means the user currently holds the book; returning deletes it.
loans = Table(
    "loans",
    Base.metadata,
    Column(
        "user_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
        unique=True,
    ),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True, index=True)
    phone_number = Column(String, nullable=True)


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=True)
    author = Column(String, nullable=True)
    publication_year = Column(Integer, nullable=False, default=0)
    isbn = Column(String, nullable=True)
    genre = Column(String, nullable=True, index=True)
    available = Column(Boolean, nullable=False, default=True)


User.books = relationship(
    "Book", secondary=loans, back_populates="borrowers", order_by=Book.id
)
Book.borrowers = relationship("User", secondary=loans, back_populates="books")
