from pydantic import BaseModel, Field
from typing import Optional


class BookBase(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    publication_year: int = Field(0, alias="publicationYear")
    isbn: Optional[str] = None
    genre: Optional[str] = None
    available: bool = True

    class Config:
        populate_by_name = True


class BookCreate(BookBase):
    pass


class BookUpdate(BookBase):
    """Full replacement: every field is applied, omitted ones take their default."""


class BookSchema(BookBase):
    id: int

    class Config:
        from_attributes = True
        populate_by_name = True


class UserBase(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")

    class Config:
        populate_by_name = True


class UserCreate(UserBase):
    pass


class UserSchema(UserBase):
    id: int
    books: list[BookSchema] = []

    class Config:
        from_attributes = True
        populate_by_name = True


class BookSearchParams(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None


class DeleteResponse(BaseModel):
    deleted: bool
