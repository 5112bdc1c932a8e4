import os
import pytest
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from catalog.main import app, get_db
from catalog.models import Base
from catalog.crud import create_user_record, create_book
from catalog.schemas import UserCreate, BookCreate
from catalog.storage import build_engine
from dotenv import load_dotenv

load_dotenv()

SQLALCHEMY_DATABASE_URL = os.getenv("TEST_DB_URL", "sqlite:///./test.db")

engine = build_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def create_test_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function", autouse=True)
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def second_session(db_session):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="module")
def client():
    app.state.testing = True

    def override_get_db():
        try:
            db = TestingSessionLocal()
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    app.state.testing = False


@pytest.fixture(scope="function")
def test_user(db_session):
    user_data = UserCreate(
        name="Test User",
        email="test@example.com",
        phone_number="555-0100",
    )
    user = create_user_record(db_session, user_data)
    return user


@pytest.fixture(scope="function")
def test_book(db_session):
    book_data = BookCreate(
        title="War and Peace",
        author="Leo Tolstoy",
        publication_year=1869,
        isbn="9780199232765",
        genre="Fiction",
    )
    book = create_book(db_session, book_data)
    return book


@pytest.fixture(scope="function")
def other_book(db_session):
    book_data = BookCreate(
        title="The Art of War",
        author="Sun Tzu",
        publication_year=1910,
        isbn="9781590302255",
        genre="Strategy",
    )
    return create_book(db_session, book_data)
