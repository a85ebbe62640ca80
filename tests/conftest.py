"""Pytest fixtures for testing"""

import pytest
from decimal import Decimal
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from retail_backoffice.api.main import create_app
from retail_backoffice.domain.dispatcher import EventDispatcher
from retail_backoffice.domain.models import LineItem, Product
from retail_backoffice.infrastructure.database.models import Base
from retail_backoffice.infrastructure.database.repositories import SqlProductRepository
from retail_backoffice.infrastructure.database.session import get_db
from retail_backoffice.services.observers import register_default_observers


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def dispatcher(db: Session) -> Generator[EventDispatcher, None, None]:
    """Inline dispatcher wired to the standard observers on the test database"""
    dispatcher = EventDispatcher(timeout_seconds=0)
    register_default_observers(dispatcher, TestingSessionLocal)
    yield dispatcher
    dispatcher.shutdown()


@pytest.fixture
def budgeted_dispatcher(db: Session) -> Generator[EventDispatcher, None, None]:
    """Dispatcher with per-observer time budgets, as the application runs it"""
    dispatcher = EventDispatcher(timeout_seconds=2.0)
    register_default_observers(dispatcher, TestingSessionLocal)
    yield dispatcher
    dispatcher.shutdown()


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with test database; the lifespan runs around each test"""
    app = create_app(session_factory=TestingSessionLocal)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def products(db: Session) -> List[Product]:
    """Two stocked products"""
    repo = SqlProductRepository(db)
    return [
        repo.save(Product(id="PRD-rice", name="Rice 5kg", price=Decimal("75000"), stock=20, category="grocery")),
        repo.save(Product(id="PRD-oil", name="Cooking Oil 2L", price=Decimal("36000"), stock=10, category="grocery")),
    ]


@pytest.fixture
def sample_items() -> List[LineItem]:
    """Line items totalling 222000 (2 x 75000 + 2 x 36000)"""
    return [
        LineItem(product_id="PRD-rice", product_name="Rice 5kg", quantity=2, unit_price=Decimal("75000")),
        LineItem(product_id="PRD-oil", product_name="Cooking Oil 2L", quantity=2, unit_price=Decimal("36000")),
    ]
