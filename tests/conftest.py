"""Pytest fixtures for testing"""

import pytest
from typing import Generator
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from layersplit.api.main import create_app
from layersplit.config import Settings
from layersplit.infrastructure.database.models import Base, User
from layersplit.infrastructure.database.session import build_engine, build_session_factory, get_db
from layersplit.infrastructure.sui.builder import SuiTransactionBuilder
from layersplit.services.directory import Directory
from layersplit.services.reconciler import SettlementReconciler


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = build_session_factory(engine)

PACKAGE_ID = "0x" + "a" * 64
REGISTRY_ID = "0x" + "b" * 64


def wallet(seed: int) -> str:
    """Deterministic, well-formed Sui address"""
    return "0x" + f"{seed:064x}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        sui_package_id=PACKAGE_ID,
        sui_registry_id=REGISTRY_ID,
        telegram_bot_token="",
        operator_chat_id=None,
    )


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
def client(db: Session, settings: Settings) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app(settings)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def builder() -> SuiTransactionBuilder:
    return SuiTransactionBuilder(package_id=PACKAGE_ID, registry_id=REGISTRY_ID)


@pytest.fixture
def notifier() -> AsyncMock:
    """Notifier double; inspect .send.await_args_list for delivered notices"""
    return AsyncMock()


@pytest.fixture
def reconciler(db: Session, builder: SuiTransactionBuilder, settings: Settings, notifier: AsyncMock) -> SettlementReconciler:
    return SettlementReconciler(db, builder, settings, notifier=notifier)


@pytest.fixture
def alice(db: Session) -> User:
    """Bill creator with a linked wallet"""
    return Directory(db).link_wallet(1001, wallet(1), username="alice")


@pytest.fixture
def bob(db: Session) -> User:
    return Directory(db).link_wallet(1002, wallet(2), username="bob")


@pytest.fixture
def carol(db: Session) -> User:
    return Directory(db).link_wallet(1003, wallet(3), username="carol")


@pytest.fixture
def dave(db: Session) -> User:
    return Directory(db).link_wallet(1004, wallet(4), username="dave")
