"""
Shared test fixtures — SQLite test database, test client, store helpers.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Point settings at the test database before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from wirecost.database import Base, get_db
from wirecost.main import app
from wirecost.store import InMemoryRecordStore, SqlRecordStore


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sql_store(db):
    return SqlRecordStore(db)


@pytest.fixture
def memory_store():
    return InMemoryRecordStore()


@pytest.fixture
def sample_fields():
    """The worked example: 30 strands of 0.2 gauge, 3 cores, 100 m."""
    return {
        "specifications": "3 core 30/0.2 flexible",
        "cu_strands": 30,
        "gauge": 0.2,
        "inner_od": 1.5,
        "no_of_cores": 3,
        "round_od": 0,
        "flat_b": 0,
        "flat_w": 0,
        "labour_on_wire": 12,
        "length_req": 100,
        "type": "Wire",
        "plug_cost": 0,
        "terminal_acc_cost": 0,
        "copper_rate": 700,
        "pvc_rate": 100,
        "enquiry_by": "CEO",
        "company": "Acme Cables",
        "remarks": "",
    }
