import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from resto_admin.db import Base
from resto_admin.models import TableColumnState  # noqa: F401
from resto_admin.services import table_definitions  # noqa: F401
from resto_admin.services.columns import column
from resto_admin.services.dynamic_filters import FilterDefinition, FilterOption, OperandType
from resto_admin.services.table_config import build_definition


def _manager_cell(row):
    return (row.get("manager") or {}).get("fullName") or "-"


@pytest.fixture(scope="session")
def engine():
    database_url = os.getenv("TEST_DATABASE_URL")
    if database_url:
        engine = create_engine(database_url)
    else:
        engine = create_engine(
            "sqlite+pysqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(bind=connection, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def staff_definition():
    """Small unregistered table used by controller tests."""
    return build_definition(
        table_id="staff",
        columns=[
            column("name", "Name", hideable=False),
            column("email", "Email"),
            column("status", "Status"),
            column("manager", "Manager", cell=_manager_cell, sortable=False),
            column("createdAt", "Created At", hidden_by_default=True),
        ],
        filters=[
            FilterDefinition("name", "Name", OperandType.STRING),
            FilterDefinition("age", "Age", OperandType.INTEGER),
            FilterDefinition(
                "status",
                "Status",
                OperandType.ENUM,
                (FilterOption("ACTIVE", "Active"), FilterOption("INACTIVE", "Inactive")),
            ),
        ],
        page_size=10,
        default_sort="name:asc",
        row_meta_fields=["id"],
    )
