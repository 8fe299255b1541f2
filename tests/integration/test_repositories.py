"""Integration tests for repository queries"""

import uuid
import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Session
from layersplit.infrastructure.database.repositories import BillRepository

pytestmark = pytest.mark.integration


def test_lock_bill_query_takes_row_lock(db: Session):
    """SQLite ignores FOR UPDATE, so check the statement Postgres would receive"""
    statement = BillRepository(db)._lock_query(uuid.uuid4()).statement

    sql = str(statement.compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE" in sql
    assert "WHERE ls_bill.id =" in sql


def test_lock_bill_unknown_id(db: Session):
    assert BillRepository(db).lock_bill(uuid.uuid4()) is None
