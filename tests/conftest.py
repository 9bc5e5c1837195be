import pytest
from datetime import date
from pathlib import Path

from worklog.database.connection import DatabaseConfig, DatabaseManager
from worklog.domain.models import Update
from worklog.repositories.sqlite_attachment_repository import SQLiteAttachmentRepository
from worklog.repositories.sqlite_update_repository import SQLiteUpdateRepository
from worklog.storage.file_store import FileStore


# Smallest valid PNG header is enough, nothing decodes the image
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

@pytest.fixture
def test_db(tmp_path):
    """
    Create a real test database.

    Use pytest's tmp_path fixture to create a temporary directory.
    """
    config = DatabaseConfig(tmp_path / "test.db")
    db_manager = DatabaseManager(config)
    db_manager.initialize()

    yield db_manager

    db_manager.close()

@pytest.fixture
def update_repo(test_db) -> SQLiteUpdateRepository:
    return SQLiteUpdateRepository(test_db)

@pytest.fixture
def attachment_repo(test_db) -> SQLiteAttachmentRepository:
    return SQLiteAttachmentRepository(test_db)

@pytest.fixture
def file_store(tmp_path) -> FileStore:
    return FileStore(tmp_path / "attachments")

@pytest.fixture
def image_file(tmp_path) -> Path:
    """A small .png file to upload"""
    path = tmp_path / "uploads" / "screenshot.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(PNG_BYTES)
    return path

@pytest.fixture
def sample_update() -> Update:
    """Reusable sample update, not yet saved."""
    return Update(
        title="Fixed login crash",
        date=date(2026, 2, 3),
        description="Null session after logout",
        tags=["auth", "backend"],
    )
