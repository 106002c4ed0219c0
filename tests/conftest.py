"""Pytest configuration and shared fixtures for resourcedb tests."""

import os
import sys
from pathlib import Path
from typing import Any, Generator

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from loguru import logger

from resourcedb.database import DocumentStore
from resourcedb.mover import CrossTopicMover
from resourcedb.pins import PinIndex
from resourcedb.repository import ResourceRepository
from resourcedb.service import ResourceService
from resourcedb.topics import TopicRegistry


# =============================================================================
# Test Configuration
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure loguru for tests to avoid I/O errors."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="ERROR",
        format="{time} {level} {message}",
        catch=True,
    )
    yield
    logger.remove()


@pytest.fixture(scope="function", autouse=True)
def reset_loguru():
    """Reset loguru handlers before each test to prevent I/O errors."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="ERROR",
        format="{time} {level} {message}",
        catch=True,
    )
    yield
    logger.remove()


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store() -> Generator[DocumentStore, None, None]:
    """In-memory document store, initialized and closed per test."""
    db = DocumentStore(database_path=Path(":memory:"))
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def file_store(tmp_path: Path) -> Generator[DocumentStore, None, None]:
    """Document store backed by a file in a temporary directory."""
    db = DocumentStore(database_path=tmp_path / "resources.db")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def pins(store: DocumentStore) -> PinIndex:
    return PinIndex(store)


@pytest.fixture
def registry(store: DocumentStore) -> TopicRegistry:
    return TopicRegistry(store)


@pytest.fixture
def repository(store: DocumentStore, pins: PinIndex) -> ResourceRepository:
    return ResourceRepository(store, pins)


@pytest.fixture
def mover(
    store: DocumentStore, repository: ResourceRepository, pins: PinIndex
) -> CrossTopicMover:
    return CrossTopicMover(store, repository, pins)


@pytest.fixture
def service(store: DocumentStore) -> ResourceService:
    return ResourceService(store)


# =============================================================================
# Mock Data Fixtures
# =============================================================================


@pytest.fixture
def resource_body() -> dict[str, Any]:
    """A valid create-resource request body."""
    return {
        "description": "Official Python documentation",
        "keywords": ["python", "reference"],
        "link": "https://docs.python.org/3/",
        "createdAt": 1700000000000,
    }


@pytest.fixture
def python_topic(registry: TopicRegistry) -> str:
    """Create the ``python`` topic and return its name."""
    registry.create_topic("python")
    return "python"


@pytest.fixture
def stored(repository: ResourceRepository, python_topic: str, resource_body: dict[str, Any]):
    """One resource stored in the ``python`` topic."""
    return repository.create(
        python_topic,
        resource_body["description"],
        resource_body["keywords"],
        resource_body["link"],
        resource_body["createdAt"],
    )


@pytest.fixture
def log_records() -> Generator[list[dict[str, Any]], None, None]:
    """Capture loguru records emitted during a test."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
