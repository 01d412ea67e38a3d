import pytest
from fastapi.testclient import TestClient

from doc_organizer.config import Settings
from doc_organizer.database import Database
from doc_organizer.main import create_app
from doc_organizer.services.document_service import DocumentService
from doc_organizer.services.record_store import DocumentRecordStore
from doc_organizer.utils.filesystem import CategoryFileStore


@pytest.fixture
def tmp_storage(tmp_path):
    storage = tmp_path / "TestStorage"
    storage.mkdir()
    return storage


@pytest.fixture
def test_settings(tmp_storage):
    return Settings(storage_path=tmp_storage, debug_routes=True)


@pytest.fixture
def database(test_settings):
    db = Database(test_settings.db_path)
    db.init()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def file_store(tmp_storage):
    store = CategoryFileStore(tmp_storage)
    store.ensure_directories()
    return store


@pytest.fixture
def record_store(db_session):
    return DocumentRecordStore(db_session)


@pytest.fixture
def service(record_store, file_store):
    return DocumentService(record_store, file_store)


@pytest.fixture
def client(test_settings):
    app = create_app(test_settings)
    with TestClient(app) as c:
        yield c
