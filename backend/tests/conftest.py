import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from dugsi.config import settings
from dugsi.database import get_db, init_db
from dugsi.dependencies import get_sink
from dugsi.main import app
from dugsi.models.user import User
from dugsi.services.session_service import JWTSessionResolver, Principal
from dugsi.storage.local import LocalBlobSink
from dugsi.utils.clock import utc_timestamp

TEST_SECRET = "test-secret-that-is-long-enough-for-hs256"


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class RecordingSink(LocalBlobSink):
    """Local sink that remembers every locator it was asked to write."""

    def __init__(self, root, url_prefix="/uploads"):
        super().__init__(root, url_prefix)
        self.puts: list[str] = []

    def put(self, locator, data, content_type):
        self.puts.append(locator)
        return super().put(locator, data, content_type)


@pytest.fixture
def tmp_data(tmp_path):
    data_path = tmp_path / "DugsiData"
    data_path.mkdir()
    return data_path


@pytest.fixture
def test_db(tmp_data):
    engine = create_engine(
        f"sqlite:///{tmp_data / 'db.sqlite'}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    init_db(engine)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestSession
    app.dependency_overrides.pop(get_db, None)
    engine.dispose()


@pytest.fixture
def sink(tmp_data):
    s = RecordingSink(tmp_data / "uploads")
    app.dependency_overrides[get_sink] = lambda: s
    yield s
    app.dependency_overrides.pop(get_sink, None)


@pytest.fixture
def test_settings(tmp_data):
    """Point settings at the temporary data dir and restore them afterwards."""
    original = settings.__dict__.copy()
    settings.data_path = tmp_data
    settings.auth_secret = TEST_SECRET
    settings.retrieval_policy = "authenticated"
    settings.inline_payloads = False
    settings.debug = False
    yield settings
    settings.__dict__.update(original)


@pytest.fixture
def client(test_db, sink, test_settings):
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(test_db):
    """Insert a user row and return a bearer header for it."""

    def _make(role: str = "superadmin", email: str | None = None):
        user_id = str(uuid.uuid4())
        now = utc_timestamp()
        with test_db() as db:
            db.add(User(
                id=user_id,
                first_name="Test",
                last_name="User",
                email=email or f"{user_id}@example.com",
                password_hash="not-a-real-hash",
                role=role,
                created_at=now,
                updated_at=now,
            ))
            db.commit()
        token = JWTSessionResolver(TEST_SECRET).issue_token(Principal(id=user_id, role=role), 3600)
        return user_id, {"Authorization": f"Bearer {token}"}

    return _make
