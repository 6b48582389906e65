import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cascade_api.config import Settings, get_settings
from cascade_api.database import Base, get_db
from cascade_api.main import app

_RealAsyncClient = httpx.AsyncClient


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        db_log_slow_queries=False,
        allowed_origins=("http://localhost:5173",),
        frontend_url="https://app.example.com",
        square_access_token="EAAAtest-token",
        square_location_id="LOC123",
        square_environment="sandbox",
        sendgrid_api_key="SG.test",
        sendgrid_reply_email="office@example.com",
        twilio_account_sid="ACtest",
        twilio_auth_token="auth-token",
        twilio_api_key="SKtest",
        twilio_api_secret="api-secret",
        twilio_twiml_app_sid="APtest",
        twilio_phone_number="+15550000000",
        telnyx_api_key="KEYtest",
        telnyx_connection_id="conn-1",
        gusto_client_id="gusto-id",
        gusto_client_secret="gusto-secret",
        gusto_redirect_uri="https://api.example.com/gusto-oauth-callback",
        r2_account_id="acct",
        r2_access_key_id="key",
        r2_secret_access_key="secret",
        r2_public_url="https://files.example.com",
        vapid_public_key="BPublicKey",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def client(engine, settings):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_settings():
    """Swap the injected settings for one test"""

    def install(**overrides):
        custom = make_settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: custom
        return custom

    return install


@pytest.fixture
def mock_http(monkeypatch):
    """Route outbound httpx.AsyncClient traffic to a handler; returns the recorded requests"""
    calls = []

    def install(handler):
        def recording(request):
            calls.append(request)
            return handler(request)

        transport = httpx.MockTransport(recording)

        def factory(*args, **kwargs):
            kwargs["transport"] = transport
            return _RealAsyncClient(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", factory)
        return calls

    return install
