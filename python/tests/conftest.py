"""Pytest configuration and fixtures for walletauth tests.

Test isolation strategy:
- Pipeline tests use in-memory stores from tests.support.fakes
- Store and app integration tests get a fresh in-memory sqlite database
  per test (StaticPool, so threadpool lookups share one connection)
- Log assertions use RecordingLogger injected into the component under
  test rather than the global structlog configuration
"""

from collections.abc import Generator
from types import SimpleNamespace

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tests.helpers import make_user, make_wallet
from tests.support.fakes import RecordingLogger
from tests.support.keys import RsaKeypair, generate_signing_key
from walletauth.auth.verifier import JwtTokenVerifier
from walletauth.config import clear_settings_cache
from walletauth.db.models import Base
from walletauth.db.session import create_session_factory


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create an in-memory sqlite engine with the full schema."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory bound to the test engine."""
    return create_session_factory(engine)


@pytest.fixture
def signing_key() -> SimpleNamespace:
    """A secp256k1 keypair as (private, public) hex strings."""
    private_key, public_key = generate_signing_key()
    return SimpleNamespace(private=private_key, public=public_key)


@pytest.fixture
def rsa_public_pem() -> str:
    """Public half of the shared token-signing keypair."""
    return RsaKeypair.public_pem()


@pytest.fixture
def token_verifier(rsa_public_pem: str) -> JwtTokenVerifier:
    """Verifier accepting tokens minted by tests.helpers.mint_test_token."""
    return JwtTokenVerifier(
        key=rsa_public_pem,
        algorithms=["RS256"],
        issuer="test-issuer",
        audiences=["test-audience"],
    )


@pytest.fixture
def user() -> SimpleNamespace:
    """User `u1`."""
    return make_user("u1")


@pytest.fixture
def wallet(user: SimpleNamespace, signing_key: SimpleNamespace) -> SimpleNamespace:
    """User `u1`'s only wallet, holding the signing key."""
    return make_wallet(user.id, public_key=signing_key.public)


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Logger capturing structured events."""
    return RecordingLogger()


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
