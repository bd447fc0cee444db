"""Tests for the Authorizer (wallet binding for token-authenticated requests)."""

import pytest

from tests.helpers import make_user, make_wallet
from tests.support.fakes import InMemoryWalletStore
from walletauth.auth.authorize import LOOKUP_FAILED_MESSAGE, Authorizer
from walletauth.auth.context import (
    Proceed,
    Reject,
    RequestContext,
    SignatureIdentity,
    TokenIdentity,
    WalletBinding,
)
from walletauth.errors import ApiErrorCode

BEARER = {"Authorization": "Bearer tok"}


def _token_context(user, wallet=None) -> RequestContext:
    context = RequestContext.build("GET", BEARER, wallet=wallet)
    return context.with_identity(TokenIdentity(user=user, claims={"sub": user.registration_id}))


class TestAuthorizerPassThrough:
    @pytest.mark.asyncio
    async def test_no_bearer_header_proceeds_unchanged(self, signing_key):
        authorizer = Authorizer(InMemoryWalletStore())
        context = RequestContext.build("GET", {"X-API-Signature": "abc"}).with_identity(
            SignatureIdentity(public_key=signing_key.public)
        )

        outcome = await authorizer.authorize(context)

        assert isinstance(outcome, Proceed)
        assert outcome.context is context
        assert outcome.context.wallet_binding is None

    @pytest.mark.asyncio
    async def test_no_credentials_at_all_proceeds(self):
        store = InMemoryWalletStore()
        outcome = await Authorizer(store).authorize(RequestContext.build("GET", {}))

        assert isinstance(outcome, Proceed)
        assert store.calls == []

    def test_store_required(self):
        with pytest.raises(ValueError):
            Authorizer(None)


class TestAuthorizerFirstCreatedWallet:
    @pytest.mark.asyncio
    async def test_binds_first_created_wallet(self, user):
        """Without a wallet reference the oldest enabled wallet is bound."""
        w1 = make_wallet(user.id, age_days=1)
        newer = make_wallet(user.id, age_days=5)
        store = InMemoryWalletStore([newer, w1])

        outcome = await Authorizer(store).authorize(_token_context(user))

        assert isinstance(outcome, Proceed)
        assert outcome.context.wallet_binding == WalletBinding(wallet=w1)
        assert store.calls == [("find_first_created", {"user_id": user.id, "disabled": False})]

    @pytest.mark.asyncio
    async def test_disabled_wallets_skipped(self, user):
        disabled = make_wallet(user.id, age_days=0, disabled=True)
        enabled = make_wallet(user.id, age_days=3)

        outcome = await Authorizer(InMemoryWalletStore([disabled, enabled])).authorize(
            _token_context(user)
        )

        assert isinstance(outcome, Proceed)
        assert outcome.context.wallet_binding.wallet is enabled

    @pytest.mark.asyncio
    async def test_no_wallet(self, user, recording_logger):
        authorizer = Authorizer(InMemoryWalletStore(), logger=recording_logger)

        outcome = await authorizer.authorize(_token_context(user))

        assert isinstance(outcome, Reject)
        assert outcome.error.code == ApiErrorCode.E_UNAUTHORIZED
        assert outcome.error.status_code == 401
        assert recording_logger.find("wallet_record_not_found")["user_id"] == str(user.id)

    @pytest.mark.asyncio
    async def test_other_users_wallet_not_used(self, user):
        other = make_user("u2")
        store = InMemoryWalletStore([make_wallet(other.id)])

        outcome = await Authorizer(store).authorize(_token_context(user))

        assert isinstance(outcome, Reject)
        assert outcome.error.code == ApiErrorCode.E_UNAUTHORIZED


class TestAuthorizerWalletReference:
    @pytest.mark.asyncio
    async def test_owned_reference_bound(self, user):
        wallet = make_wallet(user.id, age_days=4)
        store = InMemoryWalletStore([make_wallet(user.id), wallet])

        outcome = await Authorizer(store).authorize(_token_context(user, wallet=wallet))

        assert isinstance(outcome, Proceed)
        assert outcome.context.wallet_binding.wallet is wallet
        assert store.calls == [
            ("find_one", {"id": wallet.id, "user_id": user.id, "disabled": False})
        ]

    @pytest.mark.asyncio
    async def test_reference_owned_by_other_user(self, user, recording_logger):
        """A wallet reference belonging to someone else is refused, nothing is bound."""
        w2 = make_wallet(make_user("u2").id)
        store = InMemoryWalletStore([w2, make_wallet(user.id)])
        context = _token_context(user, wallet=w2)

        outcome = await Authorizer(store, logger=recording_logger).authorize(context)

        assert isinstance(outcome, Reject)
        assert outcome.error.code == ApiErrorCode.E_UNAUTHORIZED
        assert context.wallet_binding is None
        assert "wallet_record_not_found" in recording_logger.events("warning")

    @pytest.mark.asyncio
    async def test_disabled_reference(self, user):
        wallet = make_wallet(user.id, disabled=True)

        outcome = await Authorizer(InMemoryWalletStore([wallet])).authorize(
            _token_context(user, wallet=wallet)
        )

        assert isinstance(outcome, Reject)
        assert outcome.error.code == ApiErrorCode.E_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_store_returning_foreign_wallet_rejected(self, user, recording_logger):
        """The binding is re-checked against the owner even if the store misbehaves."""

        class LooseStore(InMemoryWalletStore):
            async def find_one(self, filter):
                return self.records[0]

        foreign = make_wallet(make_user("u2").id)
        authorizer = Authorizer(LooseStore([foreign]), logger=recording_logger)

        outcome = await authorizer.authorize(_token_context(user, wallet=foreign))

        assert isinstance(outcome, Reject)
        assert outcome.error.code == ApiErrorCode.E_UNAUTHORIZED
        fields = recording_logger.find("authorization_failure")
        assert fields["reason"] == "wallet_owner_mismatch"


class TestAuthorizerFailures:
    @pytest.mark.asyncio
    async def test_missing_identity(self, recording_logger):
        authorizer = Authorizer(InMemoryWalletStore(), logger=recording_logger)

        outcome = await authorizer.authorize(RequestContext.build("GET", BEARER))

        assert isinstance(outcome, Reject)
        assert outcome.error.code == ApiErrorCode.E_UNAUTHORIZED
        assert recording_logger.find("authorization_failure")["reason"] == "not_authenticated"

    @pytest.mark.asyncio
    async def test_signature_identity_with_bearer_header(self, signing_key):
        context = RequestContext.build("GET", BEARER).with_identity(
            SignatureIdentity(public_key=signing_key.public)
        )

        outcome = await Authorizer(InMemoryWalletStore()).authorize(context)

        assert isinstance(outcome, Reject)
        assert outcome.error.code == ApiErrorCode.E_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_store_failure_is_distinct_from_not_found(self, user, recording_logger):
        store = InMemoryWalletStore(error=ConnectionError("db down"))

        outcome = await Authorizer(store, logger=recording_logger).authorize(
            _token_context(user)
        )

        assert isinstance(outcome, Reject)
        assert outcome.error.code == ApiErrorCode.E_INTERNAL_LOOKUP_FAILURE
        assert outcome.error.status_code == 500
        assert outcome.error.message == LOOKUP_FAILED_MESSAGE
        assert "authorize_lookup_failed" in recording_logger.events("error")
