"""Authentication orchestrator.

Decides who the caller is. Order of checks:
1. X-API-Signature present (even empty): parse the body when the method signs
   it, then verify the signature against the public key of the pre-populated
   wallet. The token path is never tried afterwards.
2. Authorization present: verify the bearer token, reject revoked tokens,
   then load the user named by the token's subject.
3. Neither: reject as unauthenticated.

Cryptographic checks run in the threadpool; store lookups are awaited one
after the other, so a request never reaches the user store before its
token has passed the revocation check.
"""

from typing import Any

from starlette.concurrency import run_in_threadpool

from walletauth.auth.context import (
    Outcome,
    Proceed,
    Reject,
    RequestContext,
    SignatureIdentity,
    TokenIdentity,
    VerifiedIdentity,
)
from walletauth.auth.credentials import (
    BearerTokenCredential,
    SignatureCredential,
    extract_credential,
    strip_bearer_prefix,
)
from walletauth.auth.identity import resolve_identity
from walletauth.auth.revocation import check_revocation
from walletauth.auth.signature import SignatureOracle, Secp256k1SignatureOracle, verify_signature
from walletauth.auth.stores import RevocationStore, UserStore
from walletauth.auth.verifier import JwtTokenVerifier, TokenVerifier, algorithms_for_key
from walletauth.config import Settings
from walletauth.errors import ApiError, ApiErrorCode
from walletauth.logging import get_logger

_logger = get_logger(__name__)


class Authenticator:
    """Authenticate-or-reject decision for a single request.

    Holds no per-request state; one instance serves all requests.
    """

    def __init__(
        self,
        verification_key: str | bytes | None = None,
        token_verifier: TokenVerifier | None = None,
        signature_oracle: SignatureOracle | None = None,
        user_store: UserStore | None = None,
        revocation_store: RevocationStore | None = None,
        logger: Any = None,
    ):
        """Initialize the authenticator.

        Args:
            verification_key: PEM public key or shared secret for bearer tokens.
                Builds a JwtTokenVerifier (RS256 or HS256 by key shape) when no
                token_verifier is given.
            token_verifier: Bearer token verifier. When neither it nor a
                verification key is given, bearer requests fail with a server error.
            signature_oracle: Detached signature check.
            user_store: Resolves token subjects to users.
            revocation_store: Revoked tokens; None skips the revocation check.
            logger: Optional structured logger.
        """
        if token_verifier is None and verification_key:
            token_verifier = JwtTokenVerifier(
                key=verification_key, algorithms=algorithms_for_key(verification_key)
            )
        self.token_verifier = token_verifier
        self.signature_oracle = signature_oracle or Secp256k1SignatureOracle()
        self.user_store = user_store
        self.revocation_store = revocation_store
        self.logger = logger if logger is not None else _logger

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        user_store: UserStore | None = None,
        revocation_store: RevocationStore | None = None,
    ) -> "Authenticator":
        """Build an authenticator from application settings."""
        token_verifier = None
        if settings.oauth_public_key:
            token_verifier = JwtTokenVerifier(
                key=settings.oauth_public_key,
                algorithms=settings.algorithm_list,
                issuer=settings.normalized_issuer,
                audiences=settings.audience_list or None,
                leeway=settings.oauth_leeway_s,
            )
        return cls(
            token_verifier=token_verifier,
            user_store=user_store,
            revocation_store=revocation_store,
        )

    async def authenticate(self, context: RequestContext) -> Outcome:
        """Authenticate the request.

        Returns:
            Proceed with a context carrying the verified identity, or Reject
            with the error that stopped the request.
        """
        credential = extract_credential(context.headers)

        try:
            if isinstance(credential, SignatureCredential):
                self._require_signing_context(context)
                context = await context.with_loaded_body()
                identity: VerifiedIdentity = await self._authenticate_signature(
                    context, credential
                )
            elif isinstance(credential, BearerTokenCredential):
                identity = await self._authenticate_token(credential)
            else:
                raise ApiError(ApiErrorCode.E_UNAUTHENTICATED)
        except ApiError as e:
            return Reject(e)

        return Proceed(context.with_identity(identity))

    def _require_signing_context(self, context: RequestContext) -> None:
        if context.wallet is None:
            self.logger.warning("auth_failure", reason="missing_signing_context")
            raise ApiError(ApiErrorCode.E_MISSING_CONTEXT, "No wallet data found.")

    async def _authenticate_signature(
        self, context: RequestContext, credential: SignatureCredential
    ) -> SignatureIdentity:
        """Verify a detached signature against the signing context."""
        public_key = getattr(context.wallet, "public_key", None)

        await run_in_threadpool(
            verify_signature,
            credential.raw,
            public_key,
            context.payload,
            self.signature_oracle,
        )
        return SignatureIdentity(public_key=public_key)

    async def _authenticate_token(self, credential: BearerTokenCredential) -> TokenIdentity:
        """Verify a bearer token, check revocation, resolve the user."""
        if self.token_verifier is None:
            self.logger.error("auth_misconfigured", reason="no_verification_key")
            raise ApiError(ApiErrorCode.E_MISSING_VERIFICATION_KEY, "No OAuth public key found!")

        token = strip_bearer_prefix(credential.raw)

        claims = await run_in_threadpool(self.token_verifier.verify, token)
        await check_revocation(token, self.revocation_store, logger=self.logger)
        user = await resolve_identity(claims, self.user_store, logger=self.logger)

        return TokenIdentity(user=user, claims=claims)
