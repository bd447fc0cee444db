"""Per-request authentication state.

A RequestContext is built once from the inbound request and never mutated:
each pipeline stage that learns something returns a new context (via
dataclasses.replace) wrapped in a Proceed outcome, or a Reject carrying the
ApiError that stopped the request.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Literal

from starlette.datastructures import Headers

from walletauth.errors import ApiError

# Methods whose payload is the query string; every other method signs its body
QUERY_PAYLOAD_METHODS = frozenset({"GET", "HEAD"})

BodyLoader = Callable[[], Awaitable[Mapping[str, Any]]]


@dataclass(frozen=True)
class SignatureIdentity:
    """Caller proved possession of the key behind `public_key`.

    There is no persisted user record for this kind of identity.
    """

    public_key: str
    kind: Literal["signature"] = "signature"


@dataclass(frozen=True)
class TokenIdentity:
    """Caller presented a valid bearer token resolved to a persisted user."""

    user: Any
    claims: Mapping[str, Any] = field(default_factory=dict)
    kind: Literal["token"] = "token"

    @property
    def user_id(self) -> Any:
        return self.user.id


VerifiedIdentity = SignatureIdentity | TokenIdentity


@dataclass(frozen=True)
class WalletBinding:
    """The wallet a token-authenticated caller acts on for this request."""

    wallet: Any

    @property
    def wallet_id(self) -> Any:
        return self.wallet.id

    @property
    def user_id(self) -> Any:
        return self.wallet.user_id


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class RequestContext:
    """Immutable view of one request as the pipeline sees it.

    Attributes:
        method: Upper-case HTTP method.
        headers: Header accessor with case-insensitive `get`.
        query: Query parameters.
        body: Parsed JSON body. None until loaded when the context was built
            with a body_loader.
        body_loader: Reads and parses the body on demand. Only the signature
            path needs the body, so other requests never have it parsed.
        wallet: Wallet record pre-populated by an upstream lookup. For signed
            requests it provides the public key; for token requests it is the
            candidate wallet reference re-validated by authorization.
        identity: Set by authentication.
        wallet_binding: Set by authorization.
    """

    method: str
    headers: Mapping[str, str]
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] | None = None
    wallet: Any = None
    body_loader: BodyLoader | None = field(default=None, compare=False, repr=False)
    identity: VerifiedIdentity | None = None
    wallet_binding: WalletBinding | None = None

    @classmethod
    def build(
        cls,
        method: str,
        headers: Mapping[str, str],
        query: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
        wallet: Any = None,
        body_loader: BodyLoader | None = None,
    ) -> "RequestContext":
        if not isinstance(headers, Headers):
            headers = Headers(headers=dict(headers))
        return cls(
            method=method.upper(),
            headers=headers,
            query=_frozen(query),
            body=None if body is None and body_loader is not None else _frozen(body),
            wallet=wallet,
            body_loader=body_loader,
        )

    def get(self, header_name: str) -> str | None:
        """Return a header value, or None when the header is absent."""
        return self.headers.get(header_name)

    @property
    def payload(self) -> dict[str, Any]:
        """The caller-provided data covered by a detached signature."""
        if self.method in QUERY_PAYLOAD_METHODS:
            return dict(self.query)
        return dict(self.body or {})

    async def with_loaded_body(self) -> "RequestContext":
        """Return a context whose body is parsed, reading it if needed.

        Raises:
            ApiError: If the body loader rejects the body.
        """
        if self.body is not None or self.body_loader is None:
            return self
        if self.method in QUERY_PAYLOAD_METHODS:
            return self
        return replace(self, body=_frozen(await self.body_loader()))

    def with_identity(self, identity: VerifiedIdentity) -> "RequestContext":
        return replace(self, identity=identity)

    def with_wallet_binding(self, binding: WalletBinding) -> "RequestContext":
        return replace(self, wallet_binding=binding)


@dataclass(frozen=True)
class Proceed:
    """The request may continue with the given context."""

    context: RequestContext


@dataclass(frozen=True)
class Reject:
    """The request is refused with the given error."""

    error: ApiError


Outcome = Proceed | Reject
