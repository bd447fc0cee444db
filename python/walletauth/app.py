"""FastAPI application creation and configuration.

Middleware Ordering:
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)

Order of registration:
1. AuthMiddleware
2. NetworkHeaderMiddleware
3. AccessControlHeadersMiddleware
4. RequestIDMiddleware (via add_request_id_middleware)

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. AccessControlHeadersMiddleware (decorates every response, errors included)
3. NetworkHeaderMiddleware (rejects unknown networks before auth)
4. AuthMiddleware (authenticate, authorize, attach identity and wallet)
5. Route handler
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from walletauth.api.routes import create_api_router
from walletauth.auth.authenticate import Authenticator
from walletauth.auth.authorize import Authorizer
from walletauth.auth.middleware import AuthMiddleware, WalletLookup
from walletauth.config import Settings, get_settings
from walletauth.db.engine import create_db_engine
from walletauth.db.session import create_session_factory
from walletauth.db.stores import SqlRevocationStore, SqlUserStore, SqlWalletStore
from walletauth.errors import ApiError, ApiErrorCode
from walletauth.logging import configure_logging, get_logger
from walletauth.middleware.cors import AccessControlHeadersMiddleware
from walletauth.middleware.network import NetworkHeaderMiddleware
from walletauth.middleware.request_id import RequestIDMiddleware
from walletauth.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    unhandled_exception_handler,
)

logger = get_logger(__name__)


def create_pipeline(settings: Settings) -> tuple[Authenticator, Authorizer | None]:
    """Build the authenticator and authorizer from settings.

    Without DATABASE_URL no stores exist: the bearer-token path answers with
    a server error and no authorizer is installed.
    """
    if not settings.database_url:
        logger.warning("stores_disabled", reason="no_database_url")
        return Authenticator.from_settings(settings), None

    session_factory = create_session_factory(create_db_engine(settings.database_url))
    authenticator = Authenticator.from_settings(
        settings,
        user_store=SqlUserStore(session_factory),
        revocation_store=SqlRevocationStore(session_factory),
    )
    return authenticator, Authorizer(SqlWalletStore(session_factory))


def create_app(
    settings: Settings | None = None,
    authenticator: Authenticator | None = None,
    authorizer: Authorizer | None = None,
    wallet_lookup: WalletLookup | None = None,
    skip_auth_middleware: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment if None.
        authenticator: Custom authenticator (for testing). Built from settings if None.
        authorizer: Custom authorizer (for testing). Built from settings when
            the authenticator is also built from settings.
        wallet_lookup: Upstream lookup providing the wallet for signed requests.
        skip_auth_middleware: If True, skip adding auth middleware (for testing).

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    configure_logging(json_format=settings.log_json)

    app = FastAPI(
        title="walletauth",
        description="Request authentication and wallet authorization service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors (including malformed JSON)."""
        error = ApiError(ApiErrorCode.E_INVALID_REQUEST, "Invalid request body")
        return JSONResponse(status_code=error.status_code, content=error_response(error))

    app.include_router(create_api_router())

    if not skip_auth_middleware:
        if authenticator is None:
            authenticator, default_authorizer = create_pipeline(settings)
            authorizer = authorizer or default_authorizer

        app.add_middleware(
            AuthMiddleware,
            authenticator=authenticator,
            authorizer=authorizer,
            wallet_lookup=wallet_lookup,
        )

        logger.info(
            "auth_middleware_enabled",
            env=settings.walletauth_env.value,
            token_auth_enabled=authenticator.token_verifier is not None,
            authorization_enabled=authorizer is not None,
        )

    app.add_middleware(
        NetworkHeaderMiddleware,
        allowed_networks=settings.network_list,
        default_network=settings.default_network,
    )
    app.add_middleware(
        AccessControlHeadersMiddleware,
        allow_origin=settings.cors_allow_origin,
        allow_headers=settings.cors_allow_headers,
    )

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.
    This ensures every response includes X-Request-ID, including auth failures.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
