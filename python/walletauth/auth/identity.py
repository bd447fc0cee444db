"""Resolve a verified token's subject to a persisted user."""

from collections.abc import Mapping
from typing import Any

from walletauth.auth.stores import UserStore
from walletauth.errors import ApiError, ApiErrorCode
from walletauth.logging import get_logger

_logger = get_logger(__name__)

SUBJECT_FIELD = "registration_id"


async def resolve_identity(
    claims: Mapping[str, Any],
    store: UserStore | None,
    logger: Any = None,
) -> Any:
    """Load the user record named by the token's `sub` claim.

    Raises:
        ApiError(E_IDENTITY_NOT_FOUND): No user matches the subject.
        ApiError(E_LOOKUP_FAILED): No user store is configured, or the
            store could not be queried.
    """
    log = logger if logger is not None else _logger
    subject = claims.get("sub")

    if store is None:
        log.error("identity_lookup_unavailable", reason="no_user_store")
        raise ApiError(ApiErrorCode.E_LOOKUP_FAILED, "No user store configured")

    try:
        user = await store.find_one({SUBJECT_FIELD: subject})
    except Exception as e:
        log.error("identity_lookup_failed", sub=subject, error=str(e), exc_info=e)
        raise ApiError(ApiErrorCode.E_LOOKUP_FAILED, f"User lookup failed: {e}") from e

    if user is None:
        log.warning("user_record_not_found", sub=subject)
        raise ApiError(ApiErrorCode.E_IDENTITY_NOT_FOUND)

    return user
