"""Current caller endpoint.

Reports who the pipeline authenticated the request as, and which wallet
it is bound to.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from walletauth.auth.context import RequestContext, SignatureIdentity
from walletauth.auth.middleware import get_auth_context, get_current_wallet
from walletauth.responses import success_response

router = APIRouter()


@router.get("/me")
async def get_me(
    request: Request,
    context: Annotated[RequestContext, Depends(get_auth_context)],
) -> dict:
    """Get the authenticated identity.

    Returns:
        Success envelope with the identity kind, the user id (token) or
        public key (signature), the bound wallet id and the network.
    """
    identity = context.identity
    wallet = getattr(request.state, "wallet", None)

    data = {
        "kind": identity.kind,
        "wallet_id": str(wallet.id) if wallet is not None else None,
        "network": request.headers.get("network"),
    }
    if isinstance(identity, SignatureIdentity):
        data["public_key"] = identity.public_key
    else:
        data["user_id"] = str(identity.user_id)

    return success_response(data)


@router.get("/me/wallet")
async def get_my_wallet(wallet: Annotated[Any, Depends(get_current_wallet)]) -> dict:
    """Get the wallet the request is bound to."""
    return success_response(
        {
            "id": str(wallet.id),
            "user_id": str(wallet.user_id),
            "public_key": wallet.public_key,
            "network": wallet.network,
        }
    )
