"""Liveness endpoint, served without credentials.

The auth middleware lists /health among its public paths, so a 200 here
means the process accepts requests. It says nothing about the token
verification key or the user and wallet stores: a misconfigured key only
surfaces as a 500 on authenticated routes.
"""

from fastapi import APIRouter

from walletauth.responses import success_response

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Report that the service is up."""
    return success_response({"status": "ok"})
