"""walletauth - request authentication and wallet authorization for HTTP APIs."""

__version__ = "0.1.0"
