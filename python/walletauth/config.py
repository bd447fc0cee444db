"""Application settings loaded from environment variables.

Environment Configuration:
    WALLETAUTH_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: SQLAlchemy connection string for the user/wallet/revocation stores

Token Configuration:
    OAUTH_PUBLIC_KEY: Public key (PEM) or shared secret used to verify bearer tokens
    OAUTH_ALGORITHMS: Comma-separated list of accepted JWT algorithms
    OAUTH_ISSUER: Expected token issuer (optional)
    OAUTH_AUDIENCES: Comma-separated list of accepted audiences (optional)

Header Configuration:
    DEFAULT_NETWORK: Network assumed when the Network header is missing
    ALLOWED_NETWORKS: Comma-separated list of accepted Network header values
    CORS_ALLOW_ORIGIN / CORS_ALLOW_HEADERS: Access-control header values

OAUTH_PUBLIC_KEY and DATABASE_URL are optional in local/test: without them
the bearer-token path answers with a server configuration error, while
signature authentication keeps working.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application configuration.

    Validation rules:
    - OAUTH_PUBLIC_KEY and DATABASE_URL are required in staging and prod
    - DEFAULT_NETWORK must be one of ALLOWED_NETWORKS
    """

    walletauth_env: Environment = Field(default=Environment.LOCAL, alias="WALLETAUTH_ENV")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    # Bearer token verification
    oauth_public_key: str | None = Field(default=None, alias="OAUTH_PUBLIC_KEY")
    oauth_algorithms: str = Field(default="RS256", alias="OAUTH_ALGORITHMS")
    oauth_issuer: str | None = Field(default=None, alias="OAUTH_ISSUER")
    oauth_audiences: str | None = Field(default=None, alias="OAUTH_AUDIENCES")
    oauth_leeway_s: int = Field(default=0, alias="OAUTH_LEEWAY_S")

    # Network header
    default_network: str = Field(default="mainnet", alias="DEFAULT_NETWORK")
    allowed_networks: str = Field(default="mainnet,rinkeby", alias="ALLOWED_NETWORKS")

    # Access-control headers
    cors_allow_origin: str = Field(default="*", alias="CORS_ALLOW_ORIGIN")
    cors_allow_headers: str = Field(
        default="Origin, X-Requested-With, Content-Type, Accept",
        alias="CORS_ALLOW_HEADERS",
    )

    log_json: bool = Field(default=True, alias="LOG_JSON")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Ensure deployment-critical settings are present."""
        if self.walletauth_env in (Environment.STAGING, Environment.PROD):
            missing = []
            if not self.oauth_public_key:
                missing.append("OAUTH_PUBLIC_KEY")
            if not self.database_url:
                missing.append("DATABASE_URL")
            if missing:
                raise ValueError(
                    f"Missing required settings for WALLETAUTH_ENV={self.walletauth_env.value}: "
                    f"{', '.join(missing)}"
                )

        if not self.network_list:
            raise ValueError("ALLOWED_NETWORKS must list at least one network")
        if self.default_network not in self.network_list:
            raise ValueError(
                f"DEFAULT_NETWORK={self.default_network} is not one of ALLOWED_NETWORKS"
            )

        return self

    @property
    def algorithm_list(self) -> list[str]:
        """Parse comma-separated algorithms into a list."""
        return _split_csv(self.oauth_algorithms)

    @property
    def audience_list(self) -> list[str]:
        """Parse comma-separated audiences into a list."""
        return _split_csv(self.oauth_audiences)

    @property
    def network_list(self) -> list[str]:
        """Parse comma-separated networks into a list."""
        return _split_csv(self.allowed_networks)

    @property
    def normalized_issuer(self) -> str | None:
        """Return issuer with trailing slash stripped."""
        if self.oauth_issuer:
            return self.oauth_issuer.rstrip("/")
        return None


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
