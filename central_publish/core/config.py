from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from central_publish.client.auth import build_authentication
from central_publish.client.types import (
    DEFAULT_PUBLISHER_URL,
    HostCredential,
    PublisherConfig,
    PublishingType,
    create_publisher_config,
)


def _normalise_url(url: str) -> str:
    """Ensure the base url ends with a slash.

    Endpoint paths are resolved relative to the base url; without the
    trailing slash ``.../api/v1`` would resolve ``publisher/upload`` to
    ``.../api/publisher/upload``.
    """
    return url if url.endswith("/") else url + "/"


class Settings(BaseSettings):
    """Publisher settings loaded from environment variables.

    Every field maps to a CENTRAL_-prefixed variable, e.g. CENTRAL_TOKEN,
    CENTRAL_USERNAME, CENTRAL_POLL_INTERVAL_SECONDS. A .env file in the
    working directory is read as well.

    Credentials follow the usual precedence: token, then
    username/password, then whatever the host build supplies.
    """

    model_config = SettingsConfigDict(
        env_prefix="CENTRAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    url: str = DEFAULT_PUBLISHER_URL

    @field_validator("url", mode="before")
    @classmethod
    def normalise_url(cls, v: str) -> str:
        return _normalise_url(v)

    # Credentials — leave blank to fall back to the host credential.
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    @field_validator("token", "username", "password", mode="before")
    @classmethod
    def blank_as_unset(cls, v: Optional[str]) -> Optional[str]:
        # CENTRAL_TOKEN= in a .env file means "not set", not an empty token
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # Deployment
    deployment_name: Optional[str] = None
    publishing_type: PublishingType = PublishingType.USER_MANAGED

    # Seconds between status checks while the service validates a bundle.
    poll_interval_seconds: float = 3.0

    # App
    debug: bool = False

    def to_publisher_config(
        self,
        host_credential: Optional[HostCredential] = None,
    ) -> PublisherConfig:
        return create_publisher_config(
            uri=self.url,
            authentication=build_authentication(
                host_credential=host_credential,
                username=self.username,
                password=self.password,
                token=self.token,
            ),
        )


def get_settings() -> Settings:
    return Settings()
