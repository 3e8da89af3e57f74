"""Application configuration settings.

Values are read from environment variables via ``pydantic-settings``.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration values loaded from environment variables."""

    app_title: str = Field(default="Studio Booking Service", alias="ROOMBOOK_APP_TITLE")
    log_level: str = Field(
        default="INFO",
        alias="ROOMBOOK_LOG_LEVEL",
        description="Level name for the root logger, e.g. DEBUG or WARNING.",
    )
    seed_demo_data: bool = Field(
        default=False,
        alias="ROOMBOOK_SEED_DEMO_DATA",
        description="Preload a handful of demo rooms at startup.",
    )
    require_known_room: bool = Field(
        default=False,
        alias="ROOMBOOK_REQUIRE_KNOWN_ROOM",
        description=(
            "Reject bookings for rooms that are not in the room repository. "
            "Conflict checks always treat an unknown room as having no override."
        ),
    )

    class Config:
        extra = "ignore"


settings = Settings()
