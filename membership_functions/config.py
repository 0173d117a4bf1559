from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings for the membership functions"""

    # Application settings
    service_name: str = "membership-functions"
    log_level: str = "INFO"
    environment: str = "dev"

    # Firebase settings
    firebase_secret: Optional[str] = None  # falls back to Application Default Credentials
    firebase_project_id: Optional[str] = None

    # Firestore collections
    notifications_collection: str = "notifications"
    users_collection: str = "users"
    members_collection: str = "members"

    # Push message settings
    default_notification_type: str = "general"
    click_action: str = "FLUTTER_NOTIFICATION_CLICK"
    android_priority: str = "high"
    android_channel_id: str = "high_importance_channel"
    apns_badge: int = 1
    apns_sound: str = "default"

    # Membership sweep settings
    sweep_timezone: str = "America/Costa_Rica"
    sweep_cron: str = "0 0 * * *"  # once a day
    sweep_lease_enabled: bool = True
    sweep_lease_collection: str = "locks"
    sweep_lease_document: str = "membership_sweep"
    sweep_lease_seconds: int = 540  # Cloud Functions default timeout

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


# Create settings instance
settings = Settings()
