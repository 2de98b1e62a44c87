"""Configuration settings for aliasfs."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``ALIASFS_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ALIASFS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./aliasfs.db"
    database_echo: bool = False

    # Blob storage: local directory or any PyFilesystem2 URL
    storage_root: str = "./storage"
    storage_mount: str = "local"
    storage_base_uri: str = ""

    # Sharding of generated paths: `depth` folders of `width` characters
    storage_depth: int = 2
    storage_width: int = 2
    storage_dmode: int = 0o755

    # Must be available in hashlib
    hash_algorithm: str = "md5"


settings = Settings()
