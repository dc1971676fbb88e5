"""
TimeLedger Configuration

Environment-based configuration with fail-fast validation.
"""
from typing import Optional
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./timeledger.db"

    # Debug mode (verbose low-level logging)
    debug: bool = False

    # Follow-through mode (structured step-by-step execution tracing)
    follow_through: bool = False

    # Reports over large ranges are cut off after this many seconds
    report_timeout_seconds: float = 30.0

    # Operator-maintained rename table used by reconciliation and read-repair
    rename_mapping_path: Optional[Path] = None

    # Extra attempts after a (user, date) uniqueness collision
    write_conflict_retries: int = 1

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @field_validator("report_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Reject non-positive report timeouts."""
        if v <= 0:
            raise ValueError("REPORT_TIMEOUT_SECONDS must be greater than zero")
        return v

    @field_validator("write_conflict_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("WRITE_CONFLICT_RETRIES cannot be negative")
        return v

    @field_validator("rename_mapping_path", mode="before")
    @classmethod
    def blank_path_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def validate_rename_mapping(self) -> None:
        """Validate that the configured rename mapping file exists."""
        if self.rename_mapping_path is not None and not self.rename_mapping_path.is_file():
            raise ValueError(
                f"RENAME_MAPPING_PATH points to a missing file: {self.rename_mapping_path}. "
                "Unset it or create the mapping file."
            )


# Global settings instance
settings = Settings()
