"""Configuration management for the scoresheet reconciliation pipeline."""

from pydantic_settings import BaseSettings

STANDARD_START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Reconciliation
    max_edit_distance: int = 2
    starting_fen: str = STANDARD_START_FEN

    # Extraction
    token_min_length: int = 2
    token_max_length: int = 10
    row_bucket_precision: int = 1000  # geometric row key = round(top * precision)

    # Processing
    max_workers: int = 4

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "SCORESHEET_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
