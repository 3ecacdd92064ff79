"""
Coffee Shop Sales Analytics
Centralized Configuration Management

Pydantic settings with environment variable support. Engine code never reads
these globally: the loader and report catalog receive their section of the
configuration explicitly.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatasetSettings(BaseSettings):
    """Sales dataset source configuration"""

    model_config = SettingsConfigDict(env_prefix="DATASET_")

    source_path: Optional[str] = Field(
        default="./data/sales_enriched.csv",
        description="CSV or Parquet export of the enriched sales lines",
    )
    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL; when set the raw table is read from the database",
    )
    schema_name: Optional[str] = Field(default="coffee", description="Database schema of the raw table")
    table_name: str = Field(default="sales_enriched_raw", description="Raw landing table")
    delimiter: str = Field(default=",", description="CSV delimiter")
    encoding: str = Field(default="utf8", description="CSV encoding")
    date_format: str = Field(default="%d-%m-%Y", description="Format of the order_date column")
    validate_quality: bool = Field(default=True, description="Run quality checks after typing")

    @property
    def is_database(self) -> bool:
        """Whether the snapshot comes from a database table"""
        return bool(self.database_url)

    @property
    def source_name(self) -> str:
        """Human readable name of the configured source"""
        if self.is_database:
            if self.schema_name:
                return f"{self.schema_name}.{self.table_name}"
            return self.table_name
        return str(self.source_path)


class ReportSettings(BaseSettings):
    """Report catalog configuration"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    output_dir: str = Field(default="./reports", description="Directory for exported reports")
    output_format: str = Field(default="csv", description="Export format: csv or parquet")
    decimals: int = Field(default=2, ge=0, description="Rounding applied at presentation time")
    core_profit_threshold_pct: float = Field(
        default=80.0,
        gt=0,
        le=100,
        description="Cumulative profit share that bounds the core profit drivers",
    )
    low_margin_threshold_pct: float = Field(
        default=80.0,
        description="Items below this margin are flagged as a profitability risk",
    )
    top_items_limit: int = Field(default=15, gt=0, description="Rows in the top items report")

    @field_validator("output_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate export format"""
        allowed = ["csv", "parquet"]
        if v.lower() not in allowed:
            raise ValueError(f"Output format must be one of: {allowed}")
        return v.lower()

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for the API server and the command line.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="coffee-analytics", description="Application name")
    app_env: str = Field(default="development", description="Environment")
    debug: bool = Field(default=False, description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    dataset: DatasetSettings = Field(default_factory=DatasetSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
