"""Configuration management using Pydantic Settings.

The service itself only ever sees a plain SQSServiceConfiguration record.
SQSServiceSettings is the loader that builds one from environment variables
or a .env file.
NO try-catch blocks - let Pydantic raise ValidationError on bad input.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Valid Prometheus metric name start, or empty
METRIC_PREFIX_PATTERN = r"^([a-zA-Z_:][a-zA-Z0-9_:]*)?$"

# Region used when the configuration does not name one
DEFAULT_REGION = "sa-east-1"


class SQSServiceConfiguration(BaseModel):
    """Configuration record applied to an SQSService."""

    model_config = ConfigDict(frozen=True)

    queue_url: str = Field(default="", description="URL of the queue the service operates on")
    region: str = Field(default="", description="AWS region, falls back to DEFAULT_REGION")
    endpoint: str = Field(default="", description="Endpoint override (e.g. a local SQS emulator)")
    access_key: str = Field(default="", description="AWS access key id")
    secret: str = Field(default="", description="AWS secret access key")
    metric_prefix: str = Field(
        default="", pattern=METRIC_PREFIX_PATTERN, description="Prefix prepended to every exported metric name"
    )


class SQSServiceSettings(BaseSettings):
    """Loads the service configuration from SQS_* environment variables or .env file."""

    queue_url: str = Field(default="", description="Queue URL")
    region: str = Field(default="", description="AWS region")
    endpoint: str = Field(default="", description="Endpoint override")
    access_key: str = Field(default="", description="AWS access key id")
    secret: str = Field(default="", description="AWS secret access key")
    metric_prefix: str = Field(default="", pattern=METRIC_PREFIX_PATTERN, description="Metric name prefix")

    model_config = SettingsConfigDict(
        env_prefix="SQS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def to_configuration(self) -> SQSServiceConfiguration:
        return SQSServiceConfiguration(**self.model_dump())


def load_configuration(env_file: str | None = ".env") -> SQSServiceConfiguration:
    """
    Load the service configuration from the environment.

    Args:
        env_file: Optional .env file to read besides the process environment

    Returns:
        SQSServiceConfiguration built from SQS_* variables

    Raises:
        ValidationError: If a variable has an invalid value
    """
    return SQSServiceSettings(_env_file=env_file).to_configuration()
