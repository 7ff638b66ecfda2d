from pydantic_settings import BaseSettings
from pydantic import field_validator, ConfigDict
from functools import lru_cache
from typing import Optional
import json

import boto3

from shared_utils.constants import Defaults, Environment, LogScope, McpMode
from shared_utils.logging_utils import get_scoped_logger

logger = get_scoped_logger(LogScope.CONFIG)


def get_secret_from_aws(secret_name: str, region: str = Defaults.AWS_REGION) -> str:
    """Fetch the tl;dv API key from AWS Secrets Manager.

    Args:
        secret_name: Name of the secret in Secrets Manager
        region: AWS region

    Returns:
        Secret value or empty string if fetch fails
    """
    try:
        client = boto3.client("secretsmanager", region_name=region)
        response = client.get_secret_value(SecretId=secret_name)
        if "SecretString" in response:
            secret = json.loads(response["SecretString"])
            return secret.get("tldv_api_key", "")
        return ""
    except Exception as e:
        logger.warning("secret_fetch_failed", secret_name=secret_name, error=str(e))
        return ""


class Settings(BaseSettings):
    """Application configuration with environment variable precedence.

    Precedence: 1) Environment Variables > 2) .env file > 3) Class defaults
    """
    # Application metadata
    app_name: str = "tl;dv Meeting Matcher"
    app_version: str = "1.0.0"
    app_description: str = "Fetches tl;dv meetings and matches them to ClickUp accounts"
    environment: str = Environment.DEVELOPMENT.value

    # API
    api_host: str = "0.0.0.0"
    api_port: int = Defaults.API_PORT

    # Remote meeting source (tl;dv MCP server)
    mcp_mode: str = McpMode.DOCKER.value  # "docker" or "node"
    tldv_api_key: Optional[str] = None
    tldv_secret_name: Optional[str] = None
    tldv_mcp_path: Optional[str] = None  # required in node mode
    mcp_docker_image: str = Defaults.MCP_DOCKER_IMAGE
    mcp_timeout_seconds: float = Defaults.MCP_TIMEOUT_SECONDS
    aws_region: str = Defaults.AWS_REGION
    meeting_source_fixture_path: Optional[str] = None  # local dev: in-memory source

    # Batch pipeline
    batch_default_limit: int = Defaults.BATCH_LIMIT
    batch_max_workers: int = Defaults.BATCH_MAX_WORKERS
    process_rate_limit: str = Defaults.PROCESS_RATE_LIMIT

    model_config = ConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator('mcp_mode')
    @classmethod
    def validate_mcp_mode(cls, v: str) -> str:
        """Validate the MCP launch mode is supported."""
        valid_modes = {m.value for m in McpMode}
        if v.lower() not in valid_modes:
            raise ValueError(f"mcp_mode must be one of {valid_modes}, got {v}")
        return v.lower()

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is recognized."""
        valid_envs = {e.value for e in Environment}
        if v.lower() not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}, got {v}")
        return v.lower()

    @field_validator('mcp_timeout_seconds')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Every meeting source call needs a finite, positive timeout."""
        if v <= 0:
            raise ValueError(f"mcp_timeout_seconds must be > 0, got {v}")
        return v

    @field_validator('batch_max_workers', 'batch_default_limit')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"value must be >= 1, got {v}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Load and cache application settings.

    If no tl;dv API key is configured but TLDV_SECRET_NAME is provided,
    fetches the key from AWS Secrets Manager.

    Returns:
        Validated Settings instance

    Raises:
        ValueError: If settings are invalid
    """
    settings = Settings()

    if not settings.tldv_api_key and settings.tldv_secret_name:
        secret_key = get_secret_from_aws(settings.tldv_secret_name, settings.aws_region)
        if secret_key:
            settings.tldv_api_key = secret_key
            logger.debug("fetched_tldv_key_from_secrets_manager")

    # Log loaded configuration (API key never logged)
    logger.info(
        "configuration_loaded",
        environment=settings.environment,
        mcp_mode=settings.mcp_mode,
        mcp_timeout_seconds=settings.mcp_timeout_seconds,
        api_key_configured=bool(settings.tldv_api_key),
        batch_max_workers=settings.batch_max_workers,
    )

    return settings
