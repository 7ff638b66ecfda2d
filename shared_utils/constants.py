"""
Constants management.
Centralized configuration for all magic values, tool names, and defaults.
"""

from enum import Enum
from typing import Final, FrozenSet


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class McpMode(str, Enum):
    """How the tl;dv MCP server process is launched."""
    DOCKER = "docker"
    NODE = "node"


# MCP tool names exposed by the tl;dv server
class McpTools:
    """Tool identifiers passed in ``tools/call`` requests."""
    LIST_MEETINGS: Final[str] = "list_meetings"
    GET_METADATA: Final[str] = "get_meeting_metadata"
    GET_TRANSCRIPT: Final[str] = "get_transcript"
    GET_HIGHLIGHTS: Final[str] = "get_highlights"


# Default values
class Defaults:
    """Service defaults."""
    API_PORT: Final[int] = 3010
    MCP_DOCKER_IMAGE: Final[str] = "tldv-mcp-server"
    MCP_TIMEOUT_SECONDS: Final[float] = 60.0
    MCP_PROTOCOL_VERSION: Final[str] = "2024-11-05"
    BATCH_LIMIT: Final[int] = 100
    BATCH_MAX_WORKERS: Final[int] = 1
    PROCESS_RATE_LIMIT: Final[str] = "10/minute"
    AWS_REGION: Final[str] = "eu-west-2"
    SERVICE_NAME: Final[str] = "tldv-mcp-wrapper"


# Matching engine calibration
class MatchingConfig:
    """Thresholds and confidences for the matching cascade."""
    MIN_TOKEN_LENGTH: Final[int] = 3  # tokens of length <= 2 are dropped
    MIN_ACCOUNT_NAME_LENGTH: Final[int] = 3
    MIN_INVERSE_TITLE_LENGTH: Final[int] = 5
    EMAIL_CONFIDENCE: Final[float] = 1.0
    EXACT_SUBSTRING_CONFIDENCE: Final[float] = 1.0
    INVERSE_SUBSTRING_CONFIDENCE: Final[float] = 0.95
    WORD_OVERLAP_MIN_SCORE: Final[float] = 0.5
    WORD_OVERLAP_BASE: Final[float] = 0.65
    WORD_OVERLAP_SPAN: Final[float] = 0.25


# Venue / lodging / meeting-type noise removed before word comparison
STOP_WORDS: Final[FrozenSet[str]] = frozenset({
    "hotel", "pousada", "beach", "praia", "resort", "flat",
    "apart", "residence", "inn", "hostel", "eco", "park",
    "reprotel", "&", "confirmad", "alinhamento", "call",
    "kick", "off", "apresentacao", "resultados", "cs",
})


# Logging scopes
class LogScope:
    """Standardized logging scope names."""
    CONFIG = "config_loader"
    API = "api"
    VALIDATION = "validation"
    ERROR_HANDLER = "error_handler"
    NORMALIZER = "text_normalizer"
    MATCHING = "matching_engine"
    PIPELINE = "batch_pipeline"
    WORKER = "worker"
    ADAPTER = "adapter"


# API endpoints and paths
class APIEndpoints:
    """API route definitions."""
    HEALTH = "/health"
    MEETINGS_LIST = "/api/meetings/list"
    MEETINGS_METADATA = "/api/meetings/metadata"
    MEETINGS_TRANSCRIPT = "/api/meetings/transcript"
    MEETINGS_HIGHLIGHTS = "/api/meetings/highlights"
    MEETINGS_PROCESS = "/api/meetings/process"


# Error codes
class ErrorCode(str, Enum):
    """Standardized error codes for consistency."""
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_INPUT = "INVALID_INPUT"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    MEETING_SOURCE_ERROR = "MEETING_SOURCE_ERROR"
    MAPPING_FAILED = "MAPPING_FAILED"
    BATCH_FAILED = "BATCH_FAILED"
