"""
Dependency injection container for managing application dependencies.
Centralizes adapter and service creation and lifecycle management.
"""

from typing import Optional

from shared_utils.config_loader import get_settings
from shared_utils.constants import LogScope, McpMode
from shared_utils.error_handler import ConfigurationError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.CONFIG)


class DIContainer:
    """Singleton dependency injection container."""

    _instance: Optional['DIContainer'] = None
    _meeting_source: Optional[object] = None
    _matching_engine: Optional[object] = None
    _processing_service: Optional[object] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def reset(self):
        """Reset container (useful for testing)."""
        self._meeting_source = None
        self._matching_engine = None
        self._processing_service = None

    def validate_configuration(self) -> bool:
        """Check the meeting source can be built from current settings.

        Returns:
            True when the configuration is usable.

        Raises:
            ConfigurationError: If the configured mode is missing a required value.
        """
        settings = get_settings()
        if settings.meeting_source_fixture_path:
            return True

        if settings.mcp_mode == McpMode.NODE.value and not settings.tldv_mcp_path:
            raise ConfigurationError("TLDV_MCP_PATH is required when MCP_MODE=node")

        if not settings.tldv_api_key:
            logger.warning("tldv_api_key_missing", mcp_mode=settings.mcp_mode)

        logger.info("configuration_validated", mcp_mode=settings.mcp_mode)
        return True

    def get_meeting_source(self):
        """Get or create the meeting source adapter (lazy singleton).

        Uses InMemoryMeetingSourceAdapter when MEETING_SOURCE_FIXTURE_PATH is
        set (local dev), and McpMeetingSourceAdapter otherwise.
        """
        if self._meeting_source is None:
            settings = get_settings()
            if settings.meeting_source_fixture_path:
                from adapters.in_memory_meeting_source import InMemoryMeetingSourceAdapter
                self._meeting_source = InMemoryMeetingSourceAdapter.from_json_file(
                    settings.meeting_source_fixture_path
                )
                logger.info("initialized_in_memory_meeting_source")
            else:
                from adapters.mcp_meeting_source import McpMeetingSourceAdapter
                self._meeting_source = McpMeetingSourceAdapter.from_settings(settings)
                logger.info("initialized_mcp_meeting_source", mcp_mode=settings.mcp_mode)
        return self._meeting_source

    def get_matching_engine(self):
        """Get or create the MatchingEngine (lazy singleton)."""
        if self._matching_engine is None:
            from core_intelligence.engine.matcher import MatchingEngine

            self._matching_engine = MatchingEngine()
            logger.info("initialized_matching_engine")
        return self._matching_engine

    def get_processing_service(self):
        """Get or create the ProcessingService (lazy singleton)."""
        if self._processing_service is None:
            from services.processing_service import ProcessingService

            settings = get_settings()
            self._processing_service = ProcessingService(
                meeting_source=self.get_meeting_source(),
                matcher=self.get_matching_engine(),
                max_workers=settings.batch_max_workers,
            )
            logger.info("initialized_processing_service", max_workers=settings.batch_max_workers)
        return self._processing_service


# Global singleton instance
_container = DIContainer()


def get_di_container() -> DIContainer:
    """Get global DI container instance."""
    return _container
