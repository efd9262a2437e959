"""
AI Client Manager

This module manages separate Azure OpenAI client instances for the three completion
modes (interviewer, candidate, feedback) so that a long feedback generation never
queues behind interviewer turns on the same connection pool.

Provider settings are read from the environment on first use. Missing settings are
reported as a ConfigurationError at call time instead of failing at import.
"""

import os
import threading
from dataclasses import dataclass
from typing import Dict, Optional
from openai import AsyncAzureOpenAI
from dotenv import load_dotenv
from loguru import logger
from interview_service.errors.exceptions import ConfigurationError

# Ensure .env is loaded
load_dotenv()

DEFAULT_API_VERSION = "2024-02-15-preview"
SERVICE_TYPES = ("interviewer", "candidate", "feedback")


@dataclass(frozen=True)
class ProviderSettings:
    endpoint: str
    api_key: str
    deployment_name: str
    api_version: str = DEFAULT_API_VERSION
    organization: Optional[str] = None
    timeout: float = 60.0

    @classmethod
    def from_env(cls) -> "ProviderSettings":
        """
        Build settings from AZURE_OPENAI_* environment variables.

        Raises:
            ConfigurationError: If the endpoint, key or deployment name is missing.
        """
        required = {
            "AZURE_OPENAI_ENDPOINT": os.getenv("AZURE_OPENAI_ENDPOINT"),
            "AZURE_OPENAI_API_KEY": os.getenv("AZURE_OPENAI_API_KEY"),
            "AZURE_OPENAI_DEPLOYMENT_NAME": os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME"),
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(missing)

        return cls(
            endpoint=required["AZURE_OPENAI_ENDPOINT"],
            api_key=required["AZURE_OPENAI_API_KEY"],
            deployment_name=required["AZURE_OPENAI_DEPLOYMENT_NAME"],
            api_version=os.getenv("AZURE_OPENAI_API_VERSION", DEFAULT_API_VERSION),
            organization=os.getenv("AZURE_OPENAI_ORGANIZATION") or None,
            timeout=float(os.getenv("AZURE_OPENAI_TIMEOUT", "60")),
        )


def provider_configured() -> bool:
    try:
        ProviderSettings.from_env()
    except ConfigurationError:
        return False
    return True


class AIClientManager:
    """
    Manages dedicated AI client instances for the completion modes.

    Clients are created lazily on first access. Provider-level retries are disabled:
    a failed generation is reported to the caller, who decides what to do.
    """

    _instance: Optional['AIClientManager'] = None
    _lock = threading.Lock()

    def __init__(self, settings: Optional[ProviderSettings] = None):
        self._settings = settings
        self._clients: Dict[str, AsyncAzureOpenAI] = {}

    @classmethod
    def get_instance(cls) -> 'AIClientManager':
        """Thread-safe singleton instance getter."""
        if cls._instance is None:
            with cls._lock:
                # Double-check locking pattern
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        with cls._lock:
            cls._instance = None

    @property
    def settings(self) -> ProviderSettings:
        if self._settings is None:
            self._settings = ProviderSettings.from_env()
        return self._settings

    def _create_client(self) -> AsyncAzureOpenAI:
        settings = self.settings
        return AsyncAzureOpenAI(
            azure_endpoint=settings.endpoint,
            api_key=settings.api_key,
            api_version=settings.api_version,
            organization=settings.organization,
            timeout=settings.timeout,
            max_retries=0,
        )

    def get_client(self, service_type: str) -> AsyncAzureOpenAI:
        """
        Get a dedicated client for the specified completion mode.

        Args:
            service_type (str): One of "interviewer", "candidate", "feedback"

        Returns:
            AsyncAzureOpenAI: Dedicated client instance for the mode

        Raises:
            ValueError: If service_type is not supported
            ConfigurationError: If provider settings are missing
        """
        if service_type not in SERVICE_TYPES:
            raise ValueError(f"Unsupported service type: {service_type}. Available: {list(SERVICE_TYPES)}")

        if service_type not in self._clients:
            with self._lock:
                if service_type not in self._clients:
                    self._clients[service_type] = self._create_client()
                    logger.info(f"Initialized dedicated AI client for {service_type} completions")

        return self._clients[service_type]

    @property
    def deployment_name(self) -> str:
        return self.settings.deployment_name


def get_ai_client_manager() -> AIClientManager:
    """Get the singleton AIClientManager instance."""
    return AIClientManager.get_instance()
