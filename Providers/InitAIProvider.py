#initAiProvider.py
import os
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Dict
from dataclasses import dataclass

from Providers.AIProvider import AIProvider
from Providers.OpenAIProvider import OpenAIProvider
from Providers.AnthropicProvider import AnthropicProvider
from Providers.GroqProvider import GroqProvider
from Providers.GeminiProvider import GeminiProvider

from config import PROVIDER_HTTP_TIMEOUT, provider_path as config_path, provider_name as config_name

logger = logging.getLogger(__name__)


class ProviderType(Enum):
    """Enumeration of available AI providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    GROQ = "groq"


ENV_VAR_MAP = {
    ProviderType.OPENAI: "OPENAI_API_KEY",
    ProviderType.ANTHROPIC: "ANTHROPIC_API_KEY",
    ProviderType.GEMINI: "GEMINI_API_KEY",
    ProviderType.GROQ: "GROQ_API_KEY",
}


@dataclass
class ProviderConfig:
    """Configuration for AI provider."""
    provider_type: ProviderType
    api_key: str
    model_name: Optional[str] = None
    timeout: int = PROVIDER_HTTP_TIMEOUT


class AIProviderManager:
    """Manages AI provider instances and configuration."""

    _PROVIDER_CLASSES = {
        ProviderType.OPENAI: OpenAIProvider,
        ProviderType.ANTHROPIC: AnthropicProvider,
        ProviderType.GEMINI: GeminiProvider,
        ProviderType.GROQ: GroqProvider,
    }

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else Path(config_path) / config_name
        self._providers: Dict[ProviderType, AIProvider] = {}
        self._default_provider: Optional[AIProvider] = None

    def create_provider(self, config: ProviderConfig) -> AIProvider:
        """
        Create an AI provider instance based on configuration.

        Args:
            config: Provider configuration

        Returns:
            AI provider instance

        Raises:
            ValueError: If the API key is missing or the provider type is not supported
        """
        if not config.api_key:
            raise ValueError(f"API key is required for {config.provider_type.value}")

        if config.provider_type not in self._PROVIDER_CLASSES:
            raise ValueError(f"Unsupported provider type: {config.provider_type.value}")

        provider_class = self._PROVIDER_CLASSES[config.provider_type]
        provider = provider_class(config.api_key, model_name=config.model_name, timeout=config.timeout)
        self._providers[config.provider_type] = provider
        logger.info(f"Initialized {config.provider_type.value} provider ({provider.model_name})")
        return provider

    def set_default_provider(self, provider_type: ProviderType) -> None:
        """Set the default provider."""
        if provider_type not in self._providers:
            raise ValueError(f"Provider {provider_type.value} not initialized")
        self._default_provider = self._providers[provider_type]
        logger.info(f"Set default provider to {provider_type.value}")

    def get_default_provider(self) -> Optional[AIProvider]:
        return self._default_provider

    @classmethod
    def from_environment(cls, provider_type: ProviderType) -> 'AIProviderManager':
        """
        Create provider manager with configuration from environment variables.

        Raises:
            ValueError: if the provider's API key variable is not set
        """
        api_key = os.getenv(ENV_VAR_MAP[provider_type])
        if not api_key:
            raise ValueError(f"Environment variable {ENV_VAR_MAP[provider_type]} not found")

        manager = cls()
        manager.create_provider(ProviderConfig(provider_type=provider_type, api_key=api_key))
        manager.set_default_provider(provider_type)
        return manager

    @classmethod
    def detect_from_environment(cls) -> Optional['AIProviderManager']:
        """First provider whose API key is present in the environment, or None."""
        for provider_type, env_var in ENV_VAR_MAP.items():
            if os.getenv(env_var):
                return cls.from_environment(provider_type)
        return None

    def save_provider(self, config: ProviderConfig) -> None:
        """Store selection so it survives restarts."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(
            json.dumps({
                "provider": config.provider_type.name,
                "api_key": config.api_key,
                "model": config.model_name,
                "timeout": config.timeout
            }),
            encoding="utf-8"
        )
        logger.info(f"Saved {config.provider_type.value} provider selection to {self.config_file}")

    def load_provider(self) -> Optional[ProviderConfig]:
        """
        Read the saved provider selection.
        Returns None if nothing was saved or the file is unusable.
        """
        if not self.config_file.exists():
            return None
        try:
            cfg = json.loads(self.config_file.read_text(encoding="utf-8"))
            return ProviderConfig(
                provider_type=ProviderType[cfg["provider"]],
                api_key=cfg["api_key"],
                model_name=cfg.get("model"),
                timeout=int(cfg.get("timeout", PROVIDER_HTTP_TIMEOUT)),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable provider config {self.config_file}: {e}")
            return None

    def restore(self) -> Optional[AIProvider]:
        """Re-create the last saved provider and make it the default."""
        config = self.load_provider()
        if config is None or not config.api_key:
            return None
        provider = self.create_provider(config)
        self.set_default_provider(config.provider_type)
        return provider
