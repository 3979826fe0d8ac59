"""Application settings via pydantic-settings."""

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "local-echo"
DEFAULT_TANGENT_KEY = "t"


class Settings(BaseSettings):
    """Chatfork configuration, overridable via CHATFORK_ env vars or .env file."""

    model_config = SettingsConfigDict(env_prefix="CHATFORK_", env_file=".env")

    model_name: str = DEFAULT_MODEL
    system_prompt: str = "You are a helpful assistant"
    max_tokens: int = 512
    enable_tangent_mode: bool = False
    enable_checkpoint: bool = False
    tangent_mode_key: str = DEFAULT_TANGENT_KEY
    show_metrics: bool = False
    token_delay: float = 0.02
    log_level: str = "WARNING"
    log_file: str = "chatfork.log"


settings = Settings()


class Feature(Enum):
    """Experimental features that can be switched on at runtime."""

    TANGENT_MODE = "tangent"
    CHECKPOINT = "checkpoint"

    def __str__(self) -> str:
        return self.value


FEATURE_DESCRIPTIONS: dict[Feature, str] = {
    Feature.TANGENT_MODE: "Fork side conversations with /tangent",
    Feature.CHECKPOINT: "Snapshot the conversation with checkpoints",
}


class FeatureFlags:
    """In-memory feature switches seeded from settings."""

    def __init__(self, config: Settings | None = None) -> None:
        config = config or settings
        self._enabled: dict[Feature, bool] = {
            Feature.TANGENT_MODE: config.enable_tangent_mode,
            Feature.CHECKPOINT: config.enable_checkpoint,
        }

    def is_enabled(self, feature: Feature) -> bool:
        return self._enabled.get(feature, False)

    def set_enabled(self, feature: Feature, enabled: bool) -> None:
        self._enabled[feature] = enabled

    def toggle(self, feature: Feature) -> bool:
        """Flip a feature and return its new value."""
        enabled = not self.is_enabled(feature)
        self._enabled[feature] = enabled
        return enabled

    @staticmethod
    def lookup(name: str) -> Feature | None:
        """Resolve a feature from its command-line name."""
        name = name.strip().lower()
        for feature in Feature:
            if feature.value == name:
                return feature
        return None


def tangent_key_char(config: Settings | None = None) -> str:
    """Return the configured tangent shortcut character.

    Falls back to ``t`` when the setting is empty or longer than one character.
    """
    key = (config or settings).tangent_mode_key
    if len(key) != 1:
        return DEFAULT_TANGENT_KEY
    return key.lower()
