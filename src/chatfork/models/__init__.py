"""Model loading and initialization."""

import logging
from dataclasses import dataclass

from chatfork.config import settings
from chatfork.models.llm import LocalLLM

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Models:
    """Container for loaded models."""

    llm: LocalLLM


def load_llm(model_name: str | None = None) -> LocalLLM:
    """Load the chat model."""
    name = model_name or settings.model_name
    logger.debug(f"Loading model {name}")
    return LocalLLM(name=name, token_delay=settings.token_delay)
