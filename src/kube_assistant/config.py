"""Process configuration read from the environment (and an optional ``.env`` file)."""

import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .core.exceptions import ConfigurationError
from .core.logger import get_logger

logger = get_logger(__name__)

_LOG_LEVELS = {"debug", "info", "warn", "warning", "error"}


class Settings(BaseModel):
    """Validated settings for the bot process."""

    model_config = ConfigDict(frozen=True)

    slack_bot_token: str = Field(alias="SLACK_BOT_TOKEN")
    slack_app_token: str = Field(alias="SLACK_APP_TOKEN")
    slack_signing_secret: Optional[str] = Field(default=None, alias="SLACK_SIGNING_SECRET")

    openai_api_key: str = Field(alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")
    llm_max_retries: int = Field(default=2, ge=0, alias="LLM_MAX_RETRIES")

    kube_namespace: str = Field(default="services-prod", alias="KUBE_NAMESPACE")
    fallback_namespaces: List[str] = Field(
        default_factory=lambda: ["services-prod", "services-preprod", "argocd"], alias="FALLBACK_NAMESPACES"
    )

    log_level: str = Field(default="info", alias="LOG_LEVEL")

    @field_validator("slack_bot_token")
    @classmethod
    def _bot_token_prefix(cls, value: str) -> str:
        if not value.startswith("xoxb-"):
            raise ValueError("must start with 'xoxb-'")
        return value

    @field_validator("slack_app_token")
    @classmethod
    def _app_token_prefix(cls, value: str) -> str:
        if not value.startswith("xapp-"):
            raise ValueError("must start with 'xapp-'")
        return value

    @field_validator("openai_api_key")
    @classmethod
    def _api_key_prefix(cls, value: str) -> str:
        if not value.startswith("sk-"):
            raise ValueError("must start with 'sk-'")
        return value

    @field_validator("fallback_namespaces", mode="before")
    @classmethod
    def _split_namespaces(cls, value):
        if isinstance(value, str):
            return [ns.strip() for ns in value.split(",") if ns.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.lower()
        if level not in _LOG_LEVELS:
            raise ValueError(f"must be one of {sorted(_LOG_LEVELS)}")
        return "warning" if level == "warn" else level

    @property
    def prompt_namespaces(self) -> List[str]:
        """Namespaces named in the system prompt, the default one first."""
        return [self.kube_namespace] + [ns for ns in self.fallback_namespaces if ns != self.kube_namespace]


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build ``Settings`` from the environment.

    When ``environ`` is None, a ``.env`` file in the working directory is
    loaded first (without overriding variables that are already set).

    Raises:
        ConfigurationError: If required keys are missing or invalid.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    # Empty values count as unset so defaults apply.
    values = {key: value for key, value in environ.items() if value != ""}
    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
        logger.error(f"Invalid configuration: {problems}")
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc
