from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic.networks import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

from rt_connector.config.env_aliases import get_flat_env_settings_source
from rt_connector.host import RTCredentials


class _BaseSection(BaseModel):
    model_config = {"extra": "forbid"}


class RTSettings(_BaseSection):
    base_url: AnyHttpUrl
    api_token: SecretStr
    timeout_seconds: float = Field(default=30.0, gt=0)
    verify_tls: bool = True
    # Log every request/response (redacted, truncated) at INFO.
    debug_http: bool = False


class ObservabilitySettings(_BaseSection):
    log_level: str = "INFO"
    log_format: str | None = None  # json|human (overrides LOG_FORMAT/env when set)
    json_logs: bool = False

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized in {"json", "human"}:
            return normalized
        raise ValueError("observability.log_format must be 'json' or 'human'")


class TransportHardeningSettings(_BaseSection):
    # If true, allow httpx to read HTTP_PROXY/HTTPS_PROXY/NO_PROXY and other env settings.
    trust_env: bool = False
    # Allow plaintext HTTP for the RT instance URL. Strongly discouraged.
    allow_insecure_http: bool = False
    # Allow disabling TLS verification (self-signed RT instances).
    allow_insecure_tls: bool = False
    # Allow RT instances on loopback / link-local addresses.
    allow_local_upstreams: bool = False


class HardeningSettings(_BaseSection):
    transport: TransportHardeningSettings = Field(default_factory=TransportHardeningSettings)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        extra="forbid",
    )

    rt: RTSettings
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    hardening: HardeningSettings = Field(default_factory=HardeningSettings)

    def credentials(self) -> RTCredentials:
        return RTCredentials(
            rt_instance_url=str(self.rt.base_url),
            api_token=self.rt.api_token,
            allow_unauthorized_certs=not self.rt.verify_tls,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Settings:
        """
        Construct Settings from a mapping without reading environment variables.

        Useful in tests where we want to pass nested dicts.
        """
        class _InitOnlySettings(Settings):
            @classmethod
            def settings_customise_sources(
                cls,
                settings_cls,
                init_settings,
                env_settings,
                dotenv_settings,
                file_secret_settings,
            ):
                return (init_settings,)

        return _InitOnlySettings(**dict(data))

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # .env is loaded into os.environ by load_settings, so flat RT_* names resolve
        # through the alias source instead of reaching the model as extras.
        return (
            env_settings,
            get_flat_env_settings_source,
            init_settings,
            file_secret_settings,
        )
