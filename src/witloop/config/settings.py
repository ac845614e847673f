"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars.
Nunca hardcode tokens ou credenciais.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from witloop import __version__

# -----------------------------------------------------------------------------
# Constantes da API Wit.ai (versão fixada do endpoint /converse)
# -----------------------------------------------------------------------------
WIT_API_VERSION: str = "20160412"
WIT_API_BASE_URL: str = "https://api.wit.ai"
TWITTER_API_BASE_URL: str = "https://api.twitter.com"


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Aplicação
    service_name: str = "witloop"
    version: str = __version__
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    # NLU (Wit.ai)
    wit_access_token: str | None = None  # Server access token
    wit_api_base_url: str = WIT_API_BASE_URL
    wit_api_version: str = WIT_API_VERSION  # Parâmetro `v` de cada request
    wit_request_timeout_seconds: int = 30
    wit_user_agent: str = f"witloop/{__version__}"

    # Motor de conversação
    converse_max_turns: int | None = 50  # None = sem limite de turnos

    # Conector de mensagens diretas (Twitter)
    twitter_api_base_url: str = TWITTER_API_BASE_URL
    twitter_request_timeout_seconds: int = 30
    twitter_poll_interval_seconds: float = 60.0  # Intervalo fixo de polling
    twitter_fetch_count: int = 100  # Máximo de mensagens por poll
    twitter_outgoing_queue_size: int = 10  # Buffer da fila de envio
    rate_limit_min_wait_seconds: float = 10.0  # Piso da espera em rate limit
    rate_limit_max_wait_seconds: float | None = None  # Teto opcional

    @property
    def wit_api_endpoint(self) -> str:
        """Retorna a URL base da API Wit.ai sem barra final."""
        return self.wit_api_base_url.rstrip("/")

    def validate_nlu_config(self) -> list[str]:
        """Valida configuração do cliente NLU.

        Retorna lista de erros (vazia = OK).
        """
        errors: list[str] = []
        if not self.wit_api_base_url.startswith(("http://", "https://")):
            errors.append("WIT_API_BASE_URL deve começar com http:// ou https://")
        if self.is_production and self.wit_api_base_url.startswith("http://"):
            errors.append("WIT_API_BASE_URL deve usar https em produção")
        if self.wit_request_timeout_seconds <= 0:
            errors.append("WIT_REQUEST_TIMEOUT_SECONDS deve ser > 0")
        return errors

    def validate_engine_config(self) -> list[str]:
        """Valida o limite de turnos do motor."""
        errors: list[str] = []
        if self.converse_max_turns is not None and self.converse_max_turns < 1:
            errors.append("CONVERSE_MAX_TURNS deve ser >= 1")
        return errors

    def validate_connector_config(self) -> list[str]:
        """Valida polling, fila de envio e janela de rate limit."""
        errors: list[str] = []
        if self.twitter_poll_interval_seconds <= 0:
            errors.append("TWITTER_POLL_INTERVAL_SECONDS deve ser > 0")
        if not 1 <= self.twitter_fetch_count <= 200:
            errors.append("TWITTER_FETCH_COUNT deve estar entre 1 e 200")
        if self.twitter_outgoing_queue_size < 1:
            errors.append("TWITTER_OUTGOING_QUEUE_SIZE deve ser >= 1")
        if self.rate_limit_min_wait_seconds < 0:
            errors.append("RATE_LIMIT_MIN_WAIT_SECONDS não pode ser negativo")
        if (
            self.rate_limit_max_wait_seconds is not None
            and self.rate_limit_max_wait_seconds < self.rate_limit_min_wait_seconds
        ):
            errors.append("RATE_LIMIT_MAX_WAIT_SECONDS deve ser >= RATE_LIMIT_MIN_WAIT_SECONDS")
        return errors

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    Testes chamam `get_settings.cache_clear()` após alterar o ambiente.
    """
    return Settings()
