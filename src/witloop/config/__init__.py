"""Configurações centralizadas do witloop.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única
- Credentials / load_credentials: arquivo de segredos do conector de DMs

Uso típico:
    from witloop.config import get_settings
"""

from witloop.config.credentials import Credentials, load_credentials
from witloop.config.settings import (
    TWITTER_API_BASE_URL,
    WIT_API_BASE_URL,
    WIT_API_VERSION,
    Settings,
    get_settings,
)

__all__ = [
    "Credentials",
    "Settings",
    "TWITTER_API_BASE_URL",
    "WIT_API_BASE_URL",
    "WIT_API_VERSION",
    "get_settings",
    "load_credentials",
]
