"""Leitura do arquivo de credenciais do conector de mensagens diretas.

Formato: 5 linhas, nesta ordem:
    <consumer key>
    <consumer secret>
    <access token>
    <access token secret>
    <wit.ai server token>

Nunca logar os valores lidos.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from witloop.domain.errors import CredentialsError
from witloop.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

CREDENTIALS_USAGE = """You must specify a credentials path using the --credentials flag!
This must point to a 5-line file with the following format:

<Twitter consumer key>
<Twitter consumer secret>
<Twitter access token>
<Twitter access token secret>
<Wit.ai token>"""


@dataclass(frozen=True)
class Credentials:
    """Segredos do conector (Twitter OAuth 1.0a) e token do NLU."""

    twitter_consumer_key: str
    twitter_consumer_secret: str
    twitter_access_token: str
    twitter_access_token_secret: str
    wit_server_token: str

    def __repr__(self) -> str:
        return "Credentials(***)"


def load_credentials(path: str | Path | None) -> Credentials:
    """Carrega credenciais do arquivo em `path`.

    Raises:
        CredentialsError: path vazio, arquivo ilegível ou com menos de 5 linhas
    """
    if not path:
        raise CredentialsError(CREDENTIALS_USAGE)

    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise CredentialsError(f"Unable to read credentials file: {exc}") from exc

    lines = [line.strip() for line in content.split("\n")]
    if len(lines) < 5:
        raise CredentialsError("Credentials file did not have enough lines!")

    logger.debug("Credenciais carregadas", extra={"path": str(path)})
    return Credentials(
        twitter_consumer_key=lines[0],
        twitter_consumer_secret=lines[1],
        twitter_access_token=lines[2],
        twitter_access_token_secret=lines[3],
        wit_server_token=lines[4],
    )
