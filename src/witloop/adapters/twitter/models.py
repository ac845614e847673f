"""Modelos de fio da API de mensagens diretas (v1.1)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TwitterUser(BaseModel):
    """Remetente/destinatário de uma mensagem direta."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    screen_name: str = ""
    following: bool = False


class DirectMessage(BaseModel):
    """Mensagem direta recebida."""

    model_config = ConfigDict(extra="ignore")

    id: int
    text: str = ""
    sender: TwitterUser
    recipient: TwitterUser | None = None
    created_at: str | None = None


class DirectMessageRequest(BaseModel):
    """Pedido de envio enfileirado para o loop de escrita."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    text: str
