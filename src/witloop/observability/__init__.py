"""Observabilidade: logging estruturado e contexto por sessão."""
