"""Modelos, erros e contratos de domínio."""
