"""Aplicações de exemplo (handlers) sobre o motor."""
