"""Fontes de entrada e conectores externos."""
