"""GRUPO LET - Estoque: API de gestão de estoque multi-empresa."""

__version__ = "1.0.0"
