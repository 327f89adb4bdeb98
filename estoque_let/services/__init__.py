"""Serviços de domínio (acesso a dados, autenticação, relatórios)."""
