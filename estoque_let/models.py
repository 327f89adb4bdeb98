"""Models SQLAlchemy para o GRUPO LET - Estoque."""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def utc_now() -> datetime:
    """Retorna datetime atual em UTC."""
    return datetime.now(UTC)


# =============================================================================
# AUTENTICAÇÃO
# =============================================================================


class AuthUser(Base):
    """Identidade de login (email/senha). O perfil fica em ``usuarios``."""

    __tablename__ = "auth_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")
    preferencias = relationship(
        "PreferenciaUsuario", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class AuthSession(Base):
    """Sessões de login (tokens de refresh)."""

    __tablename__ = "auth_sessions"

    id = Column(Integer, primary_key=True, index=True)
    auth_user_id = Column(Integer, ForeignKey("auth_users.id", ondelete="CASCADE"), nullable=False, index=True)
    refresh_token_hash = Column(String(255), nullable=False, unique=True)
    device_info = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    last_used_at = Column(DateTime(timezone=True), default=utc_now)

    user = relationship("AuthUser", back_populates="sessions")

    __table_args__ = (
        Index("ix_auth_sessions_user_active", "auth_user_id", "is_active"),
    )


class PreferenciaUsuario(Base):
    """Estado persistido por usuário: empresa selecionada e preferências de UI."""

    __tablename__ = "preferencias_usuario"

    auth_user_id = Column(Integer, ForeignKey("auth_users.id", ondelete="CASCADE"), primary_key=True)
    empresa_selecionada_id = Column(Integer, ForeignKey("empresas.id", ondelete="SET NULL"), nullable=True)
    loja_atual_id = Column(Integer, ForeignKey("lojas.id", ondelete="SET NULL"), nullable=True)
    sidebar_collapsed = Column(Boolean, default=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    user = relationship("AuthUser", back_populates="preferencias")
    empresa_selecionada = relationship("Empresa")


# =============================================================================
# EMPRESAS E LOJAS
# =============================================================================


class Empresa(Base):
    """Empresa (tenant raiz)."""

    __tablename__ = "empresas"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False, index=True)
    cnpj = Column(String(20), nullable=True)
    endereco = Column(String(255), nullable=True)
    telefone = Column(String(20), nullable=True)
    ativo = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    lojas = relationship("Loja", back_populates="empresa")


class Loja(Base):
    """Loja de uma empresa."""

    __tablename__ = "lojas"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    codigo = Column(String(50), nullable=False)
    endereco = Column(String(255), nullable=False, default="")
    telefone = Column(String(20), nullable=True)
    status = Column(String(20), default="ativa", nullable=False)  # ativa, inativa
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    empresa = relationship("Empresa", back_populates="lojas")

    __table_args__ = (
        Index("ix_lojas_empresa_status", "empresa_id", "status"),
    )


# =============================================================================
# CATÁLOGO
# =============================================================================


class Categoria(Base):
    __tablename__ = "categorias"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(120), nullable=False)
    descricao = Column(String(255), nullable=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class Fornecedor(Base):
    __tablename__ = "fornecedores"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    cnpj = Column(String(20), nullable=True)
    contato = Column(String(120), nullable=True)
    telefone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    endereco = Column(String(255), nullable=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class Produto(Base):
    """Produto vendido pelas lojas de uma empresa."""

    __tablename__ = "produtos"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False, index=True)
    codigo = Column(String(60), nullable=False, index=True)  # SKU
    categoria = Column(String(120), nullable=False, default="Outros")
    categoria_id = Column(Integer, ForeignKey("categorias.id", ondelete="SET NULL"), nullable=True)
    fornecedor_id = Column(Integer, ForeignKey("fornecedores.id", ondelete="SET NULL"), nullable=True)
    descricao = Column(Text, nullable=True)
    unidade_medida = Column(String(10), nullable=False, default="un")
    valor_unitario = Column(Float, nullable=False, default=0.0)  # custo
    preco = Column(Float, nullable=False, default=0.0)  # venda
    codigo_barras = Column(String(32), nullable=True)
    foto_url = Column(String(500), nullable=True)
    status = Column(String(20), default="ativo", nullable=False)  # ativo, inativo
    empresa_id = Column(Integer, ForeignKey("empresas.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    empresa = relationship("Empresa")
    fornecedor = relationship("Fornecedor")

    __table_args__ = (
        Index("ix_produtos_empresa_categoria", "empresa_id", "categoria"),
    )


class MateriaPrima(Base):
    __tablename__ = "materia_prima"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    categoria = Column(String(120), nullable=False, default="Outros")
    unidade_medida = Column(String(10), nullable=False, default="un")
    preco_unitario = Column(Float, nullable=False, default=0.0)
    descricao = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


# =============================================================================
# ESTOQUE E MOVIMENTAÇÕES
# =============================================================================


class Estoque(Base):
    """Saldo de um produto (ou matéria-prima) em uma loja."""

    __tablename__ = "estoque"

    id = Column(Integer, primary_key=True, index=True)
    loja_id = Column(Integer, ForeignKey("lojas.id", ondelete="RESTRICT"), nullable=False, index=True)
    produto_id = Column(Integer, ForeignKey("produtos.id", ondelete="RESTRICT"), nullable=True, index=True)
    materia_prima_id = Column(Integer, ForeignKey("materia_prima.id", ondelete="RESTRICT"), nullable=True)
    quantidade_atual = Column(Integer, nullable=False, default=0)
    quantidade_minima = Column(Integer, nullable=False, default=0)
    quantidade_maxima = Column(Integer, nullable=False, default=0)
    valor_unitario = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    loja = relationship("Loja")
    produto = relationship("Produto")
    materia_prima = relationship("MateriaPrima")

    __table_args__ = (
        UniqueConstraint("loja_id", "produto_id", name="uq_estoque_loja_produto"),
        UniqueConstraint("loja_id", "materia_prima_id", name="uq_estoque_loja_materia_prima"),
    )


class Movimentacao(Base):
    """Lançamento do livro de movimentações (somente inclusão)."""

    __tablename__ = "movimentacoes"

    id = Column(Integer, primary_key=True, index=True)
    loja_id = Column(Integer, ForeignKey("lojas.id", ondelete="RESTRICT"), nullable=False, index=True)
    loja_destino_id = Column(Integer, ForeignKey("lojas.id", ondelete="RESTRICT"), nullable=True)
    produto_id = Column(Integer, ForeignKey("produtos.id", ondelete="RESTRICT"), nullable=True, index=True)
    materia_prima_id = Column(Integer, ForeignKey("materia_prima.id", ondelete="RESTRICT"), nullable=True)
    tipo = Column(String(20), nullable=False, index=True)  # entrada, saida, ajuste, transferencia
    quantidade = Column(Integer, nullable=False)
    quantidade_anterior = Column(Integer, nullable=False, default=0)
    motivo = Column(String(255), nullable=False)
    observacoes = Column(Text, nullable=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="concluida")
    data_hora = Column(DateTime(timezone=True), default=utc_now, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)

    loja = relationship("Loja", foreign_keys=[loja_id])
    loja_destino = relationship("Loja", foreign_keys=[loja_destino_id])
    produto = relationship("Produto")
    materia_prima = relationship("MateriaPrima")
    usuario = relationship("Usuario")

    __table_args__ = (
        Index("ix_movimentacoes_loja_data", "loja_id", "data_hora"),
    )


# =============================================================================
# USUÁRIOS E ALERTAS
# =============================================================================


class Usuario(Base):
    """Perfil de usuário do sistema (ligado à identidade pelo email)."""

    __tablename__ = "usuarios"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    telefone = Column(String(20), nullable=True)
    cargo = Column(String(120), nullable=False, default="Funcionário")
    nivel_acesso = Column(String(30), nullable=False, default="funcionario")
    lojas_associadas = Column(JSON, nullable=True)  # lista de ids de lojas
    status = Column(String(20), nullable=False, default="ativo")  # ativo, inativo
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class Alerta(Base):
    __tablename__ = "alertas"

    id = Column(Integer, primary_key=True, index=True)
    tipo = Column(String(20), nullable=False, index=True)  # estoque, vencimento, transferencia, sistema
    prioridade = Column(String(20), nullable=False, default="medio")
    titulo = Column(String(255), nullable=False)
    descricao = Column(Text, nullable=False, default="")
    loja_id = Column(Integer, ForeignKey("lojas.id", ondelete="SET NULL"), nullable=True, index=True)
    estoque_id = Column(Integer, ForeignKey("estoque.id", ondelete="SET NULL"), nullable=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default="novo")  # novo, lido, resolvido
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    loja = relationship("Loja")
    usuario = relationship("Usuario")
