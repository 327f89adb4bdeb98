"""Schemas Pydantic para validação e serialização."""

import re
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from .services.stock_status import StatusEstoque, classify, progress

T = TypeVar("T")


# === Enums ===


class NivelAcesso(str, Enum):
    """Níveis de acesso, do maior para o menor."""

    ADMIN_GERAL = "admin_geral"
    ADMIN_LOJA = "admin_loja"
    GERENTE = "gerente"
    FUNCIONARIO = "funcionario"


class StatusLoja(str, Enum):
    ATIVA = "ativa"
    INATIVA = "inativa"


class StatusCadastro(str, Enum):
    """Status de produtos e usuários."""

    ATIVO = "ativo"
    INATIVO = "inativo"


class TipoMovimentacao(str, Enum):
    ENTRADA = "entrada"
    SAIDA = "saida"
    AJUSTE = "ajuste"
    TRANSFERENCIA = "transferencia"


class TipoAlerta(str, Enum):
    ESTOQUE = "estoque"
    VENCIMENTO = "vencimento"
    TRANSFERENCIA = "transferencia"
    SISTEMA = "sistema"


class PrioridadeAlerta(str, Enum):
    CRITICO = "critico"
    ALTO = "alto"
    MEDIO = "medio"
    BAIXO = "baixo"


class StatusAlerta(str, Enum):
    NOVO = "novo"
    LIDO = "lido"
    RESOLVIDO = "resolvido"


# Vocabulários antigos ainda gravados por versões anteriores do front-end
NIVEL_ACESSO_LEGADO = {
    "admin_empresa": "admin_loja",
    "gerente_loja": "gerente",
    "operador": "funcionario",
    "consulta": "funcionario",
}
PRIORIDADE_LEGADA = {"alta": "alto", "media": "medio", "baixa": "baixo"}
STATUS_ALERTA_LEGADO = {"ativo": "novo", "inativo": "resolvido"}


def normalize_nivel_acesso(value):
    if isinstance(value, str):
        return NIVEL_ACESSO_LEGADO.get(value, value)
    return value


def normalize_prioridade(value):
    if isinstance(value, str):
        return PRIORIDADE_LEGADA.get(value, value)
    return value


def normalize_status_alerta(value):
    if isinstance(value, str):
        return STATUS_ALERTA_LEGADO.get(value, value)
    return value


# === Validators ===


CNPJ_PATTERN = re.compile(r"^\d{14}$")


def clean_cnpj(value: str | None) -> str | None:
    """Remove formatação do CNPJ; string vazia vira None."""
    if value is None:
        return None
    digits = re.sub(r"\D", "", value)
    if not digits:
        return None
    if not CNPJ_PATTERN.match(digits):
        raise ValueError("CNPJ deve ter 14 dígitos")
    return digits


def strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def not_null(value):
    """Campos obrigatórios: em updates podem ser omitidos, mas não enviados como null."""
    if value is None:
        raise ValueError("Campo obrigatório não pode ser nulo")
    return value


def required_text(value: str | None) -> str:
    value = not_null(value).strip()
    if not value:
        raise ValueError("Campo obrigatório não pode ficar em branco")
    return value


# === Listagem ===


class ListResponse(BaseModel, Generic[T]):
    """Response padrão de listagem com paginação."""

    items: list[T]
    total: int
    page: int
    page_size: int
    pages: int


class DeleteResponse(BaseModel):
    """Resultado de uma exclusão: removida ou apenas desativada."""

    id: int
    acao: str  # excluida, desativada
    message: str


# === Empresa Schemas ===


class EmpresaBase(BaseModel):
    nome: str = Field(..., min_length=1, max_length=255)
    cnpj: str | None = Field(None, max_length=20)
    endereco: str | None = Field(None, max_length=255)
    telefone: str | None = Field(None, max_length=20)
    ativo: bool = True

    @field_validator("nome")
    @classmethod
    def validate_nome(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Nome da empresa é obrigatório")
        return v

    @field_validator("cnpj")
    @classmethod
    def validate_cnpj(cls, v: str | None) -> str | None:
        return clean_cnpj(v)

    @field_validator("endereco", "telefone")
    @classmethod
    def validate_optional_text(cls, v: str | None) -> str | None:
        return strip_or_none(v)


class EmpresaCreate(EmpresaBase):
    pass


class EmpresaUpdate(BaseModel):
    nome: str | None = Field(None, min_length=1, max_length=255)
    cnpj: str | None = Field(None, max_length=20)
    endereco: str | None = Field(None, max_length=255)
    telefone: str | None = Field(None, max_length=20)
    ativo: bool | None = None

    @field_validator("nome")
    @classmethod
    def validate_nome(cls, v: str | None) -> str:
        return required_text(v)

    @field_validator("ativo")
    @classmethod
    def validate_ativo(cls, v):
        return not_null(v)

    @field_validator("cnpj")
    @classmethod
    def validate_cnpj(cls, v: str | None) -> str | None:
        return clean_cnpj(v)


class EmpresaOut(EmpresaBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


# === Loja Schemas ===


class LojaBase(BaseModel):
    nome: str = Field(..., min_length=1, max_length=255)
    codigo: str = Field(..., min_length=1, max_length=50)
    endereco: str = Field(default="", max_length=255)
    telefone: str | None = Field(None, max_length=20)
    status: StatusLoja = StatusLoja.ATIVA


class LojaCreate(LojaBase):
    empresa_id: int | None = Field(None, description="Padrão: empresa selecionada")


class LojaUpdate(BaseModel):
    nome: str | None = Field(None, min_length=1, max_length=255)
    codigo: str | None = Field(None, min_length=1, max_length=50)
    endereco: str | None = Field(None, max_length=255)
    telefone: str | None = Field(None, max_length=20)
    status: StatusLoja | None = None

    @field_validator("nome", "codigo")
    @classmethod
    def validate_required_text(cls, v: str | None) -> str:
        return required_text(v)

    @field_validator("endereco", "status")
    @classmethod
    def validate_not_null(cls, v):
        return not_null(v)


class LojaOut(LojaBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    empresa_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LojaResumo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: str
    codigo: str | None = None


# === Categoria / Fornecedor ===


class CategoriaCreate(BaseModel):
    nome: str = Field(..., min_length=1, max_length=120)
    descricao: str | None = Field(None, max_length=255)


class CategoriaOut(CategoriaCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    empresa_id: int | None = None
    created_at: datetime | None = None


class FornecedorCreate(BaseModel):
    nome: str = Field(..., min_length=1, max_length=255)
    cnpj: str | None = Field(None, max_length=20)
    contato: str | None = Field(None, max_length=120)
    telefone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    endereco: str | None = Field(None, max_length=255)

    @field_validator("cnpj")
    @classmethod
    def validate_cnpj(cls, v: str | None) -> str | None:
        return clean_cnpj(v)


class FornecedorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: str
    cnpj: str | None = None
    contato: str | None = None
    telefone: str | None = None
    email: str | None = None
    endereco: str | None = None
    empresa_id: int | None = None
    created_at: datetime | None = None


# === Produto Schemas ===


class ProdutoBase(BaseModel):
    nome: str = Field(..., min_length=1, max_length=255)
    codigo: str = Field(..., min_length=1, max_length=60, description="Código SKU")
    categoria: str = Field(..., min_length=1, max_length=120)
    categoria_id: int | None = None
    fornecedor_id: int | None = None
    descricao: str | None = None
    unidade_medida: str = Field(default="un", min_length=1, max_length=10)
    valor_unitario: float = Field(default=0.0, ge=0, description="Preço de custo")
    preco: float = Field(default=0.0, ge=0, description="Preço de venda")
    codigo_barras: str | None = Field(None, max_length=32)
    foto_url: str | None = Field(None, max_length=500)
    status: StatusCadastro = StatusCadastro.ATIVO


class ProdutoCreate(ProdutoBase):
    empresa_id: int | None = Field(None, description="Padrão: empresa selecionada")


class ProdutoUpdate(BaseModel):
    nome: str | None = Field(None, min_length=1, max_length=255)
    codigo: str | None = Field(None, min_length=1, max_length=60)
    categoria: str | None = Field(None, min_length=1, max_length=120)
    categoria_id: int | None = None
    fornecedor_id: int | None = None
    descricao: str | None = None
    unidade_medida: str | None = Field(None, min_length=1, max_length=10)
    valor_unitario: float | None = Field(None, ge=0)
    preco: float | None = Field(None, ge=0)
    codigo_barras: str | None = Field(None, max_length=32)
    foto_url: str | None = Field(None, max_length=500)
    status: StatusCadastro | None = None

    @field_validator("nome", "codigo", "categoria", "unidade_medida")
    @classmethod
    def validate_required_text(cls, v: str | None) -> str:
        return required_text(v)

    @field_validator("valor_unitario", "preco", "status")
    @classmethod
    def validate_not_null(cls, v):
        return not_null(v)


class ProdutoOut(ProdutoBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    empresa_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ItemResumo(BaseModel):
    """Produto ou matéria-prima anexado em joins."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: str
    codigo: str | None = None
    categoria: str | None = None


# === Matéria-prima ===


class MateriaPrimaCreate(BaseModel):
    nome: str = Field(..., min_length=1, max_length=255)
    categoria: str = Field(..., min_length=1, max_length=120)
    unidade_medida: str = Field(default="un", min_length=1, max_length=10)
    preco_unitario: float = Field(default=0.0, ge=0)
    descricao: str | None = None


class MateriaPrimaUpdate(BaseModel):
    nome: str | None = Field(None, min_length=1, max_length=255)
    categoria: str | None = Field(None, min_length=1, max_length=120)
    unidade_medida: str | None = Field(None, min_length=1, max_length=10)
    preco_unitario: float | None = Field(None, ge=0)
    descricao: str | None = None

    @field_validator("nome", "categoria", "unidade_medida")
    @classmethod
    def validate_required_text(cls, v: str | None) -> str:
        return required_text(v)

    @field_validator("preco_unitario")
    @classmethod
    def validate_not_null(cls, v):
        return not_null(v)


class MateriaPrimaOut(MateriaPrimaCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


# === Estoque Schemas ===


class EstoqueCreate(BaseModel):
    loja_id: int
    produto_id: int | None = None
    materia_prima_id: int | None = None
    quantidade_atual: int = Field(default=0, ge=0)
    quantidade_minima: int = Field(default=0, ge=0)
    quantidade_maxima: int = Field(default=0, ge=0)
    valor_unitario: float | None = Field(None, ge=0)

    @model_validator(mode="after")
    def validate_item(self) -> "EstoqueCreate":
        """Exatamente um entre produto e matéria-prima."""
        if (self.produto_id is None) == (self.materia_prima_id is None):
            raise ValueError("Informe produto_id ou materia_prima_id (apenas um)")
        return self


class EstoqueUpdate(BaseModel):
    quantidade_atual: int | None = Field(None, ge=0)
    quantidade_minima: int | None = Field(None, ge=0)
    quantidade_maxima: int | None = Field(None, ge=0)
    valor_unitario: float | None = Field(None, ge=0)

    @field_validator("quantidade_atual", "quantidade_minima", "quantidade_maxima")
    @classmethod
    def validate_not_null(cls, v):
        return not_null(v)


class EstoqueOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    loja_id: int
    produto_id: int | None = None
    materia_prima_id: int | None = None
    quantidade_atual: int
    quantidade_minima: int
    quantidade_maxima: int
    valor_unitario: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    loja: LojaResumo | None = None
    produto: ItemResumo | None = None
    materia_prima: ItemResumo | None = None

    @computed_field
    @property
    def status(self) -> StatusEstoque:
        return classify(self.quantidade_atual, self.quantidade_minima, self.quantidade_maxima)

    @computed_field
    @property
    def progresso(self) -> float:
        return progress(self.quantidade_atual, self.quantidade_minima, self.quantidade_maxima)


class EstoqueResumo(BaseModel):
    """Contagem de registros por status."""

    total: int
    critico: int
    baixo: int
    normal: int
    alto: int
    com_alerta: int


class EstoqueListResponse(ListResponse[EstoqueOut]):
    resumo: EstoqueResumo
    categorias: list[str]


# === Movimentação Schemas ===


class MovimentacaoCreate(BaseModel):
    tipo: TipoMovimentacao
    loja_id: int
    loja_destino_id: int | None = None
    produto_id: int | None = None
    materia_prima_id: int | None = None
    quantidade: int = Field(..., gt=0, description="Quantidade deve ser maior que zero")
    motivo: str | None = Field(None, max_length=255)
    observacoes: str | None = None

    @model_validator(mode="after")
    def validate_movimentacao(self) -> "MovimentacaoCreate":
        if (self.produto_id is None) == (self.materia_prima_id is None):
            raise ValueError("Selecione um produto ou uma matéria-prima")
        if self.tipo == TipoMovimentacao.TRANSFERENCIA:
            if self.loja_destino_id is None:
                raise ValueError("Transferência exige loja_destino_id")
            if self.loja_destino_id == self.loja_id:
                raise ValueError("Loja de destino deve ser diferente da origem")
        return self


class UsuarioResumo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: str
    email: str | None = None


class MovimentacaoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tipo: TipoMovimentacao
    loja_id: int
    loja_destino_id: int | None = None
    produto_id: int | None = None
    materia_prima_id: int | None = None
    quantidade: int
    quantidade_anterior: int
    motivo: str
    observacoes: str | None = None
    usuario_id: int
    status: str
    data_hora: datetime | None = None
    created_at: datetime | None = None
    loja: LojaResumo | None = None
    produto: ItemResumo | None = None
    materia_prima: ItemResumo | None = None
    usuario: UsuarioResumo | None = None


# === Usuário Schemas ===


class UsuarioBase(BaseModel):
    nome: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    telefone: str | None = Field(None, max_length=20)
    cargo: str = Field(default="Funcionário", max_length=120)
    nivel_acesso: NivelAcesso = NivelAcesso.FUNCIONARIO
    lojas_associadas: list[int] | None = None
    status: StatusCadastro = StatusCadastro.ATIVO

    @field_validator("nivel_acesso", mode="before")
    @classmethod
    def validate_nivel(cls, v):
        return normalize_nivel_acesso(v)


class UsuarioCreate(UsuarioBase):
    pass


class UsuarioUpdate(BaseModel):
    nome: str | None = Field(None, min_length=2, max_length=255)
    telefone: str | None = Field(None, max_length=20)
    cargo: str | None = Field(None, max_length=120)
    nivel_acesso: NivelAcesso | None = None
    lojas_associadas: list[int] | None = None
    status: StatusCadastro | None = None

    @field_validator("nivel_acesso", mode="before")
    @classmethod
    def validate_nivel(cls, v):
        return normalize_nivel_acesso(v)

    @field_validator("nome", "cargo")
    @classmethod
    def validate_required_text(cls, v: str | None) -> str:
        return required_text(v)

    @field_validator("nivel_acesso", "status")
    @classmethod
    def validate_not_null(cls, v):
        return not_null(v)


class UsuarioOut(UsuarioBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PerfilOut(UsuarioOut):
    """Perfil do usuário autenticado."""

    id: int | None = None
    placeholder: bool = False
    permissions: list[str] = []


# === Alerta Schemas ===


class AlertaCreate(BaseModel):
    tipo: TipoAlerta
    prioridade: PrioridadeAlerta = PrioridadeAlerta.MEDIO
    titulo: str = Field(..., min_length=1, max_length=255)
    descricao: str = Field(default="")
    loja_id: int | None = None
    usuario_id: int | None = None
    status: StatusAlerta = StatusAlerta.NOVO

    @field_validator("prioridade", mode="before")
    @classmethod
    def validate_prioridade(cls, v):
        return normalize_prioridade(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return normalize_status_alerta(v)


class AlertaUpdate(BaseModel):
    prioridade: PrioridadeAlerta | None = None
    titulo: str | None = Field(None, min_length=1, max_length=255)
    descricao: str | None = None
    status: StatusAlerta | None = None

    @field_validator("prioridade", mode="before")
    @classmethod
    def validate_prioridade(cls, v):
        return normalize_prioridade(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return normalize_status_alerta(v)

    @field_validator("prioridade", "descricao", "status")
    @classmethod
    def validate_not_null(cls, v):
        return not_null(v)

    @field_validator("titulo")
    @classmethod
    def validate_titulo(cls, v: str | None) -> str:
        return required_text(v)


class AlertaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tipo: TipoAlerta
    prioridade: PrioridadeAlerta
    titulo: str
    descricao: str
    loja_id: int | None = None
    usuario_id: int | None = None
    status: StatusAlerta
    created_at: datetime | None = None
    updated_at: datetime | None = None
    loja: LojaResumo | None = None
    usuario: UsuarioResumo | None = None

    @field_validator("prioridade", mode="before")
    @classmethod
    def validate_prioridade(cls, v):
        return normalize_prioridade(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return normalize_status_alerta(v)


# === Health Check ===


class HealthResponse(BaseModel):
    """Response do health check."""

    status: str
    db: bool
    redis: bool
    version: str = "1.0.0"
