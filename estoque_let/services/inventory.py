"""Camada de acesso a dados do estoque.

Cada método monta a consulta (filtros, joins, ordenação), executa e devolve um
``ApiResponse`` com ``data``, ``error`` e ``count``. Erros de banco são
capturados aqui; os routers só convertem o envelope em resposta HTTP.
"""

import functools
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..models import (
    Alerta,
    Categoria,
    Empresa,
    Estoque,
    Fornecedor,
    Loja,
    MateriaPrima,
    Movimentacao,
    Produto,
    Usuario,
    utc_now,
)
from ..realtime import publish_change
from ..schemas import (
    AlertaCreate,
    AlertaUpdate,
    CategoriaCreate,
    EmpresaCreate,
    EmpresaUpdate,
    EstoqueCreate,
    EstoqueUpdate,
    FornecedorCreate,
    LojaCreate,
    LojaUpdate,
    MateriaPrimaCreate,
    MateriaPrimaUpdate,
    MovimentacaoCreate,
    ProdutoCreate,
    ProdutoUpdate,
    UsuarioCreate,
    UsuarioUpdate,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ERROR = "Erro inesperado. Tente novamente."

DEFAULT_CATEGORIAS = [
    "Eletrônicos",
    "Roupas & Acessórios",
    "Casa & Jardim",
    "Esporte & Lazer",
    "Alimentação",
    "Móveis",
    "Ferramentas",
    "Livros",
    "Outros",
]

UNIDADES = ["un", "kg", "g", "lt", "ml", "m", "cm", "pc", "cx", "pct"]

# Limites usados ao criar registros de estoque automaticamente
ESTOQUE_MINIMO_PADRAO = 2
ESTOQUE_MAXIMO_PADRAO = 100
# Custo estimado a partir do preço de venda na sincronização
FATOR_CUSTO = 0.65


class ErrorCode:
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"
    DATABASE = "database"


@dataclass
class ApiResponse(Generic[T]):
    """Envelope uniforme de resposta da camada de dados."""

    data: Optional[T] = None
    error: Optional[str] = None
    count: Optional[int] = None
    error_code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def fail(cls, error: str, code: str) -> "ApiResponse":
        return cls(data=None, error=error, error_code=code)


def _handle_error(exc: Exception) -> str:
    """Mensagem de erro para o cliente.

    Erros de banco trazem SQL e parâmetros; o detalhe fica só no log.
    """
    if isinstance(exc, SQLAlchemyError):
        return DEFAULT_ERROR
    message = str(exc).strip()
    return message or DEFAULT_ERROR


def guarded(method):
    """Captura erros de banco, faz rollback e devolve envelope de erro."""

    @functools.wraps(method)
    def wrapper(self: "InventoryService", *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Erro em {method.__name__}: {e}")
            return ApiResponse.fail(_handle_error(e), ErrorCode.DATABASE)

    return wrapper


def _apply_order(query, model, order_by: Optional[str], direction: str, allowed: set[str], default: str):
    column_name = order_by if order_by in allowed else default
    column = getattr(model, column_name)
    if order_by not in allowed:
        return query.order_by(column.desc())
    return query.order_by(column.desc() if direction == "desc" else column.asc())


def _ilike_any(term: str, *columns):
    pattern = f"%{term.strip()}%"
    return or_(*[column.ilike(pattern) for column in columns])


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=UTC)


def _day_end(value: date) -> datetime:
    return datetime.combine(value, time.max, tzinfo=UTC)


class InventoryService:
    """Operações de leitura e escrita por entidade."""

    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _commit(self, table: str, event: str, obj) -> None:
        self.db.commit()
        self.db.refresh(obj)
        publish_change(table, event, obj.id)

    def _delete_or_deactivate(self, model, record_id: int, table: str, deactivate) -> ApiResponse[dict]:
        """Exclui o registro; se houver dependentes (FK), desativa."""
        obj = self.db.get(model, record_id)
        if obj is None:
            return ApiResponse.fail("Registro não encontrado", ErrorCode.NOT_FOUND)

        try:
            self.db.execute(delete(model).where(model.id == record_id))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            obj = self.db.get(model, record_id)
            deactivate(obj)
            self._commit(table, "UPDATE", obj)
            logger.info(f"{table} {record_id} possui dependentes: desativado")
            return ApiResponse(data={"id": record_id, "acao": "desativada"})

        publish_change(table, "DELETE", record_id)
        logger.info(f"{table} {record_id} excluído")
        return ApiResponse(data={"id": record_id, "acao": "excluida"})

    # =========================================================================
    # EMPRESAS
    # =========================================================================

    @guarded
    def get_empresas(self, incluir_inativas: bool = False) -> ApiResponse[list[Empresa]]:
        query = self.db.query(Empresa)
        if not incluir_inativas:
            query = query.filter(Empresa.ativo.is_(True))
        data = query.order_by(Empresa.nome.asc()).all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def get_empresa(self, empresa_id: int) -> ApiResponse[Empresa]:
        empresa = self.db.get(Empresa, empresa_id)
        if empresa is None:
            return ApiResponse.fail("Empresa não encontrada", ErrorCode.NOT_FOUND)
        return ApiResponse(data=empresa)

    @guarded
    def create_empresa(self, data: EmpresaCreate) -> ApiResponse[Empresa]:
        empresa = Empresa(**data.model_dump(mode="json"))
        self.db.add(empresa)
        self._commit("empresas", "INSERT", empresa)
        logger.info(f"Empresa criada: {empresa.nome} (id={empresa.id})")
        return ApiResponse(data=empresa)

    @guarded
    def update_empresa(self, empresa_id: int, data: EmpresaUpdate) -> ApiResponse[Empresa]:
        empresa = self.db.get(Empresa, empresa_id)
        if empresa is None:
            return ApiResponse.fail("Empresa não encontrada", ErrorCode.NOT_FOUND)

        for field, value in data.model_dump(exclude_unset=True, mode="json").items():
            setattr(empresa, field, value)
        self._commit("empresas", "UPDATE", empresa)
        return ApiResponse(data=empresa)

    @guarded
    def deactivate_empresa(self, empresa_id: int) -> ApiResponse[Empresa]:
        empresa = self.db.get(Empresa, empresa_id)
        if empresa is None:
            return ApiResponse.fail("Empresa não encontrada", ErrorCode.NOT_FOUND)
        empresa.ativo = False
        self._commit("empresas", "UPDATE", empresa)
        return ApiResponse(data=empresa)

    @guarded
    def delete_empresa(self, empresa_id: int) -> ApiResponse[dict]:
        def deactivate(empresa: Empresa) -> None:
            empresa.ativo = False

        return self._delete_or_deactivate(Empresa, empresa_id, "empresas", deactivate)

    # =========================================================================
    # LOJAS
    # =========================================================================

    @guarded
    def get_lojas(
        self,
        empresa_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        order_by: Optional[str] = None,
        order_direction: str = "desc",
    ) -> ApiResponse[list[Loja]]:
        query = self.db.query(Loja)
        if empresa_id is not None:
            query = query.filter(Loja.empresa_id == empresa_id)
        if status:
            query = query.filter(Loja.status == status)
        if search and search.strip():
            query = query.filter(_ilike_any(search, Loja.nome, Loja.endereco, Loja.codigo))

        query = _apply_order(
            query, Loja, order_by, order_direction, {"nome", "codigo", "status", "created_at"}, "created_at"
        )
        data = query.all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def get_loja(self, loja_id: int) -> ApiResponse[Loja]:
        loja = self.db.get(Loja, loja_id)
        if loja is None:
            return ApiResponse.fail("Loja não encontrada", ErrorCode.NOT_FOUND)
        return ApiResponse(data=loja)

    @guarded
    def create_loja(self, data: LojaCreate) -> ApiResponse[Loja]:
        if data.empresa_id is None:
            return ApiResponse.fail("Selecione uma empresa", ErrorCode.INVALID)
        empresa = self.db.get(Empresa, data.empresa_id)
        if empresa is None or not empresa.ativo:
            return ApiResponse.fail("Empresa não encontrada", ErrorCode.NOT_FOUND)

        loja = Loja(**data.model_dump(mode="json"))
        self.db.add(loja)
        self._commit("lojas", "INSERT", loja)
        logger.info(f"Loja criada: {loja.nome} (empresa={loja.empresa_id})")
        return ApiResponse(data=loja)

    @guarded
    def update_loja(self, loja_id: int, data: LojaUpdate) -> ApiResponse[Loja]:
        loja = self.db.get(Loja, loja_id)
        if loja is None:
            return ApiResponse.fail("Loja não encontrada", ErrorCode.NOT_FOUND)

        for field, value in data.model_dump(exclude_unset=True, mode="json").items():
            setattr(loja, field, value)
        self._commit("lojas", "UPDATE", loja)
        return ApiResponse(data=loja)

    @guarded
    def delete_loja(self, loja_id: int) -> ApiResponse[dict]:
        def deactivate(loja: Loja) -> None:
            loja.status = "inativa"

        return self._delete_or_deactivate(Loja, loja_id, "lojas", deactivate)

    # =========================================================================
    # PRODUTOS
    # =========================================================================

    @guarded
    def get_produtos(
        self,
        empresa_id: Optional[int] = None,
        categoria: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        order_by: Optional[str] = None,
        order_direction: str = "desc",
    ) -> ApiResponse[list[Produto]]:
        query = self.db.query(Produto)
        if empresa_id is not None:
            query = query.filter(Produto.empresa_id == empresa_id)
        if categoria:
            query = query.filter(Produto.categoria == categoria)
        if status:
            query = query.filter(Produto.status == status)
        if search and search.strip():
            query = query.filter(_ilike_any(search, Produto.nome, Produto.codigo, Produto.codigo_barras))

        query = _apply_order(
            query,
            Produto,
            order_by,
            order_direction,
            {"nome", "codigo", "categoria", "preco", "valor_unitario", "created_at"},
            "created_at",
        )
        data = query.all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def get_produto(self, produto_id: int) -> ApiResponse[Produto]:
        produto = self.db.get(Produto, produto_id)
        if produto is None:
            return ApiResponse.fail("Produto não encontrado", ErrorCode.NOT_FOUND)
        return ApiResponse(data=produto)

    @guarded
    def create_produto(self, data: ProdutoCreate) -> ApiResponse[Produto]:
        if data.empresa_id is None:
            return ApiResponse.fail("Selecione uma empresa", ErrorCode.INVALID)
        if self.db.get(Empresa, data.empresa_id) is None:
            return ApiResponse.fail("Empresa não encontrada", ErrorCode.NOT_FOUND)

        produto = Produto(**data.model_dump(mode="json"))
        self.db.add(produto)
        self._commit("produtos", "INSERT", produto)
        logger.info(f"Produto criado: {produto.codigo} - {produto.nome}")
        return ApiResponse(data=produto)

    @guarded
    def update_produto(self, produto_id: int, data: ProdutoUpdate) -> ApiResponse[Produto]:
        produto = self.db.get(Produto, produto_id)
        if produto is None:
            return ApiResponse.fail("Produto não encontrado", ErrorCode.NOT_FOUND)

        for field, value in data.model_dump(exclude_unset=True, mode="json").items():
            setattr(produto, field, value)
        self._commit("produtos", "UPDATE", produto)
        return ApiResponse(data=produto)

    @guarded
    def delete_produto(self, produto_id: int) -> ApiResponse[dict]:
        def deactivate(produto: Produto) -> None:
            produto.status = "inativo"

        return self._delete_or_deactivate(Produto, produto_id, "produtos", deactivate)

    # =========================================================================
    # CATEGORIAS / FORNECEDORES
    # =========================================================================

    @guarded
    def get_categorias(self, empresa_id: Optional[int] = None) -> ApiResponse[list[Categoria]]:
        query = self.db.query(Categoria)
        if empresa_id is not None:
            query = query.filter(or_(Categoria.empresa_id == empresa_id, Categoria.empresa_id.is_(None)))
        data = query.order_by(Categoria.nome.asc()).all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def create_categoria(self, data: CategoriaCreate, empresa_id: Optional[int] = None) -> ApiResponse[Categoria]:
        categoria = Categoria(**data.model_dump(mode="json"), empresa_id=empresa_id)
        self.db.add(categoria)
        self._commit("categorias", "INSERT", categoria)
        return ApiResponse(data=categoria)

    @guarded
    def get_fornecedores(self, empresa_id: Optional[int] = None) -> ApiResponse[list[Fornecedor]]:
        query = self.db.query(Fornecedor)
        if empresa_id is not None:
            query = query.filter(or_(Fornecedor.empresa_id == empresa_id, Fornecedor.empresa_id.is_(None)))
        data = query.order_by(Fornecedor.nome.asc()).all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def create_fornecedor(self, data: FornecedorCreate, empresa_id: Optional[int] = None) -> ApiResponse[Fornecedor]:
        fornecedor = Fornecedor(**data.model_dump(mode="json"), empresa_id=empresa_id)
        self.db.add(fornecedor)
        self._commit("fornecedores", "INSERT", fornecedor)
        return ApiResponse(data=fornecedor)

    # =========================================================================
    # MATÉRIA-PRIMA
    # =========================================================================

    @guarded
    def get_materias_primas(
        self, categoria: Optional[str] = None, search: Optional[str] = None
    ) -> ApiResponse[list[MateriaPrima]]:
        query = self.db.query(MateriaPrima)
        if categoria:
            query = query.filter(MateriaPrima.categoria == categoria)
        if search and search.strip():
            query = query.filter(_ilike_any(search, MateriaPrima.nome, MateriaPrima.descricao))
        data = query.order_by(MateriaPrima.nome.asc()).all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def create_materia_prima(self, data: MateriaPrimaCreate) -> ApiResponse[MateriaPrima]:
        materia = MateriaPrima(**data.model_dump(mode="json"))
        self.db.add(materia)
        self._commit("materia_prima", "INSERT", materia)
        return ApiResponse(data=materia)

    @guarded
    def update_materia_prima(self, materia_id: int, data: MateriaPrimaUpdate) -> ApiResponse[MateriaPrima]:
        materia = self.db.get(MateriaPrima, materia_id)
        if materia is None:
            return ApiResponse.fail("Matéria-prima não encontrada", ErrorCode.NOT_FOUND)

        for field, value in data.model_dump(exclude_unset=True, mode="json").items():
            setattr(materia, field, value)
        self._commit("materia_prima", "UPDATE", materia)
        return ApiResponse(data=materia)

    # =========================================================================
    # ESTOQUE
    # =========================================================================

    def _estoque_query(self):
        return self.db.query(Estoque).options(
            joinedload(Estoque.loja),
            joinedload(Estoque.produto),
            joinedload(Estoque.materia_prima),
        )

    @guarded
    def get_estoque(
        self,
        empresa_id: Optional[int] = None,
        loja_id: Optional[int] = None,
        categoria: Optional[str] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> ApiResponse[list[Estoque]]:
        """Saldos com loja, produto e matéria-prima anexados.

        ``status`` aceita ``abaixo_minimo`` (atual < mínimo) e ``ok``
        (atual >= mínimo); as classes calculadas (crítico, baixo...) são
        filtradas pelo router.
        """
        query = self._estoque_query()
        if empresa_id is not None:
            query = query.join(Loja, Estoque.loja_id == Loja.id).filter(Loja.empresa_id == empresa_id)
        if loja_id is not None:
            query = query.filter(Estoque.loja_id == loja_id)
        if categoria or (search and search.strip()):
            query = query.outerjoin(Produto, Estoque.produto_id == Produto.id)
            if categoria:
                query = query.filter(Produto.categoria == categoria)
            if search and search.strip():
                query = query.filter(_ilike_any(search, Produto.nome, Produto.codigo))
        if status == "abaixo_minimo":
            query = query.filter(Estoque.quantidade_atual < Estoque.quantidade_minima)
        elif status == "ok":
            query = query.filter(Estoque.quantidade_atual >= Estoque.quantidade_minima)

        data = query.order_by(Estoque.updated_at.desc(), Estoque.id.desc()).all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def get_estoque_item(self, estoque_id: int) -> ApiResponse[Estoque]:
        estoque = self._estoque_query().filter(Estoque.id == estoque_id).first()
        if estoque is None:
            return ApiResponse.fail("Registro de estoque não encontrado", ErrorCode.NOT_FOUND)
        return ApiResponse(data=estoque)

    def _find_estoque(
        self, loja_id: int, produto_id: Optional[int], materia_prima_id: Optional[int], lock: bool = False
    ) -> Optional[Estoque]:
        query = self.db.query(Estoque).filter(Estoque.loja_id == loja_id)
        if produto_id is not None:
            query = query.filter(Estoque.produto_id == produto_id)
        else:
            query = query.filter(Estoque.materia_prima_id == materia_prima_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def _new_estoque(self, loja_id: int, produto: Optional[Produto], materia: Optional[MateriaPrima]) -> Estoque:
        if produto is not None:
            valor = round(produto.preco * FATOR_CUSTO, 2) if produto.preco else produto.valor_unitario
        else:
            valor = materia.preco_unitario
        estoque = Estoque(
            loja_id=loja_id,
            produto_id=produto.id if produto is not None else None,
            materia_prima_id=materia.id if materia is not None else None,
            quantidade_atual=0,
            quantidade_minima=ESTOQUE_MINIMO_PADRAO,
            quantidade_maxima=ESTOQUE_MAXIMO_PADRAO,
            valor_unitario=valor,
        )
        self.db.add(estoque)
        return estoque

    @guarded
    def create_estoque(self, data: EstoqueCreate) -> ApiResponse[Estoque]:
        if self.db.get(Loja, data.loja_id) is None:
            return ApiResponse.fail("Loja não encontrada", ErrorCode.NOT_FOUND)
        if data.produto_id is not None and self.db.get(Produto, data.produto_id) is None:
            return ApiResponse.fail("Produto não encontrado", ErrorCode.NOT_FOUND)
        if data.materia_prima_id is not None and self.db.get(MateriaPrima, data.materia_prima_id) is None:
            return ApiResponse.fail("Matéria-prima não encontrada", ErrorCode.NOT_FOUND)
        if self._find_estoque(data.loja_id, data.produto_id, data.materia_prima_id) is not None:
            return ApiResponse.fail("Item já possui estoque nesta loja", ErrorCode.CONFLICT)

        estoque = Estoque(**data.model_dump(mode="json"))
        self.db.add(estoque)
        try:
            self._commit("estoque", "INSERT", estoque)
        except IntegrityError:
            self.db.rollback()
            return ApiResponse.fail("Item já possui estoque nesta loja", ErrorCode.CONFLICT)
        return ApiResponse(data=estoque)

    @guarded
    def update_estoque(self, estoque_id: int, data: EstoqueUpdate) -> ApiResponse[Estoque]:
        estoque = self.db.get(Estoque, estoque_id)
        if estoque is None:
            return ApiResponse.fail("Registro de estoque não encontrado", ErrorCode.NOT_FOUND)

        for field, value in data.model_dump(exclude_unset=True, mode="json").items():
            setattr(estoque, field, value)
        self._commit("estoque", "UPDATE", estoque)
        return ApiResponse(data=estoque)

    @guarded
    def sync_estoque(self, empresa_id: int) -> ApiResponse[int]:
        """Cria registros de estoque zerados para pares loja/produto sem saldo.

        Considera apenas lojas e produtos ativos da empresa. ``data`` é a
        quantidade de registros criados.
        """
        lojas = self.db.query(Loja).filter(Loja.empresa_id == empresa_id, Loja.status == "ativa").all()
        produtos = (
            self.db.query(Produto).filter(Produto.empresa_id == empresa_id, Produto.status == "ativo").all()
        )
        if not lojas or not produtos:
            return ApiResponse(data=0, count=0)

        existentes = {
            (loja_id, produto_id)
            for loja_id, produto_id in self.db.query(Estoque.loja_id, Estoque.produto_id)
            .filter(Estoque.loja_id.in_([loja.id for loja in lojas]), Estoque.produto_id.isnot(None))
            .all()
        }

        criados = 0
        for loja in lojas:
            for produto in produtos:
                if (loja.id, produto.id) in existentes:
                    continue
                self._new_estoque(loja.id, produto, None)
                criados += 1

        if criados:
            self.db.commit()
            publish_change("estoque", "INSERT", None)
            logger.info(f"Sincronização de estoque: {criados} registros criados (empresa={empresa_id})")
        return ApiResponse(data=criados, count=criados)

    # =========================================================================
    # MOVIMENTAÇÕES
    # =========================================================================

    @guarded
    def get_movimentacoes(
        self,
        empresa_id: Optional[int] = None,
        tipo: Optional[str] = None,
        loja_id: Optional[int] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> ApiResponse[list[Movimentacao]]:
        query = self.db.query(Movimentacao).options(
            joinedload(Movimentacao.produto),
            joinedload(Movimentacao.materia_prima),
            joinedload(Movimentacao.loja),
            joinedload(Movimentacao.usuario),
        )
        if empresa_id is not None:
            query = query.join(Loja, Movimentacao.loja_id == Loja.id).filter(Loja.empresa_id == empresa_id)
        if tipo:
            query = query.filter(Movimentacao.tipo == tipo)
        if loja_id is not None:
            query = query.filter(Movimentacao.loja_id == loja_id)
        if data_inicio is not None:
            query = query.filter(Movimentacao.data_hora >= _day_start(data_inicio))
        if data_fim is not None:
            query = query.filter(Movimentacao.data_hora <= _day_end(data_fim))
        if search and search.strip():
            query = query.outerjoin(Produto, Movimentacao.produto_id == Produto.id).filter(
                _ilike_any(search, Produto.nome, Produto.codigo, Movimentacao.motivo)
            )

        query = query.order_by(Movimentacao.data_hora.desc(), Movimentacao.id.desc())
        if limit:
            query = query.limit(limit)
        data = query.all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def create_movimentacao(self, data: MovimentacaoCreate, usuario_id: int) -> ApiResponse[Movimentacao]:
        """Registra a movimentação e ajusta o estoque na mesma transação.

        - entrada: soma (cria o registro de estoque se não existir)
        - saida: subtrai; recusada se o saldo ficaria negativo
        - ajuste: define o saldo absoluto
        - transferencia: subtrai da origem e soma no destino
        """
        loja = self.db.get(Loja, data.loja_id)
        if loja is None:
            return ApiResponse.fail("Loja não encontrada", ErrorCode.NOT_FOUND)

        produto = materia = None
        if data.produto_id is not None:
            produto = self.db.get(Produto, data.produto_id)
            if produto is None:
                return ApiResponse.fail("Produto não encontrado", ErrorCode.NOT_FOUND)
        else:
            materia = self.db.get(MateriaPrima, data.materia_prima_id)
            if materia is None:
                return ApiResponse.fail("Matéria-prima não encontrada", ErrorCode.NOT_FOUND)

        destino = None
        if data.tipo.value == "transferencia":
            if self.db.get(Loja, data.loja_destino_id) is None:
                return ApiResponse.fail("Loja de destino não encontrada", ErrorCode.NOT_FOUND)

        origem = self._find_estoque(data.loja_id, data.produto_id, data.materia_prima_id, lock=True)
        anterior = origem.quantidade_atual if origem is not None else 0
        q = data.quantidade

        if data.tipo.value in ("saida", "transferencia") and anterior - q < 0:
            self.db.rollback()
            return ApiResponse.fail(
                f"Estoque insuficiente: disponível {anterior}, solicitado {q}", ErrorCode.CONFLICT
            )

        if origem is None:
            origem = self._new_estoque(data.loja_id, produto, materia)

        if data.tipo.value == "entrada":
            origem.quantidade_atual = anterior + q
        elif data.tipo.value == "saida":
            origem.quantidade_atual = anterior - q
        elif data.tipo.value == "ajuste":
            origem.quantidade_atual = q
        else:
            origem.quantidade_atual = anterior - q
            destino = self._find_estoque(data.loja_destino_id, data.produto_id, data.materia_prima_id, lock=True)
            if destino is None:
                destino = self._new_estoque(data.loja_destino_id, produto, materia)
            destino.quantidade_atual = (destino.quantidade_atual or 0) + q

        movimentacao = Movimentacao(
            tipo=data.tipo.value,
            loja_id=data.loja_id,
            loja_destino_id=data.loja_destino_id,
            produto_id=data.produto_id,
            materia_prima_id=data.materia_prima_id,
            quantidade=q,
            quantidade_anterior=anterior,
            motivo=data.motivo or data.observacoes or f"Movimentação de {data.tipo.value}",
            observacoes=data.observacoes,
            usuario_id=usuario_id,
            status="concluida",
            data_hora=utc_now(),
        )
        self.db.add(movimentacao)
        self._commit("movimentacoes", "INSERT", movimentacao)
        publish_change("estoque", "UPDATE", origem.id)
        if destino is not None:
            publish_change("estoque", "UPDATE", destino.id)

        logger.info(
            f"Movimentação {movimentacao.tipo} registrada: loja={loja.id} "
            f"quantidade={q} saldo {anterior} -> {origem.quantidade_atual}"
        )

        # A movimentação já está confirmada; falha no alerta não a desfaz
        movimentacao_id = movimentacao.id
        try:
            self._check_low_stock(origem, loja, produto or materia)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Falha ao gerar alerta de estoque baixo (movimentação {movimentacao_id}): {e}")
        return ApiResponse(data=movimentacao)

    def _check_low_stock(self, estoque: Estoque, loja: Loja, item) -> Optional[Alerta]:
        """Gera alerta de estoque baixo, sem duplicar alertas abertos."""
        if estoque.quantidade_atual > estoque.quantidade_minima:
            return None

        aberto = (
            self.db.query(Alerta)
            .filter(Alerta.tipo == "estoque", Alerta.estoque_id == estoque.id, Alerta.status == "novo")
            .first()
        )
        if aberto is not None:
            return None

        prioridade = "critico" if estoque.quantidade_atual <= 0 else "alto"
        alerta = Alerta(
            tipo="estoque",
            prioridade=prioridade,
            titulo=f"Estoque baixo: {item.nome}",
            descricao=(
                f"{loja.nome}: saldo {estoque.quantidade_atual} {item.unidade_medida} "
                f"(mínimo {estoque.quantidade_minima})"
            ),
            loja_id=loja.id,
            estoque_id=estoque.id,
            status="novo",
        )
        self.db.add(alerta)
        self._commit("alertas", "INSERT", alerta)
        logger.warning(f"Alerta de estoque {prioridade}: {item.nome} na loja {loja.nome}")
        return alerta

    # =========================================================================
    # USUÁRIOS
    # =========================================================================

    @guarded
    def get_usuarios(
        self,
        nivel_acesso: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> ApiResponse[list[Usuario]]:
        query = self.db.query(Usuario)
        if nivel_acesso:
            query = query.filter(Usuario.nivel_acesso == nivel_acesso)
        if status:
            query = query.filter(Usuario.status == status)
        if search and search.strip():
            query = query.filter(_ilike_any(search, Usuario.nome, Usuario.email))
        data = query.order_by(Usuario.created_at.desc(), Usuario.id.desc()).all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def create_usuario(self, data: UsuarioCreate) -> ApiResponse[Usuario]:
        email = data.email.strip().lower()
        if self.db.query(Usuario).filter(Usuario.email == email).first() is not None:
            return ApiResponse.fail("Email já cadastrado", ErrorCode.CONFLICT)

        usuario = Usuario(**{**data.model_dump(mode="json"), "email": email})
        self.db.add(usuario)
        self._commit("usuarios", "INSERT", usuario)
        logger.info(f"Usuário criado: {usuario.email} ({usuario.nivel_acesso})")
        return ApiResponse(data=usuario)

    @guarded
    def update_usuario(self, usuario_id: int, data: UsuarioUpdate) -> ApiResponse[Usuario]:
        usuario = self.db.get(Usuario, usuario_id)
        if usuario is None:
            return ApiResponse.fail("Usuário não encontrado", ErrorCode.NOT_FOUND)

        for field, value in data.model_dump(exclude_unset=True, mode="json").items():
            setattr(usuario, field, value)
        self._commit("usuarios", "UPDATE", usuario)
        return ApiResponse(data=usuario)

    # =========================================================================
    # ALERTAS
    # =========================================================================

    @guarded
    def get_alertas(
        self,
        empresa_id: Optional[int] = None,
        tipo: Optional[str] = None,
        prioridade: Optional[str] = None,
        status: Optional[str] = None,
        loja_id: Optional[int] = None,
    ) -> ApiResponse[list[Alerta]]:
        query = self.db.query(Alerta).options(joinedload(Alerta.loja), joinedload(Alerta.usuario))
        if empresa_id is not None:
            query = query.outerjoin(Loja, Alerta.loja_id == Loja.id).filter(
                or_(Loja.empresa_id == empresa_id, Alerta.loja_id.is_(None))
            )
        if tipo:
            query = query.filter(Alerta.tipo == tipo)
        if prioridade:
            query = query.filter(Alerta.prioridade == prioridade)
        if status:
            query = query.filter(Alerta.status == status)
        if loja_id is not None:
            query = query.filter(Alerta.loja_id == loja_id)
        data = query.order_by(Alerta.created_at.desc(), Alerta.id.desc()).all()
        return ApiResponse(data=data, count=len(data))

    @guarded
    def create_alerta(self, data: AlertaCreate) -> ApiResponse[Alerta]:
        if data.loja_id is not None and self.db.get(Loja, data.loja_id) is None:
            return ApiResponse.fail("Loja não encontrada", ErrorCode.NOT_FOUND)

        alerta = Alerta(**data.model_dump(mode="json"))
        self.db.add(alerta)
        self._commit("alertas", "INSERT", alerta)
        return ApiResponse(data=alerta)

    @guarded
    def update_alerta(self, alerta_id: int, data: AlertaUpdate) -> ApiResponse[Alerta]:
        alerta = self.db.get(Alerta, alerta_id)
        if alerta is None:
            return ApiResponse.fail("Alerta não encontrado", ErrorCode.NOT_FOUND)

        for field, value in data.model_dump(exclude_unset=True, mode="json").items():
            setattr(alerta, field, value)
        self._commit("alertas", "UPDATE", alerta)
        return ApiResponse(data=alerta)

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    @guarded
    def get_dashboard_stats(self, empresa_id: Optional[int] = None) -> ApiResponse[dict[str, Any]]:
        """Contagens do dashboard, todas na mesma sessão."""
        lojas_q = self.db.query(Loja)
        produtos_q = self.db.query(func.count(Produto.id))
        movimentacoes_q = self.db.query(func.count(Movimentacao.id))
        baixos_q = self.db.query(func.count(Estoque.id)).filter(
            Estoque.quantidade_atual < Estoque.quantidade_minima
        )

        if empresa_id is not None:
            lojas_q = lojas_q.filter(Loja.empresa_id == empresa_id)
            produtos_q = produtos_q.filter(Produto.empresa_id == empresa_id)
            movimentacoes_q = movimentacoes_q.join(Loja, Movimentacao.loja_id == Loja.id).filter(
                Loja.empresa_id == empresa_id
            )
            baixos_q = baixos_q.join(Loja, Estoque.loja_id == Loja.id).filter(Loja.empresa_id == empresa_id)

        semana = utc_now() - timedelta(days=7)
        stats = {
            "total_lojas": lojas_q.count(),
            "lojas_ativas": lojas_q.filter(Loja.status == "ativa").count(),
            "total_produtos": produtos_q.scalar() or 0,
            "estoques_baixos": baixos_q.scalar() or 0,
            "movimentacoes_semana": movimentacoes_q.filter(Movimentacao.created_at >= semana).scalar() or 0,
        }
        return ApiResponse(data=stats)
