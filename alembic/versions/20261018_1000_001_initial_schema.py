"""Initial schema - empresas, lojas, catálogo, estoque, movimentações

Revision ID: 001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # === Autenticação ===
    op.create_table(
        'auth_users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_sign_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_auth_users_id', 'auth_users', ['id'], unique=False)
    op.create_index('ix_auth_users_email', 'auth_users', ['email'], unique=True)

    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('auth_user_id', sa.Integer(), nullable=False),
        sa.Column('refresh_token_hash', sa.String(255), nullable=False),
        sa.Column('device_info', sa.String(255), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['auth_user_id'], ['auth_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('refresh_token_hash')
    )
    op.create_index('ix_auth_sessions_id', 'auth_sessions', ['id'], unique=False)
    op.create_index('ix_auth_sessions_auth_user_id', 'auth_sessions', ['auth_user_id'], unique=False)
    op.create_index('ix_auth_sessions_user_active', 'auth_sessions', ['auth_user_id', 'is_active'], unique=False)

    # === Empresas e lojas ===
    op.create_table(
        'empresas',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('cnpj', sa.String(20), nullable=True),
        sa.Column('endereco', sa.String(255), nullable=True),
        sa.Column('telefone', sa.String(20), nullable=True),
        sa.Column('ativo', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_empresas_id', 'empresas', ['id'], unique=False)
    op.create_index('ix_empresas_nome', 'empresas', ['nome'], unique=False)

    op.create_table(
        'lojas',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('codigo', sa.String(50), nullable=False),
        sa.Column('endereco', sa.String(255), nullable=False, server_default=''),
        sa.Column('telefone', sa.String(20), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='ativa'),
        sa.Column('empresa_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_lojas_id', 'lojas', ['id'], unique=False)
    op.create_index('ix_lojas_empresa_id', 'lojas', ['empresa_id'], unique=False)
    op.create_index('ix_lojas_empresa_status', 'lojas', ['empresa_id', 'status'], unique=False)

    op.create_table(
        'preferencias_usuario',
        sa.Column('auth_user_id', sa.Integer(), nullable=False),
        sa.Column('empresa_selecionada_id', sa.Integer(), nullable=True),
        sa.Column('loja_atual_id', sa.Integer(), nullable=True),
        sa.Column('sidebar_collapsed', sa.Boolean(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['auth_user_id'], ['auth_users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['empresa_selecionada_id'], ['empresas.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['loja_atual_id'], ['lojas.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('auth_user_id')
    )

    # === Catálogo ===
    op.create_table(
        'categorias',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nome', sa.String(120), nullable=False),
        sa.Column('descricao', sa.String(255), nullable=True),
        sa.Column('empresa_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_categorias_id', 'categorias', ['id'], unique=False)
    op.create_index('ix_categorias_empresa_id', 'categorias', ['empresa_id'], unique=False)

    op.create_table(
        'fornecedores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('cnpj', sa.String(20), nullable=True),
        sa.Column('contato', sa.String(120), nullable=True),
        sa.Column('telefone', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('endereco', sa.String(255), nullable=True),
        sa.Column('empresa_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_fornecedores_id', 'fornecedores', ['id'], unique=False)
    op.create_index('ix_fornecedores_empresa_id', 'fornecedores', ['empresa_id'], unique=False)

    op.create_table(
        'produtos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('codigo', sa.String(60), nullable=False),
        sa.Column('categoria', sa.String(120), nullable=False, server_default='Outros'),
        sa.Column('categoria_id', sa.Integer(), nullable=True),
        sa.Column('fornecedor_id', sa.Integer(), nullable=True),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('unidade_medida', sa.String(10), nullable=False, server_default='un'),
        sa.Column('valor_unitario', sa.Float(), nullable=False, server_default='0'),
        sa.Column('preco', sa.Float(), nullable=False, server_default='0'),
        sa.Column('codigo_barras', sa.String(32), nullable=True),
        sa.Column('foto_url', sa.String(500), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='ativo'),
        sa.Column('empresa_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['categoria_id'], ['categorias.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['fornecedor_id'], ['fornecedores.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_produtos_id', 'produtos', ['id'], unique=False)
    op.create_index('ix_produtos_nome', 'produtos', ['nome'], unique=False)
    op.create_index('ix_produtos_codigo', 'produtos', ['codigo'], unique=False)
    op.create_index('ix_produtos_empresa_id', 'produtos', ['empresa_id'], unique=False)
    op.create_index('ix_produtos_empresa_categoria', 'produtos', ['empresa_id', 'categoria'], unique=False)

    op.create_table(
        'materia_prima',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('categoria', sa.String(120), nullable=False, server_default='Outros'),
        sa.Column('unidade_medida', sa.String(10), nullable=False, server_default='un'),
        sa.Column('preco_unitario', sa.Float(), nullable=False, server_default='0'),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_materia_prima_id', 'materia_prima', ['id'], unique=False)

    # === Usuários ===
    op.create_table(
        'usuarios',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('telefone', sa.String(20), nullable=True),
        sa.Column('cargo', sa.String(120), nullable=False, server_default='Funcionário'),
        sa.Column('nivel_acesso', sa.String(30), nullable=False, server_default='funcionario'),
        sa.Column('lojas_associadas', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='ativo'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_usuarios_id', 'usuarios', ['id'], unique=False)
    op.create_index('ix_usuarios_email', 'usuarios', ['email'], unique=True)

    # === Estoque ===
    op.create_table(
        'estoque',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('loja_id', sa.Integer(), nullable=False),
        sa.Column('produto_id', sa.Integer(), nullable=True),
        sa.Column('materia_prima_id', sa.Integer(), nullable=True),
        sa.Column('quantidade_atual', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quantidade_minima', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quantidade_maxima', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('valor_unitario', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['loja_id'], ['lojas.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['produto_id'], ['produtos.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['materia_prima_id'], ['materia_prima.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('loja_id', 'produto_id', name='uq_estoque_loja_produto'),
        sa.UniqueConstraint('loja_id', 'materia_prima_id', name='uq_estoque_loja_materia_prima')
    )
    op.create_index('ix_estoque_id', 'estoque', ['id'], unique=False)
    op.create_index('ix_estoque_loja_id', 'estoque', ['loja_id'], unique=False)
    op.create_index('ix_estoque_produto_id', 'estoque', ['produto_id'], unique=False)

    # === Movimentações ===
    op.create_table(
        'movimentacoes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('loja_id', sa.Integer(), nullable=False),
        sa.Column('loja_destino_id', sa.Integer(), nullable=True),
        sa.Column('produto_id', sa.Integer(), nullable=True),
        sa.Column('materia_prima_id', sa.Integer(), nullable=True),
        sa.Column('tipo', sa.String(20), nullable=False),
        sa.Column('quantidade', sa.Integer(), nullable=False),
        sa.Column('quantidade_anterior', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('motivo', sa.String(255), nullable=False),
        sa.Column('observacoes', sa.Text(), nullable=True),
        sa.Column('usuario_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='concluida'),
        sa.Column('data_hora', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['loja_id'], ['lojas.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['loja_destino_id'], ['lojas.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['produto_id'], ['produtos.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['materia_prima_id'], ['materia_prima.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['usuario_id'], ['usuarios.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_movimentacoes_id', 'movimentacoes', ['id'], unique=False)
    op.create_index('ix_movimentacoes_loja_id', 'movimentacoes', ['loja_id'], unique=False)
    op.create_index('ix_movimentacoes_produto_id', 'movimentacoes', ['produto_id'], unique=False)
    op.create_index('ix_movimentacoes_tipo', 'movimentacoes', ['tipo'], unique=False)
    op.create_index('ix_movimentacoes_usuario_id', 'movimentacoes', ['usuario_id'], unique=False)
    op.create_index('ix_movimentacoes_data_hora', 'movimentacoes', ['data_hora'], unique=False)
    op.create_index('ix_movimentacoes_created_at', 'movimentacoes', ['created_at'], unique=False)
    op.create_index('ix_movimentacoes_loja_data', 'movimentacoes', ['loja_id', 'data_hora'], unique=False)

    # === Alertas ===
    op.create_table(
        'alertas',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tipo', sa.String(20), nullable=False),
        sa.Column('prioridade', sa.String(20), nullable=False, server_default='medio'),
        sa.Column('titulo', sa.String(255), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=False, server_default=''),
        sa.Column('loja_id', sa.Integer(), nullable=True),
        sa.Column('estoque_id', sa.Integer(), nullable=True),
        sa.Column('usuario_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='novo'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['loja_id'], ['lojas.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['estoque_id'], ['estoque.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['usuario_id'], ['usuarios.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_alertas_id', 'alertas', ['id'], unique=False)
    op.create_index('ix_alertas_tipo', 'alertas', ['tipo'], unique=False)
    op.create_index('ix_alertas_loja_id', 'alertas', ['loja_id'], unique=False)
    op.create_index('ix_alertas_created_at', 'alertas', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_table('alertas')
    op.drop_table('movimentacoes')
    op.drop_table('estoque')
    op.drop_table('usuarios')
    op.drop_table('materia_prima')
    op.drop_table('produtos')
    op.drop_table('fornecedores')
    op.drop_table('categorias')
    op.drop_table('preferencias_usuario')
    op.drop_table('lojas')
    op.drop_table('empresas')
    op.drop_table('auth_sessions')
    op.drop_table('auth_users')
