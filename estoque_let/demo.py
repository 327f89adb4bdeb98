"""Dados de demonstração (modo offline e seed do banco)."""

MOCK_DATA = {
    "empresas": [
        {
            "id": 1,
            "nome": "GRUPO LET",
            "cnpj": "11222333000181",
            "endereco": "Av. Paulista, 1000 - São Paulo",
            "telefone": "(11) 3000-0000",
            "ativo": True,
        }
    ],
    "lojas": [
        {
            "id": 1,
            "nome": "Loja Centro",
            "codigo": "LJ-001",
            "endereco": "Rua Principal, 123 - Centro",
            "telefone": "(11) 1234-5678",
            "status": "ativa",
            "empresa_id": 1,
        },
        {
            "id": 2,
            "nome": "Loja Shopping",
            "codigo": "LJ-002",
            "endereco": "Shopping Center, Loja 45",
            "telefone": "(11) 8765-4321",
            "status": "ativa",
            "empresa_id": 1,
        },
    ],
    "categorias": [
        {"id": 1, "nome": "Eletrônicos", "descricao": "Produtos eletrônicos diversos"},
        {"id": 2, "nome": "Roupas", "descricao": "Vestuário em geral"},
        {"id": 3, "nome": "Casa e Jardim", "descricao": "Produtos para casa e jardim"},
    ],
    "fornecedores": [
        {
            "id": 1,
            "nome": "Tech Fornecedor Ltda",
            "cnpj": "12345678000190",
            "contato": "João Oliveira",
            "telefone": "(11) 5555-0001",
            "email": "contato@techfornecedor.com",
            "endereco": "Av. Tecnologia, 500",
        },
        {
            "id": 2,
            "nome": "Moda & Estilo",
            "cnpj": "98765432000110",
            "contato": "Maria Costa",
            "telefone": "(11) 5555-0002",
            "email": "vendas@modaestilo.com",
            "endereco": "Rua da Moda, 200",
        },
    ],
    "produtos": [
        {
            "id": 1,
            "nome": "Smartphone XYZ",
            "codigo": "PHONE-001",
            "categoria": "Eletrônicos",
            "categoria_id": 1,
            "fornecedor_id": 1,
            "descricao": "Smartphone com tela de 6.5 polegadas",
            "unidade_medida": "un",
            "valor_unitario": 800.00,
            "preco": 1200.00,
            "status": "ativo",
            "empresa_id": 1,
        },
        {
            "id": 2,
            "nome": "Camiseta Básica",
            "codigo": "SHIRT-001",
            "categoria": "Roupas",
            "categoria_id": 2,
            "fornecedor_id": 2,
            "descricao": "Camiseta 100% algodão",
            "unidade_medida": "un",
            "valor_unitario": 15.00,
            "preco": 35.00,
            "status": "ativo",
            "empresa_id": 1,
        },
    ],
    "usuarios": [
        {
            "id": 1,
            "nome": "Administrador",
            "email": "admin@grupolet.com",
            "cargo": "Administrador",
            "nivel_acesso": "admin_geral",
            "lojas_associadas": [1, 2],
            "status": "ativo",
        },
        {
            "id": 2,
            "nome": "Gerente Centro",
            "email": "gerente@grupolet.com",
            "cargo": "Gerente",
            "nivel_acesso": "gerente",
            "lojas_associadas": [1],
            "status": "ativo",
        },
    ],
    "estoque": [
        {
            "id": 1,
            "produto_id": 1,
            "loja_id": 1,
            "quantidade_atual": 15,
            "quantidade_minima": 5,
            "quantidade_maxima": 50,
        },
        {
            "id": 2,
            "produto_id": 2,
            "loja_id": 1,
            "quantidade_atual": 3,
            "quantidade_minima": 10,
            "quantidade_maxima": 100,
        },
    ],
    "movimentacoes": [
        {
            "id": 1,
            "produto_id": 1,
            "loja_id": 1,
            "tipo": "entrada",
            "quantidade": 20,
            "quantidade_anterior": 0,
            "motivo": "Compra inicial",
            "usuario_id": 1,
            "data_hora": "2024-01-01T10:00:00+00:00",
        },
        {
            "id": 2,
            "produto_id": 1,
            "loja_id": 1,
            "tipo": "saida",
            "quantidade": 5,
            "quantidade_anterior": 20,
            "motivo": "Venda para cliente",
            "usuario_id": 2,
            "data_hora": "2024-01-01T14:00:00+00:00",
        },
    ],
}
