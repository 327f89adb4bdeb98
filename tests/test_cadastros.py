"""Testes para cadastros: empresas, lojas, produtos e auxiliares."""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from estoque_let.models import Empresa, Loja, Produto
from estoque_let.services.inventory import DEFAULT_ERROR, InventoryService, _handle_error


class TestEmpresas:
    """Testes para endpoints /empresas."""

    def test_create_normaliza_cnpj(self, empresa):
        assert empresa["cnpj"] == "11222333000181"
        assert empresa["ativo"] is True

    def test_list_apenas_ativas(self, client, auth_headers, empresa, db_session):
        inativa = Empresa(nome="Empresa Antiga", ativo=False)
        db_session.add(inativa)
        db_session.commit()

        response = client.get("/empresas/", headers=auth_headers)
        assert response.status_code == 200
        assert [e["nome"] for e in response.json()["items"]] == ["GRUPO LET"]

        response = client.get("/empresas/?incluir_inativas=true", headers=auth_headers)
        assert response.json()["total"] == 2

    def test_update(self, client, auth_headers, empresa):
        response = client.put(
            f"/empresas/{empresa['id']}",
            json={"telefone": "(11) 4000-0000"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["telefone"] == "(11) 4000-0000"
        assert response.json()["nome"] == "GRUPO LET"

    def test_desativar(self, client, auth_headers, empresa):
        response = client.post(f"/empresas/{empresa['id']}/desativar", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["ativo"] is False

    def test_delete_sem_vinculos(self, client, auth_headers, empresa):
        response = client.delete(f"/empresas/{empresa['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["acao"] == "excluida"

        response = client.get(f"/empresas/{empresa['id']}", headers=auth_headers)
        assert response.status_code == 404

    def test_delete_com_lojas_desativa(self, client, auth_headers, empresa, loja, db_session):
        response = client.delete(f"/empresas/{empresa['id']}", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["acao"] == "desativada"
        assert "desativada" in data["message"]

        db_session.expire_all()
        assert db_session.get(Empresa, empresa["id"]).ativo is False
        assert db_session.get(Loja, loja["id"]) is not None

    def test_delete_inexistente(self, client, auth_headers):
        response = client.delete("/empresas/999", headers=auth_headers)
        assert response.status_code == 404


class TestLojas:
    """Testes para endpoints /lojas."""

    def test_create_usa_empresa_selecionada(self, client, auth_headers, empresa):
        response = client.post(
            "/lojas/",
            json={"nome": "Loja Norte", "codigo": "LJ-010"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["empresa_id"] == empresa["id"]
        assert response.json()["status"] == "ativa"

    def test_create_sem_empresa(self, client, auth_headers):
        response = client.post(
            "/lojas/",
            json={"nome": "Loja Norte", "codigo": "LJ-010"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Selecione uma empresa"

    def test_list_busca_e_status(self, client, auth_headers, loja, loja_shopping):
        response = client.put(f"/lojas/{loja_shopping['id']}", json={"status": "inativa"}, headers=auth_headers)
        assert response.status_code == 200

        response = client.get("/lojas/?status=ativa", headers=auth_headers)
        assert [l["codigo"] for l in response.json()["items"]] == ["LJ-001"]

        response = client.get("/lojas/?search=shopping", headers=auth_headers)
        assert response.json()["total"] == 1

    def test_list_ordenacao(self, client, auth_headers, loja, loja_shopping):
        response = client.get("/lojas/?order_by=nome&order_direction=desc", headers=auth_headers)
        assert [l["nome"] for l in response.json()["items"]] == ["Loja Shopping", "Loja Centro"]

    def test_status_invalido(self, client, auth_headers, loja):
        response = client.get("/lojas/?status=fechada", headers=auth_headers)
        assert response.status_code == 422

    def test_delete_com_estoque_inativa(self, client, auth_headers, loja, produto, db_session):
        response = client.post(
            "/estoque/",
            json={"loja_id": loja["id"], "produto_id": produto["id"], "quantidade_atual": 3},
            headers=auth_headers,
        )
        assert response.status_code == 201

        response = client.delete(f"/lojas/{loja['id']}", headers=auth_headers)
        assert response.json()["acao"] == "desativada"

        db_session.expire_all()
        assert db_session.get(Loja, loja["id"]).status == "inativa"

    def test_delete_sem_vinculos(self, client, auth_headers, loja):
        response = client.delete(f"/lojas/{loja['id']}", headers=auth_headers)
        assert response.json()["acao"] == "excluida"


class TestProdutos:
    """Testes para endpoints /produtos."""

    def test_create(self, produto, empresa):
        assert produto["codigo"] == "PHONE-001"
        assert produto["empresa_id"] == empresa["id"]
        assert produto["status"] == "ativo"

    def test_preco_negativo(self, client, auth_headers, empresa):
        response = client.post(
            "/produtos/",
            json={"nome": "Produto", "codigo": "X-1", "categoria": "Outros", "preco": -1},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_list_filtros(self, client, auth_headers, criar_produto):
        criar_produto()
        criar_produto(nome="Camiseta Básica", codigo="SHIRT-001", categoria="Roupas", preco=35.0)
        criar_produto(nome="Fone Bluetooth", codigo="PHONE-002", categoria="Eletrônicos", preco=150.0)

        response = client.get("/produtos/", params={"categoria": "Eletrônicos"}, headers=auth_headers)
        assert response.json()["total"] == 2

        response = client.get("/produtos/?categoria=todas&search=shirt", headers=auth_headers)
        assert [p["nome"] for p in response.json()["items"]] == ["Camiseta Básica"]

        response = client.get("/produtos/?order_by=preco&order_direction=asc", headers=auth_headers)
        assert [p["preco"] for p in response.json()["items"]] == [35.0, 100.0, 150.0]

    def test_list_paginacao(self, client, auth_headers, criar_produto):
        for i in range(5):
            criar_produto(nome=f"Produto {i}", codigo=f"P-{i:03d}")

        response = client.get("/produtos/?page=1&page_size=2", headers=auth_headers)
        data = response.json()
        assert len(data["items"]) == 2
        assert data["total"] == 5
        assert data["pages"] == 3

    def test_update_parcial(self, client, auth_headers, produto):
        response = client.put(f"/produtos/{produto['id']}", json={"preco": 150.0}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["preco"] == 150.0
        assert response.json()["nome"] == produto["nome"]

    def test_delete_com_movimentacao_inativa(self, client, auth_headers, loja, produto, db_session):
        client.post(
            "/movimentacoes/",
            json={"tipo": "entrada", "loja_id": loja["id"], "produto_id": produto["id"], "quantidade": 10},
            headers=auth_headers,
        )

        response = client.delete(f"/produtos/{produto['id']}", headers=auth_headers)
        assert response.json()["acao"] == "desativada"

        db_session.expire_all()
        assert db_session.get(Produto, produto["id"]).status == "inativo"

    def test_delete_sem_vinculos(self, client, auth_headers, produto):
        response = client.delete(f"/produtos/{produto['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["acao"] == "excluida"

        response = client.get(f"/produtos/{produto['id']}", headers=auth_headers)
        assert response.status_code == 404


class TestAuxiliares:
    """Categorias, fornecedores e matérias-primas."""

    def test_categorias(self, client, auth_headers, empresa):
        response = client.post("/categorias/", json={"nome": "Bebidas"}, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["empresa_id"] == empresa["id"]

        response = client.get("/categorias/", headers=auth_headers)
        assert [c["nome"] for c in response.json()] == ["Bebidas"]

    def test_fornecedores(self, client, auth_headers, empresa):
        response = client.post(
            "/fornecedores/",
            json={"nome": "Tech Fornecedor Ltda", "cnpj": "12.345.678/0001-90", "email": "contato@techfornecedor.com"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["cnpj"] == "12345678000190"

        response = client.get("/fornecedores/", headers=auth_headers)
        assert len(response.json()) == 1

    def test_materias_primas(self, client, auth_headers):
        response = client.post(
            "/materias-primas/",
            json={"nome": "Farinha de Trigo", "categoria": "Insumos", "unidade_medida": "kg", "preco_unitario": 4.5},
            headers=auth_headers,
        )
        assert response.status_code == 201
        materia_id = response.json()["id"]

        response = client.put(f"/materias-primas/{materia_id}", json={"preco_unitario": 5.0}, headers=auth_headers)
        assert response.json()["preco_unitario"] == 5.0

        response = client.get("/materias-primas/?search=farinha", headers=auth_headers)
        assert response.json()["total"] == 1


class TestUsuarios:
    """Testes para endpoints /usuarios."""

    def test_create_email_unico(self, client, auth_headers):
        payload = {"nome": "Gerente Centro", "email": "Gerente@GrupoLet.com", "nivel_acesso": "gerente_loja"}
        response = client.post("/usuarios/", json=payload, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "gerente@grupolet.com"
        assert data["nivel_acesso"] == "gerente"

        response = client.post("/usuarios/", json=payload, headers=auth_headers)
        assert response.status_code == 409

    def test_update_nivel(self, client, auth_headers):
        response = client.post(
            "/usuarios/",
            json={"nome": "Operador", "email": "caixa@grupolet.com"},
            headers=auth_headers,
        )
        usuario_id = response.json()["id"]

        response = client.put(f"/usuarios/{usuario_id}", json={"nivel_acesso": "admin_loja"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["nivel_acesso"] == "admin_loja"

    def test_filtro_nivel(self, client, auth_headers):
        response = client.get("/usuarios/?nivel_acesso=admin_geral", headers=auth_headers)
        assert response.json()["total"] == 1


class TestAlertas:
    """Testes para endpoints /alertas."""

    def test_create_e_resolver(self, client, auth_headers, loja):
        response = client.post(
            "/alertas/",
            json={"tipo": "sistema", "titulo": "Backup pendente", "prioridade": "media", "loja_id": loja["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 201
        alerta = response.json()
        assert alerta["prioridade"] == "medio"
        assert alerta["status"] == "novo"

        response = client.put(f"/alertas/{alerta['id']}", json={"status": "resolvido"}, headers=auth_headers)
        assert response.json()["status"] == "resolvido"

        response = client.get("/alertas/?status=resolvido", headers=auth_headers)
        assert response.json()["total"] == 1

    def test_loja_inexistente(self, client, auth_headers):
        response = client.post(
            "/alertas/",
            json={"tipo": "sistema", "titulo": "Teste", "loja_id": 999},
            headers=auth_headers,
        )
        assert response.status_code == 404


class TestAtualizacaoCamposObrigatorios:
    """Campos obrigatórios podem ser omitidos no PUT, mas não anulados."""

    def test_produto_nome_nulo(self, client, auth_headers, produto, db_session):
        response = client.put(f"/produtos/{produto['id']}", json={"nome": None}, headers=auth_headers)
        assert response.status_code == 422
        db_session.expire_all()
        assert db_session.get(Produto, produto["id"]).nome == "Smartphone XYZ"

    def test_produto_preco_nulo(self, client, auth_headers, produto):
        response = client.put(f"/produtos/{produto['id']}", json={"preco": None}, headers=auth_headers)
        assert response.status_code == 422

    def test_loja_codigo_nulo(self, client, auth_headers, loja):
        response = client.put(f"/lojas/{loja['id']}", json={"codigo": None}, headers=auth_headers)
        assert response.status_code == 422

    def test_empresa_nome_em_branco(self, client, auth_headers, empresa):
        response = client.put(f"/empresas/{empresa['id']}", json={"nome": "   "}, headers=auth_headers)
        assert response.status_code == 422

    def test_empresa_nome_sem_espacos(self, client, auth_headers, empresa):
        response = client.put(f"/empresas/{empresa['id']}", json={"nome": "  GRUPO LET Sul  "}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["nome"] == "GRUPO LET Sul"

    def test_usuario_cargo_nulo(self, client, auth_headers):
        response = client.post(
            "/usuarios/",
            json={"nome": "Operador", "email": "caixa@grupolet.com"},
            headers=auth_headers,
        )
        usuario_id = response.json()["id"]

        response = client.put(f"/usuarios/{usuario_id}", json={"cargo": None}, headers=auth_headers)
        assert response.status_code == 422


class TestMensagensDeErroDoBanco:
    """Erros de banco não expõem SQL nem parâmetros ao cliente."""

    def test_handle_error_oculta_detalhe_sql(self):
        erro = OperationalError("UPDATE produtos SET nome=?", {"nome": None}, Exception("NOT NULL constraint failed"))
        assert _handle_error(erro) == DEFAULT_ERROR

    def test_handle_error_mensagem_comum(self):
        assert _handle_error(ValueError("Estoque insuficiente")) == "Estoque insuficiente"
        assert _handle_error(ValueError("  ")) == DEFAULT_ERROR

    def test_resposta_generica(self, client, auth_headers, produto):
        falha = OperationalError("UPDATE produtos SET preco=?", {"preco": 1.0}, Exception("disk I/O error"))
        with patch.object(InventoryService, "_commit", side_effect=falha):
            response = client.put(f"/produtos/{produto['id']}", json={"preco": 1.0}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == DEFAULT_ERROR
        assert "UPDATE" not in response.text
