"""Testes para empresa selecionada, preferências e listas auxiliares."""


def _criar_empresa(client, headers, nome):
    response = client.post("/empresas/", json={"nome": nome}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestEmpresaSelecionada:
    """Testes para seleção de empresa."""

    def test_sem_empresas(self, client, auth_headers):
        response = client.get("/configuracoes/empresas", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"empresas": [], "selecionada": None}

    def test_auto_seleciona_primeira_por_nome(self, client, auth_headers, empresa):
        alfa = _criar_empresa(client, auth_headers, "Alfa Comércio")

        response = client.get("/configuracoes/empresas", headers=auth_headers)
        data = response.json()
        assert [e["nome"] for e in data["empresas"]] == ["Alfa Comércio", "GRUPO LET"]
        assert data["selecionada"]["id"] == alfa["id"]

    def test_selecionar(self, client, auth_headers, empresa):
        _criar_empresa(client, auth_headers, "Alfa Comércio")

        response = client.put(
            "/configuracoes/empresa-selecionada",
            json={"empresa_id": empresa["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["nome"] == "GRUPO LET"

        response = client.get("/configuracoes/empresas", headers=auth_headers)
        assert response.json()["selecionada"]["id"] == empresa["id"]

    def test_selecionar_inativa(self, client, auth_headers, empresa):
        client.post(f"/empresas/{empresa['id']}/desativar", headers=auth_headers)
        response = client.put(
            "/configuracoes/empresa-selecionada",
            json={"empresa_id": empresa["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 404

    def test_troca_limpa_loja_atual(self, client, auth_headers, empresa, loja):
        outra = _criar_empresa(client, auth_headers, "Zeta Varejo")
        client.put(
            "/configuracoes/empresa-selecionada",
            json={"empresa_id": empresa["id"]},
            headers=auth_headers,
        )
        client.put("/configuracoes/preferencias", json={"loja_atual_id": loja["id"]}, headers=auth_headers)

        client.put(
            "/configuracoes/empresa-selecionada",
            json={"empresa_id": outra["id"]},
            headers=auth_headers,
        )
        response = client.get("/configuracoes/preferencias", headers=auth_headers)
        assert response.json()["loja_atual_id"] is None
        assert response.json()["empresa_selecionada_id"] == outra["id"]

    def test_escopo_por_empresa(self, client, auth_headers, loja, produto):
        outra = _criar_empresa(client, auth_headers, "Zeta Varejo")
        response = client.post(
            "/produtos/",
            json={"nome": "Produto Zeta", "codigo": "Z-001", "categoria": "Outros", "empresa_id": outra["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 201

        response = client.get("/produtos/", headers=auth_headers)
        assert [p["codigo"] for p in response.json()["items"]] == ["PHONE-001"]

        response = client.get(f"/produtos/?empresa_id={outra['id']}", headers=auth_headers)
        assert [p["codigo"] for p in response.json()["items"]] == ["Z-001"]

    def test_empresa_selecionada_desativada(self, client, auth_headers, empresa, produto):
        """Desativar a empresa selecionada troca o escopo para a próxima ativa."""
        response = client.get("/produtos/", headers=auth_headers)
        assert response.json()["total"] == 1

        zeta = _criar_empresa(client, auth_headers, "Zeta Varejo")
        response = client.post(f"/empresas/{empresa['id']}/desativar", headers=auth_headers)
        assert response.status_code == 200

        response = client.get("/produtos/", headers=auth_headers)
        assert response.json()["total"] == 0

        response = client.get("/configuracoes/preferencias", headers=auth_headers)
        assert response.json()["empresa_selecionada_id"] == zeta["id"]


class TestPreferencias:
    """Testes para preferências de interface."""

    def test_padrao(self, client, auth_headers):
        response = client.get("/configuracoes/preferencias", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["sidebar_collapsed"] is False
        assert response.json()["loja_atual_id"] is None

    def test_sidebar(self, client, auth_headers):
        response = client.put("/configuracoes/preferencias", json={"sidebar_collapsed": True}, headers=auth_headers)
        assert response.json()["sidebar_collapsed"] is True

        response = client.get("/configuracoes/preferencias", headers=auth_headers)
        assert response.json()["sidebar_collapsed"] is True

    def test_loja_atual(self, client, auth_headers, loja):
        response = client.put("/configuracoes/preferencias", json={"loja_atual_id": loja["id"]}, headers=auth_headers)
        assert response.json()["loja_atual_id"] == loja["id"]

        # Atualizar outro campo mantém a loja
        response = client.put("/configuracoes/preferencias", json={"sidebar_collapsed": True}, headers=auth_headers)
        assert response.json()["loja_atual_id"] == loja["id"]

        response = client.put("/configuracoes/preferencias", json={"loja_atual_id": None}, headers=auth_headers)
        assert response.json()["loja_atual_id"] is None

    def test_loja_inexistente(self, client, auth_headers):
        response = client.put("/configuracoes/preferencias", json={"loja_atual_id": 999}, headers=auth_headers)
        assert response.status_code == 404

    def test_preferencias_por_usuario(self, client, auth_headers, funcionario_headers):
        client.put("/configuracoes/preferencias", json={"sidebar_collapsed": True}, headers=auth_headers)
        response = client.get("/configuracoes/preferencias", headers=funcionario_headers)
        assert response.json()["sidebar_collapsed"] is False


class TestLookups:
    """Testes para listas auxiliares."""

    def test_sem_empresa(self, client, auth_headers):
        response = client.get("/configuracoes/lookups", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Nenhuma empresa selecionada"

    def test_listas(self, client, auth_headers, loja, loja_shopping):
        client.post("/categorias/", json={"nome": "Bebidas"}, headers=auth_headers)

        response = client.get("/configuracoes/lookups", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert [l["nome"] for l in data["lojas"]] == ["Loja Centro", "Loja Shopping"]
        assert [c["nome"] for c in data["categorias"]] == ["Bebidas"]
        assert data["fornecedores"] == []
        assert "Eletrônicos" in data["categorias_padrao"]
        assert "kg" in data["unidades"]
