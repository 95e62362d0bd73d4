import json
from io import BytesIO

import pytest
from reportlab.pdfgen import canvas

from sgm.errors import (
    ArquivoInvalidoError,
    CreditosInsuficientesError,
    ExtracaoPDFError,
    LimiteRequisicoesError,
)
from sgm.services import extracao_pdf
from sgm.services.colunas import resolver_linha

RESPOSTA = {
    "items": [
        {"codigo": "10045", "descricao": "TUBO PVC 100MM", "unidade": "PC",
         "quantidade_solicitada": 10, "quantidade_fornecida": 8, "valor_total": None, "aprovado": True},
        {"codigo": "10046", "descricao": "LUVA PVC 100MM", "unidade": "UN",
         "quantidade_solicitada": 4, "quantidade_fornecida": 0, "valor_total": None, "aprovado": False},
    ],
    "metadata": {"numero_reserva": "0001680630", "data": "05/03/2026", "localidade": "Salvador"},
}


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = json.dumps(self._payload)

    def json(self):
        return self._payload


def _pdf(texto=None):
    bio = BytesIO()
    c = canvas.Canvas(bio)
    if texto:
        c.drawString(72, 720, texto)
    c.showPage()
    c.save()
    return bio.getvalue()


def _resposta_ia(conteudo):
    return FakeResponse(200, {"choices": [{"message": {"content": conteudo}}]})


def test_interpretar_resposta_remove_markdown():
    dados = extracao_pdf.interpretar_resposta("```json\n" + json.dumps(RESPOSTA) + "\n```")
    assert len(dados["items"]) == 2
    assert dados["metadata"] == {
        "numero_reserva": "0001680630",
        "data": "05/03/2026",
        "localidade": "Salvador",
        "responsavel": "",
        "deposito": "",
    }


def test_interpretar_resposta_invalida():
    with pytest.raises(ExtracaoPDFError):
        extracao_pdf.interpretar_resposta("não é json")


def test_itens_para_linhas_so_aprovados():
    linhas = extracao_pdf.itens_para_linhas(RESPOSTA)
    assert len(linhas) == 1

    linha = resolver_linha(linhas[0], "liberacao")
    assert (linha.codigo, linha.nome, linha.quantidade, linha.numero_reserva) == (
        "10045", "TUBO PVC 100MM", 8, "0001680630",
    )
    assert len(extracao_pdf.itens_para_linhas(RESPOSTA, somente_aprovados=False)) == 2


def test_chamar_ia_envia_texto_e_le_conteudo(ctx, monkeypatch):
    chamadas = []

    def fake_post(url, **kwargs):
        chamadas.append((url, kwargs["json"], kwargs["headers"], kwargs["timeout"]))
        return _resposta_ia("{}")

    monkeypatch.setattr(extracao_pdf.requests, "post", fake_post)

    assert extracao_pdf.chamar_ia("RESERVA 0001680630") == "{}"
    url, payload, headers, timeout = chamadas[0]
    assert url.endswith("/chat/completions")
    assert headers["Authorization"] == "Bearer chave-teste"
    assert "RESERVA 0001680630" in payload["messages"][1]["content"]
    assert timeout == 60


@pytest.mark.parametrize("status,erro,http", [
    (429, LimiteRequisicoesError, 429),
    (402, CreditosInsuficientesError, 402),
    (500, ExtracaoPDFError, 500),
])
def test_chamar_ia_erros_do_gateway(ctx, monkeypatch, status, erro, http):
    monkeypatch.setattr(extracao_pdf.requests, "post", lambda *a, **kw: FakeResponse(status))
    with pytest.raises(erro) as exc:
        extracao_pdf.chamar_ia("texto")
    assert exc.value.status == http


def test_chamar_ia_sem_chave(app, ctx):
    app.config["LLM_API_KEY"] = None
    with pytest.raises(ExtracaoPDFError, match="Chave"):
        extracao_pdf.chamar_ia("texto")


def test_pdf_sem_texto():
    with pytest.raises(ArquivoInvalidoError):
        extracao_pdf.extrair_texto(_pdf())


def test_extrair_dados_pdf(ctx, monkeypatch):
    recebido = {}

    def fake_post(url, **kwargs):
        recebido["texto"] = kwargs["json"]["messages"][1]["content"]
        return _resposta_ia(json.dumps(RESPOSTA))

    monkeypatch.setattr(extracao_pdf.requests, "post", fake_post)

    dados = extracao_pdf.extrair_dados_pdf(_pdf("RESERVA 0001680630"))
    assert "0001680630" in recebido["texto"]
    assert dados["metadata"]["numero_reserva"] == "0001680630"
    assert dados["items"][0]["codigo"] == "10045"


def test_itens_que_nao_sao_objetos_sao_descartados():
    resposta = dict(RESPOSTA, items=["lixo", 42] + RESPOSTA["items"])
    dados = extracao_pdf.interpretar_resposta(json.dumps(resposta))
    assert [i["codigo"] for i in dados["items"]] == ["10045", "10046"]

    assert extracao_pdf.itens_para_linhas({"items": ["lixo", None], "metadata": "lixo"}) == []
    assert extracao_pdf.itens_para_linhas({"items": "lixo"}) == []
