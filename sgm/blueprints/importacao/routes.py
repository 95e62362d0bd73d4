import logging
from datetime import datetime

from flask import current_app, jsonify, request
from flask_login import login_required
from sqlalchemy.exc import SQLAlchemyError

from sgm.errors import ArquivoInvalidoError, SGMError
from sgm.extensions import db
from sgm.models import HistoricoImportacao
from sgm.services import extracao_pdf, planilhas
from sgm.services.importacao import importar_dados

from . import importacao_bp

logger = logging.getLogger(__name__)

MSG_ERRO_IMPORTACAO = "Ocorreu um erro ao processar os dados."


# ------------------------- helpers -------------------------
def _parametros(dados):
    ano = str(dados.get("ano") or "").strip()
    return {
        "tipo": dados.get("tipo") or "liberacao",
        "localidade": dados.get("localidade") or "Salvador",
        "mes_referencia": dados.get("mes") or f"{datetime.now().month:02d}",
        "empreiteira": str(dados.get("empreiteira") or "").strip() or current_app.config["EMPREITEIRA_PADRAO"],
        "ano_referencia": int(ano) if ano.isdigit() else None,
    }


def _sim(valor) -> bool:
    if isinstance(valor, bool):
        return valor
    return str(valor).lower() in ("1", "true", "sim")


def _arquivo_enviado():
    arq = request.files.get("arquivo")
    if not arq or not arq.filename:
        raise ArquivoInvalidoError("Selecione um arquivo.")
    return arq.filename, arq.read()


def _executar(dados, nome_arquivo, params):
    """Importa e traduz falhas do lote numa resposta única."""
    try:
        resultado = importar_dados(dados, nome_arquivo=nome_arquivo, **params)
    except ValueError as e:
        db.session.rollback()
        return jsonify({"erro": str(e)}), 400
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Erro na importação de %s", nome_arquivo)
        return jsonify({"erro": MSG_ERRO_IMPORTACAO}), 500
    return jsonify(resultado.to_dict())


# ------------------------- planilhas -------------------------
@importacao_bp.post("/previa")
@login_required
def importar_previa():
    nome, conteudo = _arquivo_enviado()
    dados = planilhas.ler_arquivo(nome, conteudo)
    colunas = list(dict.fromkeys(k for row in dados for k in row))
    return jsonify({
        "nome_arquivo": nome,
        "mensagem": f"{len(dados)} registros encontrados",
        "colunas": colunas,
        "linhas": [{k: str(v) for k, v in row.items()} for row in dados[:20]],
        "total": len(dados),
    })


@importacao_bp.post("/")
@login_required
def importar_arquivo():
    nome, conteudo = _arquivo_enviado()
    dados = planilhas.ler_arquivo(nome, conteudo)
    return _executar(dados, nome, _parametros(request.form))


# ------------------------- PDF -------------------------
@importacao_bp.post("/pdf/extrair")
@login_required
def pdf_extrair():
    nome, conteudo = _arquivo_enviado()
    if not nome.lower().endswith(".pdf"):
        raise ArquivoInvalidoError("Envie um arquivo .pdf.")

    try:
        dados = extracao_pdf.extrair_dados_pdf(conteudo)
    except SGMError:
        raise
    except Exception:
        logger.exception("Erro ao processar PDF %s", nome)
        return jsonify({"erro": "Erro ao processar PDF com IA."}), 500

    return jsonify({"nome_arquivo": nome, **dados})


@importacao_bp.post("/pdf/confirmar")
@login_required
def pdf_confirmar():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"erro": "Dados da extração inválidos."}), 400
    nome = str(payload.get("nome_arquivo") or "importacao.pdf")
    linhas = extracao_pdf.itens_para_linhas(
        {"items": payload.get("items"), "metadata": payload.get("metadata")},
        somente_aprovados=_sim(payload.get("somente_aprovados", True)),
    )
    if not linhas:
        return jsonify({"erro": "Nenhum item selecionado para importar."}), 400
    return _executar(linhas, nome, _parametros(payload))


# ------------------------- histórico -------------------------
@importacao_bp.get("/historico")
@login_required
def historico():
    q = HistoricoImportacao.query
    tipo = request.args.get("tipo")
    if tipo:
        q = q.filter_by(tipo_importacao=tipo)
    itens = q.order_by(HistoricoImportacao.imported_at.desc(), HistoricoImportacao.id.desc()).all()
    return jsonify([h.to_dict() for h in itens])
