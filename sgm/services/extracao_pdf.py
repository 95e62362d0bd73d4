"""Extração de itens de reservas EMBASA a partir de PDF.

O texto do PDF é extraído localmente e enviado a um modelo de linguagem
(endpoint compatível com chat/completions), que devolve um JSON com os
itens e os metadados do documento.
"""
import io
import json
import logging

import requests
from flask import current_app
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from sgm.errors import (
    ArquivoInvalidoError,
    CreditosInsuficientesError,
    ExtracaoPDFError,
    LimiteRequisicoesError,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """Você é um especialista em extrair dados estruturados de documentos da EMBASA (Empresa Baiana de Águas e Saneamento).

Analise o texto do PDF fornecido e extraia:

1. Metadados do documento:
   - numero_reserva: Número da reserva (ex: "0001680630")
   - data: Data do documento (formato: "DD/MM/YYYY")
   - localidade: Local/unidade (ex: "UMBS/MURILO" ou "Salvador")
   - responsavel: Nome do responsável/citante
   - deposito: Código do depósito (ex: "1111")

2. Lista de itens. Para cada item:
   - codigo: Código SAP do material
   - descricao: Descrição do material
   - unidade: Unidade de medida (UN, PC, CX, etc.)
   - quantidade_solicitada: Quantidade solicitada (número)
   - quantidade_fornecida: Quantidade fornecida/aprovada (número, 0 se não aprovado)
   - valor_total: Valor total se disponível (número ou null)
   - aprovado: true se o item foi aprovado/fornecido, false se está na seção "ITENS NÃO APROVADOS"

IMPORTANTE:
- Se encontrar seção "ITENS NÃO APROVADOS", marque esses itens com aprovado: false
- Converta todas as quantidades para números
- Se um campo não for encontrado, use string vazia ou 0 conforme apropriado
- Retorne APENAS o JSON, sem markdown ou explicações"""

FORMATO_RESPOSTA = """{
  "items": [
    {
      "codigo": "string",
      "descricao": "string",
      "unidade": "string",
      "quantidade_solicitada": number,
      "quantidade_fornecida": number,
      "valor_total": number | null,
      "aprovado": boolean
    }
  ],
  "metadata": {
    "numero_reserva": "string",
    "data": "string",
    "localidade": "string",
    "responsavel": "string",
    "deposito": "string"
  }
}"""

CAMPOS_METADATA = ("numero_reserva", "data", "localidade", "responsavel", "deposito")


# ------------------------- texto do PDF -------------------------
def extrair_texto(conteudo: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(conteudo))
        paginas = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError) as e:
        logger.warning("PDF ilegível: %s", e)
        raise ArquivoInvalidoError("Não foi possível ler o PDF.") from e

    texto = "\n".join(p for p in paginas if p.strip())
    if not texto.strip():
        raise ArquivoInvalidoError("O PDF não contém texto extraível.")
    return texto


# ------------------------- resposta da IA -------------------------
def _sem_markdown(conteudo: str) -> str:
    txt = conteudo.strip()
    if txt.startswith("```json"):
        txt = txt[7:]
    elif txt.startswith("```"):
        txt = txt[3:]
    if txt.endswith("```"):
        txt = txt[:-3]
    return txt.strip()


def _itens_validos(items) -> list[dict]:
    if not isinstance(items, list):
        return []
    validos = [i for i in items if isinstance(i, dict)]
    if len(validos) < len(items):
        logger.warning("%s item(ns) descartado(s): não são objetos", len(items) - len(validos))
    return validos


def interpretar_resposta(conteudo: str) -> dict:
    try:
        dados = json.loads(_sem_markdown(conteudo))
    except json.JSONDecodeError as e:
        logger.error("Falha ao interpretar resposta da IA: %s", conteudo[:500])
        raise ExtracaoPDFError("Falha ao interpretar resposta da IA.") from e

    if not isinstance(dados, dict):
        raise ExtracaoPDFError("Falha ao interpretar resposta da IA.")

    dados["items"] = _itens_validos(dados.get("items"))
    metadata = dados.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    dados["metadata"] = {c: str(metadata.get(c) or "") for c in CAMPOS_METADATA}
    return dados


def chamar_ia(texto: str) -> str:
    cfg = current_app.config
    if not cfg.get("LLM_API_KEY"):
        raise ExtracaoPDFError("Chave da API de IA não configurada.")

    payload = {
        "model": cfg["LLM_MODEL"],
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    "Extraia os dados estruturados do seguinte texto de documento EMBASA:\n\n"
                    f"{texto}\n\nRetorne um JSON com a seguinte estrutura:\n{FORMATO_RESPOSTA}"
                ),
            },
        ],
    }
    headers = {
        "Authorization": f"Bearer {cfg['LLM_API_KEY']}",
        "Content-Type": "application/json",
    }

    try:
        r = requests.post(cfg["LLM_API_URL"], json=payload, headers=headers, timeout=cfg["LLM_TIMEOUT"])
    except requests.RequestException as e:
        logger.exception("Falha de comunicação com a IA")
        raise ExtracaoPDFError() from e

    if r.status_code == 429:
        raise LimiteRequisicoesError()
    if r.status_code == 402:
        raise CreditosInsuficientesError()
    if r.status_code >= 400:
        logger.error("Erro do gateway de IA: %s %s", r.status_code, r.text[:300])
        raise ExtracaoPDFError("Erro ao processar com IA.")

    try:
        conteudo = r.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise ExtracaoPDFError("Resposta vazia da IA.") from e
    if not conteudo:
        raise ExtracaoPDFError("Resposta vazia da IA.")
    return conteudo


def extrair_dados_pdf(conteudo: bytes) -> dict:
    texto = extrair_texto(conteudo)
    dados = interpretar_resposta(chamar_ia(texto))
    logger.info("PDF extraído: %s itens (reserva %s)", len(dados["items"]), dados["metadata"]["numero_reserva"] or "-")
    return dados


# ------------------------- itens -> linhas de importação -------------------------
def itens_para_linhas(dados: dict, somente_aprovados: bool = True) -> list[dict]:
    metadata = dados.get("metadata")
    numero = str(metadata.get("numero_reserva") or "") if isinstance(metadata, dict) else ""
    linhas = []
    for item in _itens_validos(dados.get("items")):
        if somente_aprovados and not item.get("aprovado"):
            continue
        linhas.append({
            "codigo_sap": item.get("codigo") or "",
            "nome_material": item.get("descricao") or "",
            "unidade": item.get("unidade") or "UN",
            "quantidade": item.get("quantidade_fornecida") or 0,
            "numero_reserva": numero,
        })
    return linhas
