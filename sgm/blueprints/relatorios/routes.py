from flask import abort, request, send_file
from flask_login import login_required

from sgm.services import exportacao as ex
from sgm.services.conciliacao import estoque_por_material, reservas_divergentes
from sgm.services.consultas import carregar_reservas, filtro_da_requisicao

from . import relatorios_bp

FORMATOS = ("xlsx", "pdf", "csv")


# =========================
# Helpers
# =========================
def _enviar(formato: str, base: str, titulo: str, colunas, dados, filtros: dict):
    if formato not in FORMATOS:
        abort(404)

    if formato == "xlsx":
        bio, mimetype = ex.exportar_xlsx(titulo, colunas, dados, filtros), ex.MIME_XLSX
    elif formato == "pdf":
        bio, mimetype = ex.exportar_pdf(titulo, colunas, dados, filtros), ex.MIME_PDF
    else:
        bio, mimetype = ex.exportar_csv(colunas, dados), ex.MIME_CSV

    return send_file(
        bio,
        as_attachment=True,
        download_name=ex.nome_arquivo(base, formato),
        mimetype=mimetype,
    )


# =========================
# 1) RESERVAS
# =========================
@relatorios_bp.get("/reservas.<formato>")
@login_required
def relatorio_reservas(formato):
    filtro = filtro_da_requisicao(request.args)
    reservas = carregar_reservas(filtro)
    return _enviar(formato, "reservas", "Relatório de Reservas", ex.COLUNAS_RESERVAS, reservas, filtro.rotulos())


# =========================
# 2) MATERIAIS EM ESTOQUE
# =========================
@relatorios_bp.get("/materiais.<formato>")
@login_required
def relatorio_materiais(formato):
    filtro = filtro_da_requisicao(request.args)
    nivel = request.args.get("nivel")
    itens = estoque_por_material(carregar_reservas(filtro), nivel=nivel)

    filtros = filtro.rotulos()
    if nivel:
        filtros["Estoque"] = {"high": "Estoque OK", "medium": "Estoque Médio", "low": "Estoque Baixo"}.get(nivel, nivel)
    return _enviar(formato, "materiais_estoque", "Materiais em Estoque", ex.COLUNAS_MATERIAIS, itens, filtros)


# =========================
# 3) DIVERGÊNCIAS
# =========================
@relatorios_bp.get("/divergencias.<formato>")
@login_required
def relatorio_divergencias(formato):
    filtro = filtro_da_requisicao(request.args)
    itens = reservas_divergentes(carregar_reservas(filtro))
    return _enviar(formato, "divergencias", "Relatório de Divergências", ex.COLUNAS_DIVERGENCIAS, itens, filtro.rotulos())
