from flask import jsonify, request
from flask_login import current_user, login_required

from sgm.services import conciliacao as cc
from sgm.services.consultas import carregar_historico, carregar_reservas, filtro_da_requisicao
from sgm.services.notificacoes import buscar_notificacoes

from . import analises_bp


# =========================
# Dashboard
# =========================
@analises_bp.get("/dashboard")
@login_required
def dashboard():
    filtro = filtro_da_requisicao(request.args)
    reservas = carregar_reservas(filtro)

    return jsonify({
        "filtros": filtro.rotulos(),
        "metricas": cc.metricas_dashboard(reservas, carregar_historico(), filtro),
        "top_materiais": cc.top_materiais(reservas),
        "evolucao_mensal": cc.evolucao_mensal(reservas),
        "distribuicao": cc.distribuicao_liberado_utilizado(reservas),
    })


# =========================
# Análise por material
# =========================
@analises_bp.get("/materiais")
@login_required
def materiais():
    filtro = filtro_da_requisicao(request.args)
    reservas = carregar_reservas(filtro)

    visao = cc.visao_por_material(reservas)
    busca = (request.args.get("busca") or "").strip().lower()
    if busca:
        visao = [m for m in visao if busca in m.nome.lower() or busca in m.codigo.lower()]

    return jsonify({
        "metricas": cc.metricas_analise(reservas),
        "eficiencia": cc.distribuicao_eficiencia(reservas),
        "materiais": [m.to_dict() for m in visao],
    })


# =========================
# Divergências
# =========================
@analises_bp.get("/divergencias")
@login_required
def divergencias():
    filtro = filtro_da_requisicao(request.args)
    reservas = carregar_reservas(filtro)

    itens = cc.reservas_divergentes(reservas)
    return jsonify({
        "reservas": itens,
        "total_itens": len(itens),
        "total_divergencia": sum(i["divergencia"] for i in itens),
        "materiais": [m.to_dict() for m in cc.materiais_divergentes(reservas)],
    })


@analises_bp.get("/notificacoes")
@login_required
def notificacoes():
    return jsonify(buscar_notificacoes(current_user.id))
