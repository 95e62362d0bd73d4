"""Notificações do cabeçalho: uploads de liberação e divergências recentes.

A lista montada fica em cache por aplicação e é invalidada pelos eventos
de gravação registrados em sgm.sinais.
"""
from flask import current_app

from sgm.models.historico_importacao import HistoricoImportacao
from sgm.models.reserva import Reserva

LIMITE = 8


def _estado():
    # versao sobe a cada novidade; vistos guarda a última versão lida por usuário
    return current_app.extensions.setdefault("sgm_notificacoes", {"itens": None, "versao": 0, "vistos": {}})


def invalidar(novidade: bool = True):
    estado = _estado()
    estado["itens"] = None
    if novidade:
        estado["versao"] += 1


def _montar():
    itens = []

    importacoes = (
        HistoricoImportacao.query
        .filter_by(tipo_importacao="liberacao", status="Sucesso")
        .order_by(HistoricoImportacao.imported_at.desc())
        .limit(5)
        .all()
    )
    for imp in importacoes:
        itens.append({
            "id": f"reserva-{imp.id}",
            "tipo": "reserva",
            "titulo": imp.nome_arquivo,
            "descricao": f"{imp.localidade} - {imp.quantidade_registros} registros",
            "data": imp.imported_at,
            "localidade": imp.localidade,
            "mes": imp.mes_referencia,
        })

    recentes = (
        Reserva.query
        .filter(Reserva.quantidade_utilizada > 0)
        .order_by(Reserva.updated_at.desc())
        .limit(10)
        .all()
    )
    for r in [r for r in recentes if r.divergente][:5]:
        excesso = r.quantidade_utilizada - r.quantidade_liberada
        itens.append({
            "id": f"divergencia-{r.id}",
            "tipo": "divergencia",
            "titulo": f"Divergência: {r.material_nome[:25]}...",
            "descricao": f"Excesso de {excesso:g} unidades - {r.localidade}",
            "data": r.updated_at,
            "localidade": r.localidade,
            "mes": r.mes_referencia,
            "reserva_id": r.id,
        })

    itens.sort(key=lambda n: n["data"], reverse=True)
    return [dict(n, data=n["data"].isoformat() if n["data"] else None) for n in itens[:LIMITE]]


def buscar_notificacoes(usuario_id=None, marcar_lidas: bool = True) -> dict:
    estado = _estado()
    if estado["itens"] is None:
        estado["itens"] = _montar()
    novidade = estado["vistos"].get(usuario_id, 0) < estado["versao"]
    if marcar_lidas:
        estado["vistos"][usuario_id] = estado["versao"]
    return {"notificacoes": estado["itens"], "novidade": novidade}
