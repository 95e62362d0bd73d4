from datetime import date, datetime

from flask import jsonify, request
from flask_login import login_required

from sgm.extensions import db
from sgm.models import Reserva
from sgm.models.reserva import LOCALIDADES, MESES
from sgm.permissions import roles_required
from sgm.services import ajuste, auditoria
from sgm.services.colunas import para_decimal
from sgm.services.conciliacao import estoque_por_material
from sgm.services.consultas import carregar_reservas, filtro_da_requisicao, paginar_reservas

from . import reservas_bp

CAMPOS_TEXTO = ("numero_reserva", "material_codigo", "status", "justificativa", "empreiteira")
CAMPOS_QTD = ("quantidade_solicitada", "quantidade_liberada", "quantidade_utilizada")


# ------------------------- helpers -------------------------
def _dados():
    return request.get_json(silent=True) or request.form


def _erro(msg, status=400):
    return jsonify({"erro": msg}), status


def _aplicar_campos(r: Reserva, dados) -> str | None:
    """Copia os campos informados; devolve mensagem de erro ou None."""
    for campo in CAMPOS_TEXTO:
        if campo in dados:
            setattr(r, campo, str(dados.get(campo) or "").strip())

    if "material_nome" in dados:
        nome = (dados.get("material_nome") or "").strip().upper()
        if not nome:
            return "Nome do material é obrigatório."
        r.material_nome = nome

    for campo in CAMPOS_QTD:
        if campo in dados:
            qtd = para_decimal(dados.get(campo))
            if qtd is None or qtd < 0:
                return "Quantidades devem ser números não negativos."
            setattr(r, campo, qtd)

    if "localidade" in dados:
        if dados.get("localidade") not in LOCALIDADES:
            return "Localidade inválida."
        r.localidade = dados.get("localidade")

    if "mes_referencia" in dados:
        if dados.get("mes_referencia") not in MESES:
            return "Mês de referência inválido."
        r.mes_referencia = dados.get("mes_referencia")

    if "ano_referencia" in dados:
        try:
            r.ano_referencia = int(dados.get("ano_referencia"))
        except (TypeError, ValueError):
            return "Ano de referência inválido."

    return None


# ------------------------- listagem -------------------------
@reservas_bp.get("/")
@login_required
def reservas_lista():
    args = request.args
    pagina = paginar_reservas(
        page=args.get("page", 1, type=int),
        page_size=args.get("page_size", 20, type=int),
        localidade=args.get("localidade"),
        material=(args.get("material") or "").strip(),
        status=args.get("status"),
        mes=args.get("mes"),
        somente_liberados=args.get("somente_liberados") in ("1", "true", "sim"),
        somente_divergentes=args.get("divergentes") in ("1", "true", "sim"),
    )
    return jsonify({
        "data": [r.to_dict() for r in pagina.items],
        "total": pagina.total,
        "total_pages": pagina.pages,
        "current_page": pagina.page,
    })


@reservas_bp.get("/<int:reserva_id>")
@login_required
def reserva_detalhe(reserva_id):
    r = db.get_or_404(Reserva, reserva_id)
    return jsonify(r.to_dict())


# ------------------------- lançamento manual -------------------------
@reservas_bp.post("/")
@login_required
def reserva_nova():
    dados = _dados()
    if not (dados.get("material_nome") or "").strip():
        return _erro("Nome do material é obrigatório.")

    r = Reserva(
        numero_reserva="",
        material_codigo="",
        localidade="Salvador",
        mes_referencia=f"{datetime.now().month:02d}",
        ano_referencia=datetime.now().year,
        status="Pendente",
        data_reserva=date.today(),
    )
    erro = _aplicar_campos(r, dados)
    if erro:
        return _erro(erro)

    db.session.add(r)
    db.session.flush()
    auditoria.registrar("CREATE", "reservas", r.id, f"Reserva criada: {r.material_nome}", new_values=r.to_dict())
    db.session.commit()
    return jsonify(r.to_dict()), 201


@reservas_bp.post("/<int:reserva_id>/editar")
@login_required
def reserva_editar(reserva_id):
    r = db.get_or_404(Reserva, reserva_id)
    antes = r.to_dict()

    erro = _aplicar_campos(r, _dados())
    if erro:
        db.session.rollback()
        return _erro(erro)

    auditoria.registrar("UPDATE", "reservas", r.id, f"Reserva atualizada: {r.material_nome}",
                        old_values=antes, new_values=r.to_dict())
    db.session.commit()
    return jsonify(r.to_dict())


@reservas_bp.post("/<int:reserva_id>/excluir")
@login_required
@roles_required("admin")
def reserva_excluir(reserva_id):
    r = db.get_or_404(Reserva, reserva_id)
    auditoria.registrar("DELETE", "reservas", r.id, f"Reserva excluída: {r.material_nome}", old_values=r.to_dict())
    db.session.delete(r)
    db.session.commit()
    return jsonify({"mensagem": "Reserva excluída com sucesso."})


# ------------------------- ajuste por reserva (divergências) -------------------------
@reservas_bp.post("/<int:reserva_id>/ajuste/previa")
@login_required
def reserva_ajuste_previa(reserva_id):
    r = db.get_or_404(Reserva, reserva_id)
    dados = _dados()
    tipo = ajuste.tipo_ajuste(dados.get("tipo"))
    previa = ajuste.calcular_previa(
        r.quantidade_liberada, r.quantidade_utilizada, tipo,
        dados.get("quantidade") or 0, dados.get("novo_saldo") or 0,
    )
    return jsonify(previa.to_dict())


@reservas_bp.post("/<int:reserva_id>/ajuste")
@login_required
def reserva_ajuste(reserva_id):
    r = db.get_or_404(Reserva, reserva_id)
    dados = _dados()
    previa = ajuste.ajustar_reserva(
        r, dados.get("tipo"),
        quantidade=dados.get("quantidade") or 0,
        novo_saldo=dados.get("novo_saldo") or 0,
        justificativa=dados.get("justificativa") or "",
    )
    return jsonify({"reserva": r.to_dict(), "previa": previa.to_dict()})


# ------------------------- estoque por material -------------------------
@reservas_bp.get("/estoque")
@login_required
def estoque():
    filtro = filtro_da_requisicao(request.args)
    itens = estoque_por_material(carregar_reservas(filtro), nivel=request.args.get("nivel"))
    busca = (request.args.get("busca") or "").strip()
    if busca:
        itens = [m for m in itens if busca.lower() in m["material_nome"].lower() or busca in m["material_codigo"]]
    return jsonify({
        "materiais": itens,
        "total_materiais": len(itens),
        "saldo_total": sum(m["saldo"] for m in itens),
    })


@reservas_bp.post("/estoque/ajuste")
@login_required
def estoque_ajuste():
    dados = _dados()
    nome = str(dados.get("material_nome") or "").strip().upper()
    if not nome:
        return _erro("Informe o material.")

    filtro = filtro_da_requisicao(request.args)
    grupo = [r for r in carregar_reservas(filtro) if r.material_nome == nome]
    # a listagem vem da mais nova para a mais antiga; grava na primeira
    previa = ajuste.ajustar_material(
        grupo, dados.get("tipo"),
        quantidade=dados.get("quantidade") or 0,
        novo_saldo=dados.get("novo_saldo") or 0,
        justificativa=dados.get("justificativa") or "",
    )
    return jsonify(previa.to_dict())
