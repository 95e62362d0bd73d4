import re

from flask import jsonify, request
from flask_login import login_required

from sgm.extensions import db
from sgm.models import Empreiteira
from sgm.permissions import roles_required
from sgm.services import auditoria

from . import empreiteiras_bp


def _dados():
    return request.get_json(silent=True) or request.form


def _clean_doc(doc: str) -> str:
    return re.sub(r"\D+", "", doc or "")


@empreiteiras_bp.get("/")
@login_required
def empreiteiras_lista():
    q = Empreiteira.query
    if request.args.get("ativas") in ("1", "true", "sim"):
        q = q.filter_by(ativo=True)
    return jsonify([e.to_dict() for e in q.order_by(Empreiteira.nome.asc()).all()])


@empreiteiras_bp.post("/")
@login_required
def empreiteira_nova():
    dados = _dados()
    nome = (dados.get("nome") or "").strip()
    if not nome:
        return jsonify({"erro": "Informe o nome da empreiteira."}), 400

    e = Empreiteira.query.filter_by(nome=nome).first()
    if e:
        antes = e.to_dict()
        e.cnpj = _clean_doc(dados.get("cnpj")) or e.cnpj
        e.contato = (dados.get("contato") or "").strip() or e.contato
        e.ativo = True
        auditoria.registrar("UPDATE", "empreiteiras", e.id, f"Empreiteira reativada: {nome}",
                            old_values=antes, new_values=e.to_dict())
        db.session.commit()
        return jsonify(e.to_dict())

    e = Empreiteira(
        nome=nome,
        cnpj=_clean_doc(dados.get("cnpj")) or None,
        contato=(dados.get("contato") or "").strip() or None,
        ativo=True,
    )
    db.session.add(e)
    db.session.flush()
    auditoria.registrar("CREATE", "empreiteiras", e.id, f"Empreiteira cadastrada: {nome}", new_values=e.to_dict())
    db.session.commit()
    return jsonify(e.to_dict()), 201


@empreiteiras_bp.post("/<int:empreiteira_id>/editar")
@login_required
def empreiteira_editar(empreiteira_id):
    e = db.get_or_404(Empreiteira, empreiteira_id)
    dados = _dados()
    antes = e.to_dict()

    if "nome" in dados:
        nome = (dados.get("nome") or "").strip()
        if not nome:
            return jsonify({"erro": "Informe o nome da empreiteira."}), 400
        if Empreiteira.query.filter(Empreiteira.nome == nome, Empreiteira.id != e.id).first():
            return jsonify({"erro": "Já existe outra empreiteira com esse nome."}), 409
        e.nome = nome
    if "cnpj" in dados:
        e.cnpj = _clean_doc(dados.get("cnpj")) or None
    if "contato" in dados:
        e.contato = (dados.get("contato") or "").strip() or None
    if "ativo" in dados:
        e.ativo = str(dados.get("ativo")).lower() in ("1", "true", "sim")

    auditoria.registrar("UPDATE", "empreiteiras", e.id, f"Empreiteira atualizada: {e.nome}",
                        old_values=antes, new_values=e.to_dict())
    db.session.commit()
    return jsonify(e.to_dict())


@empreiteiras_bp.post("/<int:empreiteira_id>/excluir")
@login_required
@roles_required("admin")
def empreiteira_excluir(empreiteira_id):
    e = db.get_or_404(Empreiteira, empreiteira_id)
    auditoria.registrar("DELETE", "empreiteiras", e.id, f"Empreiteira excluída: {e.nome}", old_values=e.to_dict())
    db.session.delete(e)
    db.session.commit()
    return jsonify({"mensagem": "Empreiteira excluída com sucesso."})
