from flask import jsonify, request
from flask_login import login_user, logout_user, current_user, login_required

from sgm.models import User
from sgm.extensions import db
from . import auth_bp


def _dados():
    return request.get_json(silent=True) or request.form


@auth_bp.get("/login")
def login():
    if current_user.is_authenticated:
        return jsonify({"autenticado": True, "usuario": current_user.to_dict()})
    return jsonify({"autenticado": False, "mensagem": "Informe login e senha."}), 401


@auth_bp.post("/login")
def login_post():
    dados = _dados()
    login = (dados.get("login") or "").strip()
    senha = (dados.get("senha") or "").strip()

    u = User.query.filter_by(login=login, ativo=True).first()
    if not u or not u.check_password(senha):
        return jsonify({"erro": "Login inválido."}), 401

    login_user(u)
    return jsonify({"autenticado": True, "usuario": u.to_dict(), "next": request.args.get("next")})


@auth_bp.post("/logout")
def logout():
    logout_user()
    return jsonify({"mensagem": "Você saiu do sistema."})


@auth_bp.post("/trocar-senha")
@login_required
def trocar_senha():
    dados = _dados()
    senha_atual = dados.get("senha_atual") or ""
    nova_senha = dados.get("nova_senha")
    confirmar = dados.get("confirmar")

    if not current_user.check_password(senha_atual):
        return jsonify({"erro": "Senha atual incorreta."}), 400

    if not nova_senha or nova_senha != confirmar:
        return jsonify({"erro": "As senhas não coincidem."}), 400

    current_user.set_password(nova_senha)
    db.session.commit()
    return jsonify({"mensagem": "Senha alterada com sucesso."})
