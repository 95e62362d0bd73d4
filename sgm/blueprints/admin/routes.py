from flask import jsonify, request
from flask_login import login_required

from sgm.extensions import db
from sgm.models.user import User, UserRole, ROLES
from sgm.permissions import roles_required
from sgm.services import auditoria
from . import admin_bp


def _dados():
    return request.get_json(silent=True) or request.form


# LISTA DE USUÁRIOS
@admin_bp.get("/usuarios")
@login_required
@roles_required("admin")
def usuarios_lista():
    usuarios = User.query.order_by(User.nome.asc()).all()
    return jsonify([u.to_dict() for u in usuarios])


# NOVO USUÁRIO
@admin_bp.post("/usuarios")
@login_required
@roles_required("admin")
def usuario_novo():
    dados = _dados()
    nome = dados.get("nome")
    login = dados.get("login")
    senha = dados.get("senha")
    role = dados.get("role") or "user"

    if not nome or not login or not senha:
        return jsonify({"erro": "Preencha todos os campos."}), 400
    if role not in ROLES:
        return jsonify({"erro": "Papel inválido."}), 400

    if User.query.filter_by(login=login).first():
        return jsonify({"erro": "Login já existe."}), 409

    u = User(nome=nome, login=login, ativo=True)
    u.set_password(senha)
    u.roles.append(UserRole(role=role))

    db.session.add(u)
    db.session.commit()
    return jsonify(u.to_dict()), 201


# EDITAR USUÁRIO
@admin_bp.post("/usuarios/<int:user_id>/editar")
@login_required
@roles_required("admin")
def usuario_editar(user_id):
    u = db.get_or_404(User, user_id)
    dados = _dados()

    if dados.get("nome"):
        u.nome = dados.get("nome")
    if dados.get("login") and dados.get("login") != u.login:
        if User.query.filter_by(login=dados.get("login")).first():
            return jsonify({"erro": "Login já existe."}), 409
        u.login = dados.get("login")

    db.session.commit()
    return jsonify(u.to_dict())


# PAPÉIS
@admin_bp.post("/usuarios/<int:user_id>/roles")
@login_required
@roles_required("admin")
def usuario_roles(user_id):
    u = db.get_or_404(User, user_id)
    dados = request.get_json(silent=True) or {}
    roles = dados.get("roles") or request.form.getlist("roles")

    if not roles or any(r not in ROLES for r in roles):
        return jsonify({"erro": "Papel inválido."}), 400

    u.roles.clear()
    db.session.flush()
    for role in dict.fromkeys(roles):
        u.roles.append(UserRole(role=role))
    db.session.commit()
    return jsonify(u.to_dict())


# RESETAR SENHA
@admin_bp.post("/usuarios/<int:user_id>/reset_senha")
@login_required
@roles_required("admin")
def usuario_reset_senha(user_id):
    u = db.get_or_404(User, user_id)
    u.set_password("123")
    db.session.commit()
    return jsonify({"mensagem": f"Senha de {u.login} redefinida para 123."})


# ATIVAR
@admin_bp.post("/usuarios/<int:user_id>/ativar")
@login_required
@roles_required("admin")
def usuario_ativar(user_id):
    u = db.get_or_404(User, user_id)
    u.ativo = True
    db.session.commit()
    return jsonify(u.to_dict())


# INATIVAR
@admin_bp.post("/usuarios/<int:user_id>/inativar")
@login_required
@roles_required("admin")
def usuario_inativar(user_id):
    u = db.get_or_404(User, user_id)
    u.ativo = False
    db.session.commit()
    return jsonify(u.to_dict())


# AUDITORIA
@admin_bp.get("/auditoria")
@login_required
@roles_required("admin")
def auditoria_lista():
    logs = auditoria.buscar_logs(
        table_name=request.args.get("tabela") or None,
        record_id=request.args.get("registro") or None,
        limit=request.args.get("limite", 50, type=int),
    )
    return jsonify([log.to_dict() for log in logs])
