import logging
import os

from flask import Flask, jsonify, redirect, url_for

from .extensions import db, login_manager
from .errors import SGMError
from .models.user import User
from config import Config


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        db_url = os.getenv("DATABASE_URL")
        if db_url:
            if db_url.startswith("postgres://"):
                db_url = db_url.replace("postgres://", "postgresql+psycopg://", 1)
            app.config["SQLALCHEMY_DATABASE_URI"] = db_url
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///sgm.db"

    _configurar_logging(app)

    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message = "Faça login para acessar o sistema."

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Blueprints
    from sgm.blueprints.auth import auth_bp
    from sgm.blueprints.reservas import reservas_bp
    from sgm.blueprints.importacao import importacao_bp
    from sgm.blueprints.analises import analises_bp
    from sgm.blueprints.empreiteiras import empreiteiras_bp
    from sgm.blueprints.relatorios import relatorios_bp
    from sgm.blueprints.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(reservas_bp)
    app.register_blueprint(importacao_bp)
    app.register_blueprint(analises_bp)
    app.register_blueprint(empreiteiras_bp)
    app.register_blueprint(relatorios_bp)
    app.register_blueprint(admin_bp)

    @app.errorhandler(SGMError)
    def sgm_error(err):
        return jsonify({"erro": err.mensagem}), err.status

    @app.get("/")
    def index():
        return redirect(url_for("analises.dashboard"))

    from sgm import sinais
    sinais.registrar()

    # cria tabelas + admin padrão
    with app.app_context():
        db.create_all()
        _seed_admin(app)

    return app


def _configurar_logging(app):
    nivel = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.getLogger("sgm").setLevel(nivel)
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")


def _seed_admin(app):
    from sgm.models.user import User, UserRole

    login = app.config["ADMIN_LOGIN"]
    admin = User.query.filter_by(login=login).first()
    if not admin:
        u = User(nome="Administrador", login=login, ativo=True)
        u.set_password(app.config["ADMIN_SENHA"])
        db.session.add(u)
        db.session.flush()
        db.session.add(UserRole(user_id=u.id, role="admin"))
        db.session.commit()
