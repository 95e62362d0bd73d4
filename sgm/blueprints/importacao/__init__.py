from flask import Blueprint

importacao_bp = Blueprint("importacao", __name__, url_prefix="/importar")

from . import routes  # noqa: E402,F401
