from flask import Blueprint

analises_bp = Blueprint("analises", __name__, url_prefix="/analises")

from . import routes  # noqa: E402,F401
