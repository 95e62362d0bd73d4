from flask import Blueprint

empreiteiras_bp = Blueprint("empreiteiras", __name__, url_prefix="/empreiteiras")

from . import routes  # noqa: E402,F401
