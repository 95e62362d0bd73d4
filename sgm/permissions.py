from functools import wraps

from flask import jsonify, redirect, url_for
from flask_login import current_user


# -------------------------------
# Verificação por papel (role)
# -------------------------------
def roles_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                return redirect(url_for("auth.login"))

            if not current_user.has_role(*roles):
                return jsonify({"erro": "Você não tem permissão para executar esta ação."}), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
