from flask import has_request_context
from flask_login import current_user

from sgm.extensions import db
from sgm.models.audit_log import AuditLog, ACOES


def _usuario_atual():
    if has_request_context() and current_user and current_user.is_authenticated:
        return current_user.id, current_user.nome or current_user.login
    return None, "Sistema"


def registrar(action: str, table_name: str, record_id, description: str,
              old_values: dict | None = None, new_values: dict | None = None) -> AuditLog:
    """Adiciona a entrada na sessão; o commit fica com quem chamou."""
    if action not in ACOES:
        raise ValueError(f"Ação de auditoria inválida: {action}")

    user_id, user_name = _usuario_atual()
    log = AuditLog(
        user_id=user_id,
        user_name=user_name,
        action=action,
        table_name=table_name,
        record_id=str(record_id) if record_id is not None else None,
        old_values=old_values or None,
        new_values=new_values or None,
        description=description,
    )
    db.session.add(log)
    return log


def buscar_logs(table_name: str | None = None, record_id=None, limit: int = 50):
    q = AuditLog.query
    if table_name:
        q = q.filter(AuditLog.table_name == table_name)
    if record_id is not None:
        q = q.filter(AuditLog.record_id == str(record_id))
    return q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
