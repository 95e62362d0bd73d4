from .user import User, UserRole
from .empreiteira import Empreiteira
from .reserva import Reserva
from .historico_importacao import HistoricoImportacao
from .audit_log import AuditLog

__all__ = [
    "User", "UserRole", "Empreiteira", "Reserva",
    "HistoricoImportacao", "AuditLog",
]
