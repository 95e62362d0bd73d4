from datetime import datetime

from sqlalchemy.ext.hybrid import hybrid_property

from sgm.extensions import db

LOCALIDADES = ("Lauro", "Salvador")
MESES = ["01", "02", "03", "04", "05", "06", "07", "08", "09", "10", "11", "12"]


class Reserva(db.Model):
    __tablename__ = "reservas"

    id = db.Column(db.Integer, primary_key=True)
    numero_reserva = db.Column(db.String(200), nullable=False, default="")
    material_codigo = db.Column(db.String(50), nullable=False, default="", index=True)
    material_nome = db.Column(db.String(300), nullable=False, index=True)

    quantidade_solicitada = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    quantidade_liberada = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    quantidade_utilizada = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    localidade = db.Column(db.String(20), nullable=False)  # Lauro | Salvador
    mes_referencia = db.Column(db.String(2), nullable=False)
    ano_referencia = db.Column(db.Integer, nullable=False, default=lambda: datetime.now().year)

    status = db.Column(db.String(20), nullable=False, default="Pendente")  # Pendente | Liberado | Parcial | Concluído
    justificativa = db.Column(db.Text)
    empreiteira = db.Column(db.String(200), nullable=False, default="")

    data_reserva = db.Column(db.Date)
    data_solicitacao = db.Column(db.Date)
    data_liberacao = db.Column(db.Date)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @hybrid_property
    def saldo(self):
        return (self.quantidade_liberada or 0) - (self.quantidade_utilizada or 0)

    @saldo.expression
    def saldo(cls):
        return cls.quantidade_liberada - cls.quantidade_utilizada

    @property
    def divergente(self) -> bool:
        return (self.quantidade_utilizada or 0) > (self.quantidade_liberada or 0)

    def to_dict(self):
        return {
            "id": self.id,
            "numero_reserva": self.numero_reserva,
            "material_codigo": self.material_codigo,
            "material_nome": self.material_nome,
            "quantidade_solicitada": float(self.quantidade_solicitada or 0),
            "quantidade_liberada": float(self.quantidade_liberada or 0),
            "quantidade_utilizada": float(self.quantidade_utilizada or 0),
            "saldo": float(self.saldo),
            "localidade": self.localidade,
            "mes_referencia": self.mes_referencia,
            "ano_referencia": self.ano_referencia,
            "status": self.status,
            "justificativa": self.justificativa,
            "empreiteira": self.empreiteira,
            "data_reserva": self.data_reserva.isoformat() if self.data_reserva else None,
            "data_solicitacao": self.data_solicitacao.isoformat() if self.data_solicitacao else None,
            "data_liberacao": self.data_liberacao.isoformat() if self.data_liberacao else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Reserva {self.id} {self.material_nome} {self.localidade}/{self.mes_referencia}>"
