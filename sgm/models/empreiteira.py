from datetime import datetime

from sgm.extensions import db


class Empreiteira(db.Model):
    __tablename__ = "empreiteiras"

    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(200), nullable=False, unique=True)
    cnpj = db.Column(db.String(20))
    contato = db.Column(db.String(200))
    ativo = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "nome": self.nome,
            "cnpj": self.cnpj,
            "contato": self.contato,
            "ativo": bool(self.ativo),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Empreiteira {self.nome}>"
