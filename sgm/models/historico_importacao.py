from datetime import datetime

from sgm.extensions import db

TIPOS_IMPORTACAO = ("solicitacao", "liberacao", "utilizacao")


class HistoricoImportacao(db.Model):
    __tablename__ = "historico_importacoes"

    id = db.Column(db.Integer, primary_key=True)
    nome_arquivo = db.Column(db.String(255), nullable=False)
    tipo_importacao = db.Column(db.String(20), nullable=False)  # solicitacao | liberacao | utilizacao
    localidade = db.Column(db.String(20), nullable=False)
    mes_referencia = db.Column(db.String(2), nullable=False)
    ano_referencia = db.Column(db.Integer, nullable=False, default=lambda: datetime.now().year)
    quantidade_registros = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="Sucesso")
    empreiteira = db.Column(db.String(200))
    imported_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "nome_arquivo": self.nome_arquivo,
            "tipo_importacao": self.tipo_importacao,
            "localidade": self.localidade,
            "mes_referencia": self.mes_referencia,
            "ano_referencia": self.ano_referencia,
            "quantidade_registros": self.quantidade_registros,
            "status": self.status,
            "empreiteira": self.empreiteira,
            "imported_at": self.imported_at.isoformat() if self.imported_at else None,
        }

    def __repr__(self):
        return f"<HistoricoImportacao {self.nome_arquivo} {self.tipo_importacao}>"
