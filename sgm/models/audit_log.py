from datetime import datetime

from sgm.extensions import db

ACOES = ("CREATE", "UPDATE", "DELETE", "IMPORT")


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    user_name = db.Column(db.String(120), nullable=False, default="Sistema")
    action = db.Column(db.String(10), nullable=False)
    table_name = db.Column(db.String(60), nullable=False)
    record_id = db.Column(db.String(50))
    old_values = db.Column(db.JSON)
    new_values = db.Column(db.JSON)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "action": self.action,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<AuditLog {self.action} {self.table_name}#{self.record_id}>"
