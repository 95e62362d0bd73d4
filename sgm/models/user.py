from datetime import datetime

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from sgm.extensions import db

ROLES = ("admin", "manager", "user")


class User(UserMixin, db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(120), nullable=False, default="Usuário")
    login = db.Column(db.String(80), nullable=False, unique=True)
    senha_hash = db.Column(db.String(255), nullable=False)
    ativo = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    roles = db.relationship("UserRole", back_populates="user", cascade="all, delete-orphan")

    def set_password(self, senha: str):
        self.senha_hash = generate_password_hash(senha)

    def check_password(self, senha: str) -> bool:
        return check_password_hash(self.senha_hash, senha)

    def has_role(self, *roles) -> bool:
        return any(r.role in roles for r in self.roles)

    @property
    def is_admin(self) -> bool:
        return self.has_role("admin")

    def to_dict(self):
        return {
            "id": self.id,
            "nome": self.nome,
            "login": self.login,
            "ativo": bool(self.ativo),
            "roles": sorted(r.role for r in self.roles),
        }

    def __repr__(self):
        return f"<User {self.login}>"


class UserRole(db.Model):
    __tablename__ = "user_roles"
    __table_args__ = (db.UniqueConstraint("user_id", "role"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="user")  # admin | manager | user
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="roles")

    def __repr__(self):
        return f"<UserRole {self.user_id} {self.role}>"
