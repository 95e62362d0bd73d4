"""Reset do sistema (SQLite) + cria usuário admin.

Uso:
  python reset_sistema.py

Ele apaga o arquivo instance/sgm.db (se existir), recria tabelas e cria:
  login=admin  senha=123  (ou ADMIN_LOGIN / ADMIN_SENHA do ambiente)
  empreiteiras padrão da importação
"""

import os

from sgm import create_app
from sgm.extensions import db
from sgm.models import Empreiteira

DB_FILES = ("sgm.db", os.path.join("instance", "sgm.db"))
EMPREITEIRAS = ("Consórcio Nova Bolandeira II", "Outra Empreiteira")


def resetar_banco():
    for arquivo in DB_FILES:
        if os.path.exists(arquivo):
            os.remove(arquivo)

    # create_app recria as tabelas e o administrador
    app = create_app()
    with app.app_context():
        for nome in EMPREITEIRAS:
            db.session.add(Empreiteira(nome=nome, ativo=True))
        db.session.commit()

        print("OK! Banco recriado.")
        print(f"Login: {app.config['ADMIN_LOGIN']}  |  Senha: {app.config['ADMIN_SENHA']}")


if __name__ == "__main__":
    resetar_banco()
