from datetime import datetime

import pytest

from config import TestConfig
from sgm import create_app
from sgm.extensions import db
from sgm.models import Reserva, User, UserRole


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    resp = client.post("/auth/login", json={"login": "admin", "senha": "123"})
    assert resp.status_code == 200
    return client


@pytest.fixture
def user_client(app):
    with app.app_context():
        u = User(nome="Operador", login="operador", ativo=True)
        u.set_password("senha")
        u.roles.append(UserRole(role="user"))
        db.session.add(u)
        db.session.commit()

    c = app.test_client()
    resp = c.post("/auth/login", json={"login": "operador", "senha": "senha"})
    assert resp.status_code == 200
    return c


@pytest.fixture
def criar_reserva(ctx):
    def _criar(**kw):
        campos = {
            "numero_reserva": "0001680630",
            "material_codigo": "",
            "material_nome": "TUBO PVC 100MM",
            "localidade": "Salvador",
            "mes_referencia": "03",
            "ano_referencia": datetime.now().year,
            "status": "Liberado",
        }
        campos.update(kw)
        r = Reserva(**campos)
        db.session.add(r)
        db.session.commit()
        return r
    return _criar
