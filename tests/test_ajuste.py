from decimal import Decimal

import pytest

from sgm.errors import AjusteInvalidoError
from sgm.models import AuditLog
from sgm.services import ajuste
from sgm.services.ajuste import TipoAjuste


def test_previa_liberacao():
    p = ajuste.calcular_previa(100, 40, TipoAjuste.LIBERACAO, quantidade=10)
    assert (p.liberado_depois, p.utilizado_depois) == (110, 40)
    assert (p.saldo_antes, p.saldo_depois) == (60, 70)


def test_previa_correcao_mira_saldo():
    p = ajuste.calcular_previa(100, 40, TipoAjuste.CORRECAO, novo_saldo=50)
    assert p.liberado_depois == 100
    assert p.utilizado_depois == 50
    assert p.saldo_depois == 50


def test_utilizacao_nao_pode_negativar_saldo():
    p = ajuste.calcular_previa(100, 40, TipoAjuste.UTILIZACAO, quantidade=70)
    with pytest.raises(AjusteInvalidoError):
        ajuste.validar(p, TipoAjuste.UTILIZACAO, 70)


def test_correcao_aceita_saldo_negativo_mas_nao_utilizado_negativo():
    p = ajuste.calcular_previa(100, 40, TipoAjuste.CORRECAO, novo_saldo=-20)
    ajuste.validar(p, TipoAjuste.CORRECAO)
    assert p.utilizado_depois == 120

    p = ajuste.calcular_previa(100, 40, TipoAjuste.CORRECAO, novo_saldo=150)
    with pytest.raises(AjusteInvalidoError):
        ajuste.validar(p, TipoAjuste.CORRECAO)


def test_quantidade_obrigatoria_e_tipo_valido():
    p = ajuste.calcular_previa(100, 40, TipoAjuste.LIBERACAO, quantidade=0)
    with pytest.raises(AjusteInvalidoError):
        ajuste.validar(p, TipoAjuste.LIBERACAO, 0)
    with pytest.raises(AjusteInvalidoError):
        ajuste.tipo_ajuste("transferencia")


def test_ajustar_reserva_grava_campo_e_auditoria(criar_reserva):
    r = criar_reserva(quantidade_liberada=100, quantidade_utilizada=20)

    previa = ajuste.ajustar_reserva(r, "utilizacao", quantidade="30")

    assert previa.saldo_depois == 50
    assert r.quantidade_utilizada == 50
    assert r.quantidade_liberada == 100
    assert r.justificativa == "Registro de utilização em campo"

    log = AuditLog.query.filter_by(action="UPDATE", table_name="reservas").one()
    assert log.record_id == str(r.id)
    assert log.old_values["quantidade_utilizada"] == 20
    assert log.new_values["quantidade_utilizada"] == 50


def test_ajustar_material_grava_diferenca_na_primeira_reserva(criar_reserva):
    a = criar_reserva(quantidade_liberada=100, quantidade_utilizada=30)
    b = criar_reserva(quantidade_liberada=50, quantidade_utilizada=10, mes_referencia="04")

    # saldo consolidado 110 -> 100: utilizado total sobe 10
    previa = ajuste.ajustar_material([a, b], TipoAjuste.CORRECAO, novo_saldo=100, justificativa="Inventário")

    assert previa.saldo_antes == 110
    assert previa.saldo_depois == 100
    assert a.quantidade_utilizada == Decimal("40")
    assert b.quantidade_utilizada == Decimal("10")
    assert a.justificativa == "Inventário"


def test_ajustar_material_sem_reservas():
    with pytest.raises(AjusteInvalidoError):
        ajuste.ajustar_material([], TipoAjuste.LIBERACAO, quantidade=1)
