import logging
from datetime import datetime
from decimal import Decimal

import pytest

from sgm.models import AuditLog, HistoricoImportacao, Reserva
from sgm.services.conciliacao import reservas_divergentes
from sgm.services.importacao import MatchStrategy, importar_dados


def test_liberacao_seguida_de_utilizacao_acima_do_liberado(ctx):
    r1 = importar_dados(
        [{"Nome material": "TUBO PVC 100MM", "Quantidade": 500}],
        "liberacao", "Salvador", "03", "liberados_marco.xlsx",
    )
    assert (r1.novos, r1.atualizados) == (1, 0)

    reserva = Reserva.query.one()
    assert reserva.quantidade_liberada == 500
    assert reserva.quantidade_utilizada == 0
    assert reserva.status == "Liberado"
    assert reserva.ano_referencia == datetime.now().year

    r2 = importar_dados(
        [{"Nome_material": "TUBO PVC 100MM", "Quantidade Utilizada": 600}],
        "utilizacao", "Salvador", "03", "utilizados_marco.xlsx",
    )
    assert (r2.novos, r2.atualizados) == (0, 1)

    reserva = Reserva.query.one()
    assert reserva.quantidade_utilizada == 600
    assert reserva.saldo == -100
    assert reserva.status == "Concluído"

    divergentes = reservas_divergentes(Reserva.query.all())
    assert len(divergentes) == 1
    assert divergentes[0]["divergencia"] == 100
    assert divergentes[0]["severidade"] == "high"


def test_utilizacao_parcial(ctx):
    importar_dados([{"nome_material": "CAP 50MM", "quantidade": 10}], "liberacao", "Lauro", "05", "a.csv")
    importar_dados([{"nome_material": "CAP 50MM", "Quantidade Utilizada": 4}], "utilizacao", "Lauro", "05", "b.csv")
    assert Reserva.query.one().status == "Parcial"


def test_reimportar_mesmo_arquivo_atualiza(ctx):
    dados = [
        {"codigo_sap": "100", "nome_material": "TUBO PVC 100MM", "quantidade": 500, "numero_reserva": "R1"},
        {"codigo_sap": "200", "nome_material": "LUVA 100MM", "quantidade": 20, "numero_reserva": "R1"},
    ]
    importar_dados(dados, "liberacao", "Salvador", "03", "lib.xlsx")
    resultado = importar_dados(dados, "liberacao", "Salvador", "03", "lib.xlsx")

    assert Reserva.query.count() == 2
    assert (resultado.novos, resultado.atualizados) == (0, 2)
    assert resultado.por_estrategia[MatchStrategy.CODIGO] == 2
    assert resultado.mensagem == '2 registros de "Liberados" processados (0 novos, 2 atualizados).'


def test_match_por_codigo_antes_do_nome(criar_reserva):
    criar_reserva(material_codigo="100", material_nome="NOME ANTIGO", quantidade_liberada=50)

    resultado = importar_dados(
        [{"codigo_sap": "100", "nome_material": "nome novo", "quantidade": 80}],
        "liberacao", "Salvador", "03", "lib.xlsx",
    )

    reserva = Reserva.query.one()
    assert resultado.por_estrategia[MatchStrategy.CODIGO] == 1
    assert reserva.material_nome == "NOME NOVO"
    assert reserva.quantidade_liberada == 80


def test_match_por_nome_ignora_caixa_e_corrige_codigo(criar_reserva):
    criar_reserva(material_codigo="", material_nome="CURVA 90 PVC", quantidade_liberada=5)

    resultado = importar_dados(
        [{"Código SAP": "300", "Nome": "curva 90 pvc", "Quantidade": 9}],
        "liberacao", "Salvador", "03", "lib.xlsx",
    )

    reserva = Reserva.query.one()
    assert resultado.por_estrategia[MatchStrategy.NOME] == 1
    assert reserva.material_codigo == "300"
    assert reserva.quantidade_liberada == 9


def test_outro_periodo_ou_localidade_cria_registro(criar_reserva):
    criar_reserva(material_nome="TUBO PVC 100MM", quantidade_liberada=5)
    linha = [{"Nome": "TUBO PVC 100MM", "Quantidade": 1}]

    importar_dados(linha, "liberacao", "Lauro", "03", "a.xlsx")
    importar_dados(linha, "liberacao", "Salvador", "04", "b.xlsx")
    importar_dados(linha, "liberacao", "Salvador", "03", "c.xlsx", ano_referencia=2001)

    assert Reserva.query.count() == 4


def test_linhas_invalidas_sao_ignoradas(ctx):
    dados = [
        {"Nome": "SEM QUANTIDADE", "Quantidade": 0},
        {"Quantidade": 5},
        {"Nome": "TEXTO", "Quantidade": "abc"},
        {"Nome": "VALIDA", "Quantidade": "2,5"},
    ]
    resultado = importar_dados(dados, "solicitacao", "Salvador", "01", "sol.csv")

    assert resultado.processados == 1
    assert resultado.ignorados == 3
    reserva = Reserva.query.one()
    assert reserva.material_nome == "VALIDA"
    assert reserva.quantidade_solicitada == Decimal("2.5")
    assert reserva.status == "Pendente"


def test_sem_numero_de_reserva_usa_nome_do_arquivo(ctx, caplog):
    with caplog.at_level(logging.WARNING, logger="sgm.services.importacao"):
        resultado = importar_dados([{"Nome": "TE 50MM", "Quantidade": 3}], "liberacao", "Lauro", "02", "planilha.xlsx")

    assert resultado.sem_numero_reserva == 1
    assert Reserva.query.one().numero_reserva == "planilha.xlsx"
    assert "sem número de reserva" in caplog.text


def test_historico_e_auditoria(ctx):
    resultado = importar_dados([{"Nome": "TE 50MM", "Quantidade": 3}], "liberacao", "Lauro", "02", "lib.xlsx",
                               empreiteira="Outra Empreiteira")

    hist = HistoricoImportacao.query.one()
    assert hist.id == resultado.historico_id
    assert hist.quantidade_registros == 1
    assert hist.status == "Sucesso"
    assert hist.empreiteira == "Outra Empreiteira"

    log = AuditLog.query.filter_by(action="IMPORT").one()
    assert log.table_name == "historico_importacoes"
    assert log.user_name == "Sistema"
    assert log.new_values["novos"] == 1


@pytest.mark.parametrize("tipo,localidade,mes", [
    ("devolucao", "Salvador", "01"),
    ("liberacao", "Camaçari", "01"),
    ("liberacao", "Salvador", "13"),
])
def test_parametros_invalidos(ctx, tipo, localidade, mes):
    with pytest.raises(ValueError):
        importar_dados([{"Nome": "X", "Quantidade": 1}], tipo, localidade, mes, "x.xlsx")
    assert Reserva.query.count() == 0


def test_empreiteira_padrao_vem_da_configuracao(app, ctx):
    app.config["EMPREITEIRA_PADRAO"] = "Construtora Padrão"
    importar_dados([{"Nome": "TE 50MM", "Quantidade": 3}], "liberacao", "Lauro", "02", "lib.xlsx")

    assert Reserva.query.one().empreiteira == "Construtora Padrão"
    assert HistoricoImportacao.query.one().empreiteira == "Construtora Padrão"
