from decimal import Decimal
from types import SimpleNamespace

from sgm.services import conciliacao as cc
from sgm.services.conciliacao import FiltroReservas


def _r(nome, liberado=0, utilizado=0, solicitado=0, **kw):
    campos = dict(
        id=kw.pop("id", None),
        material_nome=nome,
        material_codigo=kw.pop("codigo", ""),
        quantidade_solicitada=Decimal(str(solicitado)),
        quantidade_liberada=Decimal(str(liberado)),
        quantidade_utilizada=Decimal(str(utilizado)),
        localidade=kw.pop("localidade", "Salvador"),
        mes_referencia=kw.pop("mes", "03"),
        ano_referencia=kw.pop("ano", 2026),
        status=kw.pop("status", "Liberado"),
    )
    return SimpleNamespace(**campos, **kw)


def _hist(localidade="Salvador", mes="03", ano=2026, tipo="liberacao", status="Sucesso"):
    return SimpleNamespace(localidade=localidade, mes_referencia=mes, ano_referencia=ano,
                           tipo_importacao=tipo, status=status)


RESERVAS = [
    _r("TUBO", 100, 150, id=1, codigo="100"),
    _r("TUBO", 100, 0, id=2, codigo="100"),
    _r("LUVA", 10, 30, id=3, codigo="200", localidade="Lauro", mes="04"),
    _r("CAP", 50, 10, id=4, codigo="300"),
]


def test_saldo_total_e_liberado_menos_utilizado():
    t = cc.totais(RESERVAS)
    assert t["liberado"] == 260
    assert t["utilizado"] == 190
    assert t["saldo"] == t["liberado"] - t["utilizado"]


def test_divergencia_total_por_material():
    # TUBO: 200 liberado x 150 utilizado no agregado, sem divergência
    assert cc.divergencia_total(RESERVAS) == 20
    materiais = cc.materiais_divergentes(RESERVAS)
    assert [m.nome for m in materiais] == ["LUVA"]


def test_reservas_divergentes_ordenadas_por_excesso():
    reservas = [_r("A", 10, 15, id=1), _r("B", 10, 80, id=2), _r("C", 10, 30, id=3), _r("D", 10, 10, id=4)]
    itens = cc.reservas_divergentes(reservas)
    assert [i["id"] for i in itens] == [2, 3, 1]
    assert [i["severidade"] for i in itens] == ["high", "medium", "low"]
    assert itens[0]["saldo"] == -70


def test_distribuicao_eficiencia():
    reservas = [
        _r("ALTA", 100, 90),
        _r("MEDIA", 100, 50),
        _r("BAIXA", 100, 10),
        _r("SEM LIBERACAO", 0, 5),
    ]
    assert cc.distribuicao_eficiencia(reservas) == {"alta": 1, "media": 1, "baixa": 1}
    assert cc.faixa_eficiencia(Decimal("80")) == "alta"
    assert cc.faixa_eficiencia(Decimal("79.9")) == "media"


def test_visao_por_material_ordenada_por_liberado():
    visao = cc.visao_por_material(RESERVAS)
    assert [m.nome for m in visao] == ["TUBO", "CAP", "LUVA"]
    assert visao[0].reservas == 2
    assert visao[0].taxa_utilizacao == 75


def test_evolucao_mensal_tem_doze_meses():
    evolucao = cc.evolucao_mensal(RESERVAS)
    assert len(evolucao) == 12
    marco = evolucao[2]
    assert (marco["mes"], marco["nome"]) == ("03", "Mar")
    assert marco["liberado"] == 250
    assert evolucao[3]["utilizado"] == 30
    assert evolucao[0]["liberado"] == 0


def test_filtro_reservas():
    filtro = FiltroReservas.from_args({"localidade": "Salvador", "mes": "Todos", "material": "tub"}, ano_padrao=2026)
    assert filtro.ano == 2026
    assert [r.id for r in filtro.aplicar(RESERVAS)] == [1, 2]

    por_codigo = FiltroReservas(material="300")
    assert [r.id for r in por_codigo.aplicar(RESERVAS)] == [4]

    outro_ano = FiltroReservas.from_args({"ano": "2025"}, ano_padrao=2026)
    assert outro_ano.aplicar(RESERVAS) == []


def test_rotulos_do_filtro():
    filtro = FiltroReservas(localidade="Lauro", mes="03", ano=2026, status="Todos")
    assert filtro.rotulos() == {"Localidade": "Lauro", "Mês": "Março", "Ano": "2026"}


def test_metricas_dashboard():
    filtro = FiltroReservas(localidade="Salvador", ano=2026)
    reservas = filtro.aplicar(RESERVAS)
    historico = [_hist(), _hist(), _hist(localidade="Lauro"), _hist(tipo="utilizacao"), _hist(status="Erro")]

    m = cc.metricas_dashboard(reservas, historico, filtro)
    assert m == {
        "total_reservas": 2,
        "total_liberado": 250.0,
        "total_utilizado": 160.0,
        "saldo_estoque": 90.0,
        "divergencia_total": 0.0,
    }


def test_top_materiais_usa_maior_quantidade_da_linha():
    reservas = [_r("A", 10, 0, solicitado=40), _r("B", 30, 5), _r("A", 0, 0, solicitado=0), _r("ZERO")]
    top = cc.top_materiais(reservas)
    assert top == [{"nome": "A", "quantidade": 40.0}, {"nome": "B", "quantidade": 30.0}]


def test_nivel_estoque():
    assert cc.nivel_estoque(5, 100) == "low"
    assert cc.nivel_estoque(10, 100) == "low"
    assert cc.nivel_estoque(20, 100) == "medium"
    assert cc.nivel_estoque(50, 100) == "high"
    assert cc.nivel_estoque(0, 0) == "high"


def test_estoque_por_material():
    reservas = RESERVAS + [_r("SO SOLICITADO", 0, 0, solicitado=10, id=5)]
    itens = cc.estoque_por_material(reservas)
    assert [i["material_nome"] for i in itens] == ["TUBO", "CAP", "LUVA"]
    assert itens[0]["reserva_ids"] == [1, 2]
    assert itens[0]["nivel"] == "medium"
    assert itens[1]["nivel"] == "high"

    baixos = cc.estoque_por_material(reservas, nivel="low")
    assert [i["material_nome"] for i in baixos] == ["LUVA"]
