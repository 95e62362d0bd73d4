"""Resolução de colunas das planilhas de importação.

As planilhas chegam do SAP, de exportações do próprio sistema e da extração
de PDF, cada uma com seus cabeçalhos. Para cada campo canônico existe uma
lista de apelidos em ordem de prioridade: o primeiro apelido presente na
linha com valor preenchido vence.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

ALIASES_CODIGO = (
    "codigo_sap",
    "Código SAP",
    "Codigo SAP",
    "CODIGO SAP",
    "Código",
    "CODIGO",
    "Material",
    "Nº material",
)

ALIASES_NOME = (
    "nome_material",
    "Nome_material",
    "Nome material",
    "Nome",
    "nome",
    "NOME",
    "NOME_MATERIAL",
    "Descrição",
    "Texto breve material",
    "Material",
)

ALIASES_QUANTIDADE = (
    "quantidade",
    "Quantidade",
    "QTD",
    "Qtd",
    "Qtd.necessária",
)

# utilização: colunas específicas antes da genérica "Quantidade"
ALIASES_QUANTIDADE_UTILIZACAO = (
    "Quantidade Utilizada",
    "quantidade_utilizada",
    "Total Utilizado",
    "Qtd Utilizada",
    "quantidade",
    "Quantidade",
    "QTD",
    "Qtd",
)

ALIASES_NUMERO_RESERVA = (
    "numero_reserva",
    "Reserva",
    "reserva",
    "Nº reserva",
    "Numero da reserva",
    "Número da reserva",
    "Número",
    "numero",
    "codigo",
    "Código",
)


@dataclass(frozen=True)
class LinhaResolvida:
    codigo: str
    nome: str
    quantidade: Decimal | None  # None = valor não numérico
    numero_reserva: str  # vazio quando nenhuma coluna informa

    @property
    def valida(self) -> bool:
        return bool(self.nome) and self.quantidade is not None and self.quantidade > 0


def _preenchido(v) -> bool:
    if v is None or isinstance(v, bool):
        return False
    if isinstance(v, (int, float, Decimal)):
        return v != 0
    return str(v).strip() != ""


def _texto(v) -> str:
    if v is None:
        return ""
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    return str(v).strip()


def primeiro_valor(row: dict, aliases):
    for alias in aliases:
        v = row.get(alias)
        if _preenchido(v):
            return v
    return None


def para_decimal(v) -> Decimal | None:
    if v is None:
        return Decimal("0")
    if isinstance(v, Decimal):
        return v
    if isinstance(v, (int, float)):
        return Decimal(str(v))
    txt = str(v).strip().replace(" ", "")
    if not txt:
        return Decimal("0")
    if "," in txt:
        # 1.234,50 -> 1234.50
        txt = txt.replace(".", "").replace(",", ".")
    try:
        d = Decimal(txt)
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def resolver_codigo(row: dict) -> str:
    return _texto(primeiro_valor(row, ALIASES_CODIGO))


def resolver_nome(row: dict) -> str:
    return _texto(primeiro_valor(row, ALIASES_NOME))


def resolver_quantidade(row: dict, tipo: str) -> Decimal | None:
    aliases = ALIASES_QUANTIDADE_UTILIZACAO if tipo == "utilizacao" else ALIASES_QUANTIDADE
    return para_decimal(primeiro_valor(row, aliases))


def resolver_numero_reserva(row: dict) -> str:
    return _texto(primeiro_valor(row, ALIASES_NUMERO_RESERVA))


def resolver_linha(row: dict, tipo: str) -> LinhaResolvida:
    return LinhaResolvida(
        codigo=resolver_codigo(row),
        nome=resolver_nome(row),
        quantidade=resolver_quantidade(row, tipo),
        numero_reserva=resolver_numero_reserva(row),
    )
