"""Conciliação liberado x utilizado.

Funções puras sobre a lista de reservas já filtrada; nada aqui acessa o
banco. As rotas carregam as reservas, aplicam o FiltroReservas e chamam
estas funções a cada requisição.
"""
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal

from sgm.models.reserva import MESES

TODOS = "Todos"

NOMES_MESES = ["Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez"]

MESES_EXTENSO = {
    "01": "Janeiro", "02": "Fevereiro", "03": "Março",
    "04": "Abril", "05": "Maio", "06": "Junho",
    "07": "Julho", "08": "Agosto", "09": "Setembro",
    "10": "Outubro", "11": "Novembro", "12": "Dezembro",
}

FAIXA_ALTA = Decimal("80")
FAIXA_MEDIA = Decimal("40")


def _d(v) -> Decimal:
    if v is None:
        return Decimal("0")
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


def _ativo(v) -> bool:
    return v not in (None, "", TODOS)


@dataclass(frozen=True)
class FiltroReservas:
    localidade: str | None = None
    mes: str | None = None
    ano: int | None = None
    material: str | None = None
    status: str | None = None

    @classmethod
    def from_args(cls, args, ano_padrao: int | None = None):
        ano = str(args.get("ano") or "").strip()
        return cls(
            localidade=args.get("localidade") or None,
            mes=args.get("mes") or None,
            ano=int(ano) if ano.isdigit() else ano_padrao,
            material=(args.get("material") or "").strip() or None,
            status=args.get("status") or None,
        )

    def aceita(self, r) -> bool:
        if _ativo(self.localidade) and r.localidade != self.localidade:
            return False
        if _ativo(self.mes) and r.mes_referencia != self.mes:
            return False
        if self.ano is not None and r.ano_referencia != self.ano:
            return False
        if _ativo(self.status) and r.status != self.status:
            return False
        if _ativo(self.material):
            termo = self.material.lower()
            if termo not in (r.material_nome or "").lower() and self.material not in (r.material_codigo or ""):
                return False
        return True

    def aplicar(self, reservas):
        return [r for r in reservas if self.aceita(r)]

    def aceita_historico(self, h) -> bool:
        if _ativo(self.localidade) and h.localidade != self.localidade:
            return False
        if _ativo(self.mes) and h.mes_referencia != self.mes:
            return False
        if self.ano is not None and h.ano_referencia != self.ano:
            return False
        return True

    def rotulos(self) -> dict:
        """Filtros em texto, para o cabeçalho dos relatórios."""
        out = {}
        if _ativo(self.localidade):
            out["Localidade"] = self.localidade
        if _ativo(self.mes):
            out["Mês"] = MESES_EXTENSO.get(self.mes, self.mes)
        if self.ano is not None:
            out["Ano"] = str(self.ano)
        if _ativo(self.material):
            out["Material"] = self.material
        if _ativo(self.status):
            out["Status"] = self.status
        return out


@dataclass
class ResumoMaterial:
    nome: str
    codigo: str
    liberado: Decimal = Decimal("0")
    utilizado: Decimal = Decimal("0")
    reservas: int = 0

    @property
    def saldo(self) -> Decimal:
        return self.liberado - self.utilizado

    @property
    def taxa_utilizacao(self) -> Decimal:
        if self.liberado == 0:
            return Decimal("0")
        return self.utilizado / self.liberado * 100

    @property
    def divergencia(self) -> Decimal:
        return max(Decimal("0"), self.utilizado - self.liberado)

    def to_dict(self):
        return {
            "nome": self.nome,
            "codigo": self.codigo,
            "liberado": float(self.liberado),
            "utilizado": float(self.utilizado),
            "saldo": float(self.saldo),
            "reservas": self.reservas,
            "taxa_utilizacao": round(float(self.taxa_utilizacao), 2),
            "divergencia": float(self.divergencia),
        }


# =========================
# Por material
# =========================
def agrupar_por_material(reservas) -> list[ResumoMaterial]:
    grupos: "OrderedDict[str, ResumoMaterial]" = OrderedDict()
    for r in reservas:
        m = grupos.get(r.material_nome)
        if m is None:
            m = grupos[r.material_nome] = ResumoMaterial(nome=r.material_nome, codigo=r.material_codigo or "")
        m.liberado += _d(r.quantidade_liberada)
        m.utilizado += _d(r.quantidade_utilizada)
        m.reservas += 1
    return list(grupos.values())


def visao_por_material(reservas) -> list[ResumoMaterial]:
    return sorted(agrupar_por_material(reservas), key=lambda m: m.liberado, reverse=True)


def materiais_divergentes(reservas) -> list[ResumoMaterial]:
    divergentes = [m for m in agrupar_por_material(reservas) if m.utilizado > m.liberado]
    return sorted(divergentes, key=lambda m: m.divergencia, reverse=True)


def divergencia_total(reservas) -> Decimal:
    return sum((m.divergencia for m in agrupar_por_material(reservas)), Decimal("0"))


def severidade(divergencia) -> str:
    divergencia = _d(divergencia)
    if divergencia >= 50:
        return "high"
    if divergencia >= 10:
        return "medium"
    return "low"


def reservas_divergentes(reservas) -> list[dict]:
    """Reservas com utilizado > liberado, maior excesso primeiro."""
    itens = []
    for r in reservas:
        liberado = _d(r.quantidade_liberada)
        utilizado = _d(r.quantidade_utilizada)
        if utilizado <= liberado:
            continue
        excesso = utilizado - liberado
        itens.append({
            "id": r.id,
            "material": r.material_nome,
            "localidade": r.localidade,
            "mes": r.mes_referencia,
            "liberado": float(liberado),
            "utilizado": float(utilizado),
            "saldo": float(liberado - utilizado),
            "divergencia": float(excesso),
            "severidade": severidade(excesso),
        })
    return sorted(itens, key=lambda x: x["divergencia"], reverse=True)


# =========================
# Eficiência
# =========================
def faixa_eficiencia(taxa) -> str:
    if taxa >= FAIXA_ALTA:
        return "alta"
    if taxa >= FAIXA_MEDIA:
        return "media"
    return "baixa"


def distribuicao_eficiencia(reservas) -> dict:
    out = {"alta": 0, "media": 0, "baixa": 0}
    for m in agrupar_por_material(reservas):
        if m.liberado == 0:
            continue
        out[faixa_eficiencia(m.taxa_utilizacao)] += 1
    return out


def metricas_analise(reservas) -> dict:
    materiais = agrupar_por_material(reservas)
    total_liberado = sum((m.liberado for m in materiais), Decimal("0"))
    total_utilizado = sum((m.utilizado for m in materiais), Decimal("0"))
    taxa = total_utilizado / total_liberado * 100 if total_liberado > 0 else Decimal("0")
    return {
        "taxa_utilizacao": round(float(taxa), 2),
        "materiais_unicos": len(materiais),
        "media_por_material": round(float(total_liberado / len(materiais))) if materiais else 0,
        "alta_eficiencia": sum(1 for m in materiais if m.taxa_utilizacao >= FAIXA_ALTA),
        "baixa_eficiencia": sum(1 for m in materiais if m.taxa_utilizacao < FAIXA_MEDIA and m.liberado > 0),
    }


# =========================
# Evolução mensal / totais
# =========================
def evolucao_mensal(reservas) -> list[dict]:
    liberado = {mes: Decimal("0") for mes in MESES}
    utilizado = {mes: Decimal("0") for mes in MESES}
    for r in reservas:
        if r.mes_referencia in liberado:
            liberado[r.mes_referencia] += _d(r.quantidade_liberada)
            utilizado[r.mes_referencia] += _d(r.quantidade_utilizada)
    return [
        {"mes": mes, "nome": NOMES_MESES[i], "liberado": float(liberado[mes]), "utilizado": float(utilizado[mes])}
        for i, mes in enumerate(MESES)
    ]


def totais(reservas) -> dict:
    liberado = sum((_d(r.quantidade_liberada) for r in reservas), Decimal("0"))
    utilizado = sum((_d(r.quantidade_utilizada) for r in reservas), Decimal("0"))
    saldo = sum((_d(r.quantidade_liberada) - _d(r.quantidade_utilizada) for r in reservas), Decimal("0"))
    return {"liberado": liberado, "utilizado": utilizado, "saldo": saldo}


def metricas_dashboard(reservas, historico, filtro: FiltroReservas) -> dict:
    """`reservas` já filtradas; `historico` completo (o filtro é aplicado aqui)."""
    total_reservas = sum(
        1 for h in historico
        if filtro.aceita_historico(h) and h.tipo_importacao == "liberacao" and h.status == "Sucesso"
    )
    t = totais(reservas)
    return {
        "total_reservas": total_reservas,
        "total_liberado": float(t["liberado"]),
        "total_utilizado": float(t["utilizado"]),
        "saldo_estoque": float(t["saldo"]),
        "divergencia_total": float(divergencia_total(reservas)),
    }


def distribuicao_liberado_utilizado(reservas) -> list[dict]:
    t = totais(reservas)
    return [
        {"nome": "Qtd. Liberada", "valor": float(t["liberado"])},
        {"nome": "Qtd. Utilizada", "valor": float(t["utilizado"])},
    ]


def top_materiais(reservas, limite: int = 5) -> list[dict]:
    """Volume por material usando a maior quantidade da linha (utilizado, liberado ou solicitado)."""
    volume: "OrderedDict[str, Decimal]" = OrderedDict()
    for r in reservas:
        maior = max(_d(r.quantidade_utilizada), _d(r.quantidade_liberada), _d(r.quantidade_solicitada))
        volume[r.material_nome] = volume.get(r.material_nome, Decimal("0")) + maior
    ordenado = sorted(((n, q) for n, q in volume.items() if q > 0), key=lambda x: x[1], reverse=True)
    return [{"nome": n, "quantidade": float(q)} for n, q in ordenado[:limite]]


# =========================
# Estoque por material
# =========================
def nivel_estoque(saldo, total_liberado) -> str:
    saldo, total_liberado = _d(saldo), _d(total_liberado)
    if total_liberado == 0:
        return "high"
    percentual = saldo / total_liberado * 100
    if percentual <= 10:
        return "low"
    if percentual <= 30:
        return "medium"
    return "high"


def estoque_por_material(reservas, nivel: str | None = None) -> list[dict]:
    """Só materiais que já tiveram liberação, maior saldo primeiro."""
    ids: dict[str, list] = {}
    for r in reservas:
        ids.setdefault(r.material_nome, []).append(r.id)

    itens = []
    for m in agrupar_por_material(reservas):
        if m.liberado <= 0:
            continue
        status = nivel_estoque(m.saldo, m.liberado)
        if _ativo(nivel) and status != nivel:
            continue
        itens.append({
            "material_codigo": m.codigo,
            "material_nome": m.nome,
            "total_liberado": float(m.liberado),
            "total_utilizado": float(m.utilizado),
            "saldo": float(m.saldo),
            "nivel": status,
            "reserva_ids": ids[m.nome],
        })
    return sorted(itens, key=lambda x: x["saldo"], reverse=True)
