"""Ajuste manual de estoque (telas de divergências e de estoque).

O operador escolhe a intenção, vê o antes/depois e grava um único campo.
"""
import enum
from dataclasses import dataclass
from decimal import Decimal

from sgm.errors import AjusteInvalidoError
from sgm.extensions import db
from sgm.models.reserva import Reserva
from sgm.services import auditoria
from sgm.services.colunas import para_decimal


class TipoAjuste(enum.Enum):
    LIBERACAO = "liberacao"  # +recebimento
    UTILIZACAO = "utilizacao"  # +baixa
    CORRECAO = "correcao"  # saldo alvo após conferência física


JUSTIFICATIVA_PADRAO = {
    TipoAjuste.LIBERACAO: "Liberação adicional de material",
    TipoAjuste.UTILIZACAO: "Registro de utilização em campo",
    TipoAjuste.CORRECAO: "Correção manual após conferência",
}


@dataclass(frozen=True)
class Previa:
    liberado_antes: Decimal
    liberado_depois: Decimal
    utilizado_antes: Decimal
    utilizado_depois: Decimal

    @property
    def saldo_antes(self) -> Decimal:
        return self.liberado_antes - self.utilizado_antes

    @property
    def saldo_depois(self) -> Decimal:
        return self.liberado_depois - self.utilizado_depois

    def to_dict(self):
        return {
            "liberado": {"antes": float(self.liberado_antes), "depois": float(self.liberado_depois)},
            "utilizado": {"antes": float(self.utilizado_antes), "depois": float(self.utilizado_depois)},
            "saldo": {"antes": float(self.saldo_antes), "depois": float(self.saldo_depois)},
        }


def _qtd(v) -> Decimal:
    d = para_decimal(v)
    if d is None:
        raise AjusteInvalidoError("Quantidade inválida.")
    return d


def tipo_ajuste(valor) -> TipoAjuste:
    try:
        return TipoAjuste(valor)
    except ValueError:
        raise AjusteInvalidoError(f"Tipo de ajuste inválido: {valor}") from None


def calcular_previa(liberado, utilizado, tipo: TipoAjuste, quantidade=0, novo_saldo=0) -> Previa:
    liberado, utilizado = _qtd(liberado), _qtd(utilizado)
    novo_liberado, novo_utilizado = liberado, utilizado

    if tipo is TipoAjuste.LIBERACAO:
        novo_liberado = liberado + _qtd(quantidade)
    elif tipo is TipoAjuste.UTILIZACAO:
        novo_utilizado = utilizado + _qtd(quantidade)
    else:
        novo_utilizado = novo_liberado - _qtd(novo_saldo)

    return Previa(liberado, novo_liberado, utilizado, novo_utilizado)


def validar(previa: Previa, tipo: TipoAjuste, quantidade=0):
    if tipo in (TipoAjuste.LIBERACAO, TipoAjuste.UTILIZACAO) and _qtd(quantidade) <= 0:
        raise AjusteInvalidoError("Informe uma quantidade maior que zero.")
    # correção pode mirar qualquer saldo; as demais não podem deixar saldo negativo
    if tipo is not TipoAjuste.CORRECAO and previa.saldo_depois < 0:
        raise AjusteInvalidoError("O saldo não pode ficar negativo.")
    if previa.utilizado_depois < 0:
        raise AjusteInvalidoError("A quantidade utilizada não pode ficar negativa.")


def _gravar(reserva: Reserva, campo: str, valor: Decimal, justificativa: str, descricao: str):
    antes = {campo: float(getattr(reserva, campo) or 0), "justificativa": reserva.justificativa}
    setattr(reserva, campo, valor)
    reserva.justificativa = justificativa
    auditoria.registrar(
        "UPDATE", "reservas", reserva.id, descricao,
        old_values=antes,
        new_values={campo: float(valor), "justificativa": justificativa},
    )
    db.session.commit()


def ajustar_reserva(reserva: Reserva, tipo, quantidade=0, novo_saldo=0, justificativa: str = "") -> Previa:
    tipo = tipo if isinstance(tipo, TipoAjuste) else tipo_ajuste(tipo)
    previa = calcular_previa(reserva.quantidade_liberada, reserva.quantidade_utilizada, tipo, quantidade, novo_saldo)
    validar(previa, tipo, quantidade)

    justificativa = (justificativa or "").strip() or JUSTIFICATIVA_PADRAO[tipo]
    if tipo is TipoAjuste.LIBERACAO:
        _gravar(reserva, "quantidade_liberada", previa.liberado_depois, justificativa, f"Ajuste ({tipo.value})")
    else:
        _gravar(reserva, "quantidade_utilizada", previa.utilizado_depois, justificativa, f"Ajuste ({tipo.value})")
    return previa


def ajustar_material(reservas: list[Reserva], tipo, quantidade=0, novo_saldo=0, justificativa: str = "") -> Previa:
    """Ajuste sobre o saldo consolidado do material; grava a diferença na primeira reserva do grupo."""
    if not reservas:
        raise AjusteInvalidoError("Material sem reservas para ajustar.")
    tipo = tipo if isinstance(tipo, TipoAjuste) else tipo_ajuste(tipo)

    total_liberado = sum((Decimal(r.quantidade_liberada or 0) for r in reservas), Decimal("0"))
    total_utilizado = sum((Decimal(r.quantidade_utilizada or 0) for r in reservas), Decimal("0"))
    previa = calcular_previa(total_liberado, total_utilizado, tipo, quantidade, novo_saldo)
    validar(previa, tipo, quantidade)

    primeira = reservas[0]
    justificativa = (justificativa or "").strip() or JUSTIFICATIVA_PADRAO[tipo]
    descricao = f"Ajuste de estoque ({tipo.value}) - {primeira.material_nome}"
    if tipo is TipoAjuste.LIBERACAO:
        valor = Decimal(primeira.quantidade_liberada or 0) + (previa.liberado_depois - total_liberado)
        _gravar(primeira, "quantidade_liberada", valor, justificativa, descricao)
    else:
        valor = Decimal(primeira.quantidade_utilizada or 0) + (previa.utilizado_depois - total_utilizado)
        if valor < 0:
            raise AjusteInvalidoError("A quantidade utilizada da reserva não pode ficar negativa.")
        _gravar(primeira, "quantidade_utilizada", valor, justificativa, descricao)
    return previa
