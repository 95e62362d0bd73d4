"""Importação de planilhas de solicitação, liberação e utilização.

Cada linha é conciliada com a reserva já existente do mesmo material na
mesma localidade/mês/ano. A gravação é feita linha a linha: uma falha no
meio do arquivo deixa as linhas anteriores gravadas.
"""
import enum
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from sgm.extensions import db
from sgm.models.historico_importacao import HistoricoImportacao, TIPOS_IMPORTACAO
from sgm.models.reserva import Reserva, LOCALIDADES, MESES
from sgm.services import auditoria
from sgm.services.colunas import LinhaResolvida, resolver_linha

logger = logging.getLogger(__name__)

ROTULO_TIPO = {
    "solicitacao": "Solicitados",
    "liberacao": "Liberados",
    "utilizacao": "Utilizados",
}

CAMPO_QUANTIDADE = {
    "solicitacao": "quantidade_solicitada",
    "liberacao": "quantidade_liberada",
    "utilizacao": "quantidade_utilizada",
}


class MatchStrategy(enum.Enum):
    CODIGO = "codigo"
    NOME = "nome"


# ordem das tentativas; sem match parcial (confundia materiais parecidos)
ESTRATEGIAS = (MatchStrategy.CODIGO, MatchStrategy.NOME)


@dataclass
class ResultadoImportacao:
    tipo: str
    processados: int = 0
    novos: int = 0
    atualizados: int = 0
    ignorados: int = 0
    sem_numero_reserva: int = 0
    por_estrategia: Counter = field(default_factory=Counter)
    historico_id: int | None = None

    @property
    def mensagem(self) -> str:
        return (
            f'{self.processados} registros de "{ROTULO_TIPO[self.tipo]}" processados '
            f"({self.novos} novos, {self.atualizados} atualizados)."
        )

    def to_dict(self):
        return {
            "tipo": self.tipo,
            "processados": self.processados,
            "novos": self.novos,
            "atualizados": self.atualizados,
            "ignorados": self.ignorados,
            "sem_numero_reserva": self.sem_numero_reserva,
            "por_estrategia": {s.value: self.por_estrategia.get(s, 0) for s in ESTRATEGIAS},
            "historico_id": self.historico_id,
            "mensagem": self.mensagem,
        }


def _validar_parametros(tipo, localidade, mes):
    if tipo not in TIPOS_IMPORTACAO:
        raise ValueError(f"Tipo de importação inválido: {tipo}")
    if localidade not in LOCALIDADES:
        raise ValueError(f"Localidade inválida: {localidade}")
    if mes not in MESES:
        raise ValueError(f"Mês de referência inválido: {mes}")


def _consulta_periodo(localidade, mes, ano):
    return Reserva.query.filter(
        Reserva.localidade == localidade,
        Reserva.mes_referencia == mes,
        Reserva.ano_referencia == ano,
    )


def buscar_reserva_existente(codigo: str, nome: str, localidade: str, mes: str, ano: int):
    """Retorna (reserva, estratégia) ou (None, None)."""
    for estrategia in ESTRATEGIAS:
        q = _consulta_periodo(localidade, mes, ano)
        if estrategia is MatchStrategy.CODIGO:
            if not codigo:
                continue
            q = q.filter(Reserva.material_codigo == codigo)
        else:
            q = q.filter(func.upper(Reserva.material_nome) == nome.upper())

        reserva = q.order_by(Reserva.id.asc()).first()
        if reserva:
            return reserva, estrategia
    return None, None


def _atualizar(reserva: Reserva, linha: LinhaResolvida, nome: str, numero: str,
               tipo: str, empreiteira: str, hoje: date):
    # identificadores normalizados corrigem importações antigas
    if linha.codigo:
        reserva.material_codigo = linha.codigo
    reserva.material_nome = nome
    if numero:
        reserva.numero_reserva = numero
    reserva.empreiteira = empreiteira

    qtd = linha.quantidade
    if tipo == "solicitacao":
        reserva.quantidade_solicitada = qtd
        reserva.data_solicitacao = hoje
    elif tipo == "liberacao":
        reserva.quantidade_liberada = qtd
        reserva.data_liberacao = hoje
        reserva.status = "Liberado"
    else:
        reserva.quantidade_utilizada = qtd
        novo_saldo = Decimal(reserva.quantidade_liberada or 0) - qtd
        reserva.status = "Concluído" if novo_saldo <= 0 else "Parcial"


def _nova(linha: LinhaResolvida, nome: str, numero: str, tipo: str, localidade: str,
          mes: str, ano: int, empreiteira: str, hoje: date) -> Reserva:
    qtd = linha.quantidade
    return Reserva(
        numero_reserva=numero,
        material_codigo=linha.codigo,
        material_nome=nome,
        quantidade_solicitada=qtd if tipo == "solicitacao" else Decimal("0"),
        quantidade_liberada=qtd if tipo == "liberacao" else Decimal("0"),
        quantidade_utilizada=qtd if tipo == "utilizacao" else Decimal("0"),
        localidade=localidade,
        mes_referencia=mes,
        ano_referencia=ano,
        status="Liberado" if tipo == "liberacao" else "Pendente",
        data_reserva=hoje,
        data_solicitacao=hoje if tipo == "solicitacao" else None,
        data_liberacao=hoje if tipo == "liberacao" else None,
        empreiteira=empreiteira,
    )


def importar_dados(dados, tipo: str, localidade: str, mes_referencia: str, nome_arquivo: str,
                   empreiteira: str | None = None, ano_referencia: int | None = None) -> ResultadoImportacao:
    _validar_parametros(tipo, localidade, mes_referencia)
    ano = ano_referencia or datetime.now().year
    empreiteira = empreiteira or current_app.config["EMPREITEIRA_PADRAO"]
    hoje = date.today()

    resultado = ResultadoImportacao(tipo=tipo)

    for i, row in enumerate(dados, start=1):
        linha = resolver_linha(row, tipo)
        if not linha.valida:
            logger.debug("Linha %s ignorada - material=%r quantidade=%r", i, linha.nome, linha.quantidade)
            resultado.ignorados += 1
            continue

        nome = linha.nome.upper()
        numero = linha.numero_reserva
        if not numero:
            # sem coluna de reserva: todas as linhas do arquivo ficam com o nome do arquivo
            numero = nome_arquivo
            resultado.sem_numero_reserva += 1

        existente, estrategia = buscar_reserva_existente(linha.codigo, nome, localidade, mes_referencia, ano)
        logger.debug("Linha %s: %s -> %s", i, nome[:30], estrategia.value if estrategia else "nova")

        if existente:
            _atualizar(existente, linha, nome, numero, tipo, empreiteira, hoje)
            resultado.atualizados += 1
            resultado.por_estrategia[estrategia] += 1
        else:
            db.session.add(_nova(linha, nome, numero, tipo, localidade, mes_referencia, ano, empreiteira, hoje))
            resultado.novos += 1

        db.session.commit()
        resultado.processados += 1

    if resultado.sem_numero_reserva:
        logger.warning(
            "%s linha(s) de %s sem número de reserva; usando o nome do arquivo como número",
            resultado.sem_numero_reserva, nome_arquivo,
        )

    hist = HistoricoImportacao(
        nome_arquivo=nome_arquivo,
        tipo_importacao=tipo,
        localidade=localidade,
        mes_referencia=mes_referencia,
        ano_referencia=ano,
        quantidade_registros=resultado.processados,
        status="Sucesso",
        empreiteira=empreiteira,
    )
    db.session.add(hist)
    db.session.flush()
    auditoria.registrar(
        "IMPORT", "historico_importacoes", hist.id,
        f"Importação de {ROTULO_TIPO[tipo]}: {nome_arquivo}",
        new_values=resultado.to_dict() | {"localidade": localidade, "mes_referencia": mes_referencia},
    )
    db.session.commit()
    resultado.historico_id = hist.id

    logger.info("Importação %s (%s %s/%s): %s", nome_arquivo, localidade, mes_referencia, ano, resultado.mensagem)
    return resultado
