import logging

from flask import has_app_context
from sqlalchemy import event

from sgm.models.historico_importacao import HistoricoImportacao
from sgm.models.reserva import Reserva
from sgm.services import notificacoes

logger = logging.getLogger(__name__)


def _importacao_criada(mapper, connection, target):
    if has_app_context():
        logger.debug("Nova importação detectada: %s", target.nome_arquivo)
        notificacoes.invalidar()


def _reserva_gravada(mapper, connection, target):
    # qualquer gravação pode criar ou resolver uma divergência; só a criação é novidade
    if has_app_context():
        if target.divergente:
            logger.debug("Nova divergência detectada: reserva %s", target.id)
        notificacoes.invalidar(novidade=target.divergente)


def _reserva_excluida(mapper, connection, target):
    if has_app_context():
        notificacoes.invalidar(novidade=False)


OUVINTES = (
    (HistoricoImportacao, "after_insert", _importacao_criada),
    (Reserva, "after_insert", _reserva_gravada),
    (Reserva, "after_update", _reserva_gravada),
    (Reserva, "after_delete", _reserva_excluida),
)


def registrar():
    for alvo, evento, fn in OUVINTES:
        if not event.contains(alvo, evento, fn):
            event.listen(alvo, evento, fn)
