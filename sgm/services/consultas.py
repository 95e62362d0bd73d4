from datetime import datetime

from sqlalchemy import or_

from sgm.extensions import db
from sgm.models.historico_importacao import HistoricoImportacao
from sgm.models.reserva import Reserva
from sgm.services.conciliacao import FiltroReservas, TODOS


def filtro_da_requisicao(args) -> FiltroReservas:
    return FiltroReservas.from_args(args, ano_padrao=datetime.now().year)


def carregar_reservas(filtro: FiltroReservas):
    reservas = Reserva.query.order_by(Reserva.created_at.desc(), Reserva.id.desc()).all()
    return filtro.aplicar(reservas)


def carregar_historico():
    return HistoricoImportacao.query.order_by(HistoricoImportacao.imported_at.desc()).all()


def paginar_reservas(page: int = 1, page_size: int = 20, localidade=None, material=None,
                     status=None, mes=None, somente_liberados: bool = False, somente_divergentes: bool = False):
    q = Reserva.query
    if somente_liberados:
        q = q.filter(Reserva.quantidade_liberada > 0)
    if somente_divergentes:
        q = q.filter(Reserva.saldo < 0)
    if localidade and localidade != TODOS:
        q = q.filter(Reserva.localidade == localidade)
    if material:
        like = f"%{material}%"
        q = q.filter(or_(Reserva.material_nome.ilike(like), Reserva.material_codigo.ilike(like)))
    if status and status != TODOS:
        q = q.filter(Reserva.status == status)
    if mes and mes != TODOS:
        q = q.filter(Reserva.mes_referencia == mes)

    q = q.order_by(Reserva.created_at.desc(), Reserva.id.desc())
    return db.paginate(q, page=page, per_page=page_size, error_out=False)
