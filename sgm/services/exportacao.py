import csv
import io
from collections import namedtuple
from datetime import datetime
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

Coluna = namedtuple("Coluna", "header key width")

MIME_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
MIME_PDF = "application/pdf"
MIME_CSV = "text/csv; charset=utf-8"

COLUNAS_RESERVAS = [
    Coluna("Nº Reserva", "numero_reserva", 15),
    Coluna("Código", "material_codigo", 12),
    Coluna("Material", "material_nome", 35),
    Coluna("Liberado", "quantidade_liberada", 12),
    Coluna("Utilizado", "quantidade_utilizada", 12),
    Coluna("Saldo", "saldo", 10),
    Coluna("Localidade", "localidade", 12),
    Coluna("Status", "status", 12),
]

# mesmos cabeçalhos aceitos pela importação
COLUNAS_MATERIAIS = [
    Coluna("Código SAP", "material_codigo", 12),
    Coluna("Nome material", "material_nome", 40),
    Coluna("Quantidade", "total_liberado", 15),
    Coluna("Quantidade Utilizada", "total_utilizado", 15),
    Coluna("Saldo", "saldo", 12),
]

COLUNAS_DIVERGENCIAS = [
    Coluna("Material", "material", 40),
    Coluna("Localidade", "localidade", 12),
    Coluna("Mês", "mes", 10),
    Coluna("Liberado", "liberado", 12),
    Coluna("Utilizado", "utilizado", 12),
    Coluna("Divergência", "divergencia", 12),
]


# =========================
# Helpers
# =========================
def nome_arquivo(base: str, ext: str, agora: datetime | None = None) -> str:
    agora = agora or datetime.now()
    return f"{base}_{agora.strftime('%Y%m%d_%H%M')}.{ext}"


def _gerado_em(agora: datetime) -> str:
    return f"Gerado em: {agora.strftime('%d/%m/%Y às %H:%M')}"


def _texto_filtros(filtros: dict | None) -> str:
    if not filtros:
        return ""
    return " | ".join(f"{k}: {v}" for k, v in filtros.items() if v and v != "Todos")


def _valor(item, key):
    v = item.get(key) if isinstance(item, dict) else getattr(item, key, None)
    if isinstance(v, Decimal):
        return float(v)
    return v


def _numero_br(v) -> str:
    # 1234.5 -> 1.234,5
    txt = f"{v:,.2f}".rstrip("0").rstrip(".")
    return txt.replace(",", "_").replace(".", ",").replace("_", ".")


def _wb_to_bytes(wb: Workbook) -> BytesIO:
    bio = BytesIO()
    wb.save(bio)
    bio.seek(0)
    return bio


# =========================
# Excel
# =========================
def exportar_xlsx(titulo: str, colunas, dados, filtros: dict | None = None, agora: datetime | None = None) -> BytesIO:
    agora = agora or datetime.now()
    wb = Workbook()
    ws = wb.active
    ws.title = "Dados"

    ws.append([titulo])
    ws.append([_gerado_em(agora)])
    filtro_txt = _texto_filtros(filtros)
    if filtro_txt:
        ws.append([f"Filtros: {filtro_txt}"])
    ws.append([])

    ws.append([c.header for c in colunas])
    fill = PatternFill(fill_type="solid", fgColor="FF3B82F6")
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True, color="FFFFFFFF")
        cell.fill = fill

    for item in dados:
        linha = []
        for c in colunas:
            v = _valor(item, c.key)
            linha.append(v if isinstance(v, (int, float)) else ("" if v is None else str(v)))
        ws.append(linha)

    for i, c in enumerate(colunas, start=1):
        ws.column_dimensions[get_column_letter(i)].width = c.width or 15

    return _wb_to_bytes(wb)


# =========================
# PDF
# =========================
LINHAS_POR_PAGINA_1 = 26
LINHAS_POR_PAGINA = 30


def _paginas(rows):
    if not rows:
        return [[]]
    paginas = [rows[:LINHAS_POR_PAGINA_1]]
    resto = rows[LINHAS_POR_PAGINA_1:]
    while resto:
        paginas.append(resto[:LINHAS_POR_PAGINA])
        resto = resto[LINHAS_POR_PAGINA:]
    return paginas


def exportar_pdf(titulo: str, colunas, dados, filtros: dict | None = None, agora: datetime | None = None) -> BytesIO:
    agora = agora or datetime.now()
    bio = BytesIO()
    c = canvas.Canvas(bio, pagesize=landscape(A4))
    w, h = landscape(A4)

    x = 14 * mm
    largura_util = w - 28 * mm
    total_pesos = sum(col.width or 15 for col in colunas) or 1
    larguras = [largura_util * (col.width or 15) / total_pesos for col in colunas]
    max_chars = [max(4, int(lw / (8 * 0.5))) for lw in larguras]

    rows = []
    for item in dados:
        row = []
        for col in colunas:
            v = _valor(item, col.key)
            if isinstance(v, (int, float)) and not isinstance(v, bool):
                row.append(_numero_br(v))
            else:
                row.append("" if v is None else str(v))
        rows.append(row)

    paginas = _paginas(rows)
    total = len(paginas)

    def cabecalho_tabela(y):
        c.setFont("Helvetica-Bold", 8)
        c.setFillColorRGB(59 / 255, 130 / 255, 246 / 255)
        c.rect(x, y - 1.5 * mm, largura_util, 5 * mm, fill=1, stroke=0)
        c.setFillColorRGB(1, 1, 1)
        cx = x
        for col, lw, mc in zip(colunas, larguras, max_chars):
            c.drawString(cx + 1 * mm, y, col.header[:mc])
            cx += lw
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 8)
        return y - 6 * mm

    for n, pagina in enumerate(paginas, start=1):
        y = h - 15 * mm
        if n == 1:
            c.setFont("Helvetica-Bold", 16)
            c.drawString(x, y, titulo)
            y -= 7 * mm
            c.setFont("Helvetica", 10)
            c.drawString(x, y, _gerado_em(agora))
            y -= 6 * mm
            filtro_txt = _texto_filtros(filtros)
            if filtro_txt:
                c.setFont("Helvetica", 9)
                c.drawString(x, y, f"Filtros: {filtro_txt}")
                y -= 6 * mm

        y = cabecalho_tabela(y)
        for i, row in enumerate(pagina):
            if i % 2 == 1:
                c.setFillColorRGB(245 / 255, 247 / 255, 250 / 255)
                c.rect(x, y - 1.5 * mm, largura_util, 5 * mm, fill=1, stroke=0)
                c.setFillColorRGB(0, 0, 0)
            cx = x
            for cell, lw, mc in zip(row, larguras, max_chars):
                c.drawString(cx + 1 * mm, y, cell[:mc])
                cx += lw
            y -= 5 * mm

        c.setFont("Helvetica", 8)
        c.drawCentredString(w / 2, 10 * mm, f"Página {n} de {total}")
        c.showPage()

    c.save()
    bio.seek(0)
    return bio


# =========================
# CSV
# =========================
def exportar_csv(colunas, dados) -> BytesIO:
    """Formato limpo para reimportação: ';', BOM UTF-8, números sem formatação."""
    out = io.StringIO()
    writer = csv.writer(out, delimiter=";", quotechar='"', quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow([c.header for c in colunas])
    for item in dados:
        linha = []
        for c in colunas:
            v = _valor(item, c.key)
            if isinstance(v, float) and v.is_integer():
                v = int(v)
            linha.append("" if v is None else str(v))
        writer.writerow(linha)

    conteudo = "\ufeff" + out.getvalue()
    return BytesIO(conteudo.encode("utf-8"))
