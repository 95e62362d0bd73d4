import csv
import io
import logging
import zipfile

from openpyxl import load_workbook

from sgm.errors import ArquivoInvalidoError

logger = logging.getLogger(__name__)

EXTENSOES = (".xlsx", ".csv")


def _vazio(v) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def ler_xlsx(conteudo: bytes) -> list[dict]:
    """Primeira planilha; a linha 1 é o cabeçalho."""
    try:
        wb = load_workbook(io.BytesIO(conteudo), read_only=True, data_only=True)
    except (zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        logger.warning("Falha ao abrir xlsx: %s", e)
        raise ArquivoInvalidoError("Erro ao processar arquivo Excel.") from e

    try:
        if not wb.worksheets:
            raise ArquivoInvalidoError("Arquivo vazio ou sem planilhas.")
        ws = wb.worksheets[0]

        linhas = ws.iter_rows(values_only=True)
        cabecalho = next(linhas, None)
        if not cabecalho:
            raise ArquivoInvalidoError("Arquivo vazio ou sem planilhas.")
        headers = ["" if h is None else str(h).strip() for h in cabecalho]

        dados = []
        for valores in linhas:
            row = {}
            for header, valor in zip(headers, valores):
                if header and not _vazio(valor):
                    row[header] = valor
            if row:
                dados.append(row)
    finally:
        wb.close()

    return dados


def ler_csv(conteudo: bytes) -> list[dict]:
    """CSV separado por ponto e vírgula; a primeira linha é o cabeçalho."""
    try:
        texto = conteudo.decode("utf-8-sig")
    except UnicodeDecodeError:
        texto = conteudo.decode("latin-1")

    linhas = [l for l in texto.splitlines() if l.strip()]
    if len(linhas) < 2:
        raise ArquivoInvalidoError("Arquivo CSV vazio.")

    reader = csv.reader(linhas, delimiter=";")
    headers = [h.strip() for h in next(reader)]
    dados = []
    for valores in reader:
        row = {}
        for i, header in enumerate(headers):
            row[header] = valores[i].strip() if i < len(valores) else ""
        dados.append(row)
    return dados


def ler_arquivo(nome_arquivo: str, conteudo: bytes) -> list[dict]:
    nome = (nome_arquivo or "").lower()
    if nome.endswith(".xlsx"):
        dados = ler_xlsx(conteudo)
    elif nome.endswith(".csv"):
        dados = ler_csv(conteudo)
    else:
        raise ArquivoInvalidoError("Formato não suportado. Envie um arquivo .xlsx ou .csv.")

    if not dados:
        raise ArquivoInvalidoError()

    logger.info("%s: %s registros encontrados", nome_arquivo, len(dados))
    return dados
