class SGMError(Exception):
    """Erro de negócio com mensagem pronta para o usuário."""

    status = 400
    mensagem_padrao = "Não foi possível concluir a operação."

    def __init__(self, mensagem: str | None = None):
        self.mensagem = mensagem or self.mensagem_padrao
        super().__init__(self.mensagem)


class ArquivoInvalidoError(SGMError):
    mensagem_padrao = "Arquivo vazio ou sem dados válidos."


class ExtracaoPDFError(SGMError):
    status = 500
    mensagem_padrao = "Erro ao processar PDF com IA."


class LimiteRequisicoesError(ExtracaoPDFError):
    status = 429
    mensagem_padrao = "Limite de requisições excedido. Tente novamente em alguns segundos."


class CreditosInsuficientesError(ExtracaoPDFError):
    status = 402
    mensagem_padrao = "Créditos insuficientes. Adicione créditos ao workspace."


class AjusteInvalidoError(SGMError):
    mensagem_padrao = "Ajuste inválido."
