import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # nível de log da aplicação (DEBUG mostra as linhas ignoradas na importação)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # extração de PDF via IA (endpoint compatível com chat/completions)
    LLM_API_URL = os.getenv("LLM_API_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
    LLM_API_KEY = os.getenv("LLM_API_KEY")
    LLM_MODEL = os.getenv("LLM_MODEL", "google/gemini-3-flash-preview")
    LLM_TIMEOUT = int(os.getenv("LLM_TIMEOUT", "60"))

    EMPREITEIRA_PADRAO = os.getenv("EMPREITEIRA_PADRAO", "Consórcio Nova Bolandeira II")

    ADMIN_LOGIN = os.getenv("ADMIN_LOGIN", "admin")
    ADMIN_SENHA = os.getenv("ADMIN_SENHA", "123")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LLM_API_KEY = "chave-teste"
    LOG_LEVEL = "DEBUG"
