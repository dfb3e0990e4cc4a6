# app/core/config.py
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Configurações globais da aplicação.

    Compatível com as variáveis do .env do servidor antigo:
    - UNIVERSITY_IP_PREFIX, MIN_SESSION_DURATION_SECONDS
    - DATABASE_URL ou db_host, db_port, db_user, db_password, db_name

    E expõe propriedades amigáveis que usamos no código:
    - settings.database_url
    - settings.MIN_SESSION_DURATION_SECONDS / WIFI_SESSION_TIMEOUT_SECONDS
    """

    # Config Pydantic v2
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignora qualquer variável extra que não tenhamos declarado
    )

    APP_NAME: str = "Unitree WiFi Points"

    # ------------------------------------------------------------------
    # Banco
    # ------------------------------------------------------------------
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "unitree"
    db_password: str = "unitree"
    db_name: str = "unitree"

    # Opcional: se você quiser setar DATABASE_URL direto no .env
    DATABASE_URL: Optional[str] = Field(
        default=None,
        alias="DATABASE_URL",
    )

    # ------------------------------------------------------------------
    # Auth (JWT emitido pelo serviço de autenticação)
    # ------------------------------------------------------------------
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    ALLOW_ANONYMOUS_DEV_MODE: bool = False
    DEV_USER_ID: int = 1

    # ------------------------------------------------------------------
    # Validação de acesso (WiFi do campus)
    # ------------------------------------------------------------------
    UNIVERSITY_IP_PREFIX: str = "192.168"
    UNIVERSITY_BSSID_PREFIX: Optional[str] = None

    CAMPUS_LATITUDE: float = 21.0047
    CAMPUS_LONGITUDE: float = 105.8434
    CAMPUS_RADIUS_METERS: float = 500.0

    # ------------------------------------------------------------------
    # Sessões WiFi / pontos
    # ------------------------------------------------------------------
    MIN_SESSION_DURATION_SECONDS: int = 300
    WIFI_SESSION_TIMEOUT_SECONDS: int = 2 * 60 * 60
    WIFI_CLEANUP_ENABLED: bool = True
    WIFI_CLEANUP_INTERVAL_MINUTES: int = 10
    WIFI_ORPHAN_CUTOFF_HOURS: int = 24
    WIFI_BACKGROUND_MAX_DURATION_SECONDS: int = 5 * 60 * 60
    WIFI_CLOCK_SKEW_SECONDS: int = 60

    # capacidade do store: False = modo sequencial (sem transação multi-passo)
    WIFI_STORE_TRANSACTIONS: bool = True

    # calendário usado para zerar os contadores de dia/semana/mês
    PERIOD_TIMEZONE: str = "Asia/Ho_Chi_Minh"

    # ==================================================================
    # Propriedades derivadas
    # ==================================================================

    @property
    def database_url(self) -> str:
        """
        URL async do banco para o SQLAlchemy.

        Prioridade:
        1) se DATABASE_URL estiver setada no .env, usa ela
        2) senão, monta a partir de db_* e garante +asyncpg
        """
        url = self.DATABASE_URL
        if not url:
            url = (
                f"postgresql+asyncpg://"
                f"{self.db_user}:{self.db_password}"
                f"@{self.db_host}:{self.db_port}/{self.db_name}"
            )

        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        return url


settings = Settings()
