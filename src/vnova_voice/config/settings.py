"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars.
Nunca hardcode chaves de API (Vapi/OpenAI).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configurações lidas do ambiente.

    Tempos de reconexão em segundos; tempos de eco/fala em milissegundos,
    que é a unidade natural para duração de fala.
    """

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Aplicação
    service_name: str = "vnova_voice"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"

    # Transporte de voz (Vapi)
    vapi_api_key: str | None = None  # Chave pública do transporte
    vapi_assistant_id: str | None = None  # sessionId passado em start()

    # Oráculo de classificação/extração (OpenAI)
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"  # Otimizado para latência
    openai_timeout_seconds: float = 10.0
    openai_enabled: bool = False  # Feature flag (fail-safe: false)
    oracle_max_attempts: int = 3  # Tentativas em rate limit
    oracle_backoff_base_seconds: float = 1.0  # Dobra a cada tentativa

    # Reconexão do transporte (segundos)
    reconnect_after_end_seconds: float = 1.0
    reconnect_initial_retry_seconds: float = 1.5
    reconnect_ejection_seconds: float = 1.5
    reconnect_generic_seconds: float = 3.0
    reconnect_backoff_max_seconds: float = 10.0
    reconnect_long_interval_seconds: float = 15.0

    # Guarda de eco (milissegundos)
    echo_guard_min_ms: int = 3000
    echo_guard_max_ms: int = 8000
    echo_guard_tail_ms: int = 2000  # Somado à duração real da fala
    speech_ms_per_word: int = 150
    speech_min_estimate_ms: int = 2000
    speech_prearm_buffer_ms: int = 3000

    # Saída de fala e despacho
    speak_throttle_ms: int = 500
    min_transcript_chars: int = 2  # Piso de ruído ("no" precisa passar)
    action_log_size: int = 20

    # Rotas da loja
    home_route: str = "/"
    products_route: str = "/products"
    cart_route: str = "/cart"
    payment_route: str = "/payment"
    checkout_autostart_delay_seconds: float = 1.5

    @property
    def is_development(self) -> bool:
        """True quando rodando localmente."""
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        """True em produção."""
        return self.environment.lower() == "production"

    @property
    def oracle_active(self) -> bool:
        """Oráculo só é usado com flag ligada e chave presente."""
        return self.openai_enabled and bool(self.openai_api_key)

    def validate_openai_config(self) -> list[str]:
        """Valida configuração de OpenAI.

        Se openai_enabled=True, verifica se OPENAI_API_KEY está configurado.
        Retorna lista de erros (vazia = OK).
        """
        errors: list[str] = []
        if self.openai_enabled and not self.openai_api_key:
            errors.append("OPENAI_ENABLED=true requer OPENAI_API_KEY configurado")
        if self.oracle_max_attempts < 1:
            errors.append("ORACLE_MAX_ATTEMPTS deve ser >= 1")
        return errors

    def validate_timings(self) -> list[str]:
        """Valida coerência entre tempos de reconexão e guarda de eco."""
        errors: list[str] = []
        if self.echo_guard_min_ms > self.echo_guard_max_ms:
            errors.append("ECHO_GUARD_MIN_MS não pode exceder ECHO_GUARD_MAX_MS")
        if self.reconnect_generic_seconds > self.reconnect_backoff_max_seconds:
            errors.append("RECONNECT_GENERIC_SECONDS não pode exceder o teto de backoff")
        if self.reconnect_backoff_max_seconds > self.reconnect_long_interval_seconds:
            errors.append("RECONNECT_LONG_INTERVAL_SECONDS deve ser >= teto de backoff")
        if self.min_transcript_chars < 1:
            errors.append("MIN_TRANSCRIPT_CHARS deve ser >= 1")
        return errors


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()
