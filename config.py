"""Configuração da aplicação."""
import os
from dataclasses import dataclass, field
from typing import Optional


def _env_int(name: str, default: int) -> int:
    """Lê inteiro de variável de ambiente."""
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    """Lê float de variável de ambiente."""
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@dataclass
class GeminiConfig:
    """Configuração do serviço Gemini."""

    api_key: str = ""  # Lê de .env; vazio = usa o matcher heurístico
    model: str = "gemini-2.0-flash"
    api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: int = 120
    temperature: float = 0.1

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "GeminiConfig":
        """Carrega config de variáveis de ambiente."""
        return cls(
            api_key=os.getenv("GEMINI_API_KEY", ""),
            model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
            api_url=os.getenv(
                "GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta"
            ),
            timeout=_env_int("GEMINI_TIMEOUT", 120),
        )


@dataclass
class BatchConfig:
    """Parâmetros do processamento adaptativo em lotes."""

    large_payload_threshold: int = 100
    initial_batch_size: int = 60
    initial_batch_divisor: int = 4
    max_batch_size: int = 80
    min_batch_size: int = 20
    growth_step: int = 10
    growth_after_successes: int = 2
    shrink_factor: float = 0.7
    inter_batch_delay: float = 0.5
    batch_timeout: float = 120.0
    max_failures: int = 50
    max_total_seconds: float = 1800.0

    @classmethod
    def from_env(cls) -> "BatchConfig":
        """Carrega config de variáveis de ambiente."""
        return cls(
            large_payload_threshold=_env_int("HRBRIDGE_BATCH_THRESHOLD", 100),
            initial_batch_size=_env_int("HRBRIDGE_BATCH_INITIAL", 60),
            initial_batch_divisor=max(1, _env_int("HRBRIDGE_BATCH_INITIAL_DIVISOR", 4)),
            max_batch_size=_env_int("HRBRIDGE_BATCH_MAX", 80),
            min_batch_size=_env_int("HRBRIDGE_BATCH_MIN", 20),
            growth_step=_env_int("HRBRIDGE_BATCH_GROWTH_STEP", 10),
            growth_after_successes=_env_int("HRBRIDGE_BATCH_GROWTH_AFTER", 2),
            shrink_factor=_env_float("HRBRIDGE_BATCH_SHRINK", 0.7),
            inter_batch_delay=_env_float("HRBRIDGE_BATCH_DELAY", 0.5),
            batch_timeout=_env_float("HRBRIDGE_BATCH_TIMEOUT", 120.0),
            max_failures=_env_int("HRBRIDGE_BATCH_MAX_FAILURES", 50),
            max_total_seconds=_env_float("HRBRIDGE_BATCH_MAX_SECONDS", 1800.0),
        )


@dataclass
class CompilerConfig:
    """Configuração do compilador de integrações."""

    dlq_topic: str = "dlq-pre-employee-moved"
    pubsub_connection: str = "projects/apigee-prd1/locations/us-central1/connections/pubsub-poc"
    pubsub_connector_version: str = (
        "projects/apigee-prd1/locations/global/providers/gcp/connectors/pubsub/versions/1"
    )
    integration_source_header: str = "iPaaS-Builder"
    first_transformation_task_id: int = 10
    preview_min_confidence: float = 0.8
    allow_target_collisions: bool = False

    @classmethod
    def from_env(cls) -> "CompilerConfig":
        """Carrega config de variáveis de ambiente."""
        return cls(
            dlq_topic=os.getenv("HRBRIDGE_DLQ_TOPIC", "dlq-pre-employee-moved"),
            pubsub_connection=os.getenv(
                "HRBRIDGE_PUBSUB_CONNECTION",
                "projects/apigee-prd1/locations/us-central1/connections/pubsub-poc",
            ),
            allow_target_collisions=os.getenv("HRBRIDGE_ALLOW_TARGET_COLLISIONS", "")
            .lower() in ("1", "true", "yes"),
        )


@dataclass
class AppConfig:
    """Configuração da aplicação."""

    reference_dir: str = "./reference"
    output_dir: str = "./output"
    gemini: Optional[GeminiConfig] = None
    batch: BatchConfig = field(default_factory=BatchConfig)
    compiler: CompilerConfig = field(default_factory=CompilerConfig)

    def __post_init__(self):
        """Inicializa valores padrão."""
        if self.gemini is None:
            self.gemini = GeminiConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Carrega config de variáveis de ambiente."""
        return cls(
            reference_dir=os.getenv("HRBRIDGE_REFERENCE_DIR", "./reference"),
            output_dir=os.getenv("HRBRIDGE_OUTPUT_DIR", "./output"),
            gemini=GeminiConfig.from_env(),
            batch=BatchConfig.from_env(),
            compiler=CompilerConfig.from_env(),
        )
