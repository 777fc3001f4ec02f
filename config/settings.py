"""
Настройки приложения CRM de propostas

Значения читаются из переменных окружения (и файла .env, если он есть).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_STORAGE_KEY = "mini_crm_propostas_v1"


@dataclass
class StorageConfig:
    """Конфигурация локального хранилища"""
    data_dir: Path
    storage_key: str = DEFAULT_STORAGE_KEY


@dataclass
class ExportConfig:
    """Конфигурация экспорта (JSON-бэкапы и отчеты Excel)"""
    export_dir: Path


@dataclass
class LoggingConfig:
    """Конфигурация логирования"""
    level: str = "INFO"
    log_file: Optional[Path] = None


@dataclass
class AppConfig:
    """Общая конфигурация приложения"""
    storage: StorageConfig
    export: ExportConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Сборка конфигурации из переменных окружения"""
        data_dir = os.getenv("CRM_DATA_DIR") or str(Path.home() / ".crm_propostas")
        log_file = os.getenv("CRM_LOG_FILE")
        return cls(
            storage=StorageConfig(
                data_dir=Path(data_dir).expanduser(),
                storage_key=os.getenv("CRM_STORAGE_KEY", DEFAULT_STORAGE_KEY),
            ),
            export=ExportConfig(
                export_dir=Path(os.getenv("CRM_EXPORT_DIR", ".")).expanduser(),
            ),
            logging=LoggingConfig(
                level=os.getenv("CRM_LOG_LEVEL", "INFO").upper(),
                log_file=Path(log_file).expanduser() if log_file else None,
            ),
        )


config = AppConfig.from_env()
