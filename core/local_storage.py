"""
Локальное хранилище ключ-значение

Аналог localStorage браузера: каждое значение хранится строкой
в отдельном файле внутри каталога данных.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from loguru import logger

from config.settings import StorageConfig
from core.exceptions import StorageError


class LocalStorage:
    """
    Хранилище ключ-значение на файловой системе

    Запись выполняется целиком через временный файл и os.replace,
    поэтому частично записанных значений не бывает.
    """

    _VALID_KEY = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9_.-]*")

    def __init__(self, data_dir: Path):
        """
        Args:
            data_dir: Каталог, в котором лежат файлы значений
        """
        self.data_dir = Path(data_dir)

    @classmethod
    def from_config(cls, storage_config: StorageConfig) -> "LocalStorage":
        """Создание хранилища по конфигурации"""
        return cls(storage_config.data_dir)

    def _path_for(self, key: str) -> Path:
        """
        Путь к файлу значения

        Raises:
            StorageError: Если ключ не годится для имени файла
        """
        if not isinstance(key, str) or not self._VALID_KEY.fullmatch(key):
            error_msg = f"Недопустимый ключ хранилища: {key!r} (разрешены A-Z, a-z, 0-9, '_', '-', '.')"
            logger.error(error_msg)
            raise StorageError(error_msg)
        return self.data_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        """
        Чтение значения по ключу

        Returns:
            Строка значения или None, если ключ не записан

        Raises:
            StorageError: Если файл существует, но прочитать его не удалось
        """
        path = self._path_for(key)
        if not path.exists():
            logger.debug(f"Ключ '{key}' отсутствует в хранилище {self.data_dir}")
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            error_msg = f"Ошибка чтения ключа '{key}' из {path}: {e}"
            logger.error(error_msg)
            raise StorageError(error_msg) from e

    def set_item(self, key: str, value: str) -> None:
        """
        Запись значения по ключу (полная перезапись)

        Raises:
            StorageError: Если записать файл не удалось
        """
        path = self._path_for(key)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=str(self.data_dir))
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
            logger.debug(f"Ключ '{key}' записан в {path} ({len(value)} символов)")
        except OSError as e:
            error_msg = f"Ошибка записи ключа '{key}' в {path}: {e}"
            logger.error(error_msg)
            raise StorageError(error_msg) from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def remove_item(self, key: str) -> None:
        """Удаление значения по ключу (отсутствующий ключ не ошибка)"""
        path = self._path_for(key)
        try:
            path.unlink()
            logger.debug(f"Ключ '{key}' удален из хранилища")
        except FileNotFoundError:
            return
        except OSError as e:
            error_msg = f"Ошибка удаления ключа '{key}' ({path}): {e}"
            logger.error(error_msg)
            raise StorageError(error_msg) from e
