"""
Модуль для работы с конфигурацией разметчика мнений

Функции:
- Загрузка config.yaml (+ профили: config.prod.yaml, config.test.yaml)
- ENV-переопределения (префикс OPINION_TAGGER_, вложенность через __)
- Валидация параметров аннотации и сервера
- Настройка логирования
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv
import logging
from datetime import datetime

logger = logging.getLogger(__name__)

CLEAR_FEATURES_CHOICES = ("yes", "no", "docstart")
OUTPUT_FORMAT_CHOICES = ("naf", "tabulated")
LANGUAGE_CHOICES = ("de", "en", "es", "eu", "fr", "it", "nl")


class Config:
    """Класс для работы с конфигурацией проекта"""

    def __init__(self, config_path: str = None):
        """
        Инициализация конфигурации

        Args:
            config_path: Путь к файлу конфигурации
        """
        if config_path:
            self.config_path = Path(config_path)
        else:
            # Ищем config.yaml в текущей директории и выше
            current_dir = Path.cwd()
            config_path = current_dir / "config.yaml"
            while not config_path.exists() and current_dir.parent != current_dir:
                current_dir = current_dir.parent
                config_path = current_dir / "config.yaml"
            self.config_path = config_path

        self.config_data = {}
        self.env_data = {}

        self._load_config()
        self._load_env()
        try:
            self._apply_env_overrides()
            self._validate()
        except Exception as e:
            logger.warning(f"Проблема при применении ENV/валидации: {e}")
        self._configure_logging_if_needed()

    # --- Загрузка ---
    def _resolve_config_path(self) -> Path:
        env = os.getenv('OPINION_TAGGER_ENV', '').lower().strip()
        root = self.config_path.parent if self.config_path else Path.cwd()
        if env == 'production':
            candidate = root / 'config.prod.yaml'
        elif env == 'testing':
            candidate = root / 'config.test.yaml'
        else:
            candidate = self.config_path
        if candidate.exists():
            return candidate
        return self.config_path

    def _load_config(self):
        """Загружает конфигурацию из YAML файла поверх значений по умолчанию"""
        self.config_data = self._get_default_config()
        try:
            self.config_path = self._resolve_config_path()
            if self.config_path.exists():
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    loaded = yaml.safe_load(f) or {}
                self._merge(self.config_data, loaded)
                logger.info(f"Конфигурация загружена: {self.config_path}")
            else:
                logger.debug(f"Файл конфигурации {self.config_path} не найден, используются значения по умолчанию")
        except Exception as e:
            logger.error(f"Ошибка загрузки конфигурации: {e}")
            self.config_data = self._get_default_config()

    def _load_env(self):
        """Загружает переменные окружения из .env файла"""
        try:
            load_dotenv()
            self.env_data = {
                'OPINION_TAGGER_ENV': os.getenv('OPINION_TAGGER_ENV'),
                'OPINION_TAGGER_DEBUG': os.getenv('OPINION_TAGGER_DEBUG'),
            }
        except Exception as e:
            logger.error(f"Ошибка загрузки переменных окружения: {e}")

    def _merge(self, base: Dict[str, Any], extra: Dict[str, Any]) -> None:
        for key, value in extra.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge(base[key], value)
            else:
                base[key] = value

    def _set_nested(self, data: Dict[str, Any], dotted: str, value: Any) -> None:
        cur = data
        keys = dotted.split('.')
        for k in keys[:-1]:
            if k not in cur or not isinstance(cur[k], dict):
                cur[k] = {}
            cur = cur[k]
        cur[keys[-1]] = value

    def _apply_env_overrides(self) -> None:
        """Переопределяет конфиг значениями из ENV (OPINION_TAGGER_*)."""
        prefix = 'OPINION_TAGGER_'
        for key, val in os.environ.items():
            if not key.startswith(prefix):
                continue
            if key in ('OPINION_TAGGER_ENV', 'OPINION_TAGGER_DEBUG'):
                continue
            tail = key[len(prefix):]
            # Вложенность разделяется двойным подчёркиванием
            dotted = tail.replace('__', '.').lower()
            parsed: Any = val
            if val.lower() in ('true', 'false'):
                parsed = (val.lower() == 'true')
            else:
                try:
                    if '.' in val:
                        parsed = float(val)
                    else:
                        parsed = int(val)
                except ValueError:
                    parsed = val
            self._set_nested(self.config_data, dotted, parsed)
        if os.getenv('OPINION_TAGGER_ENV'):
            logger.info(f"Активирован профиль: {os.getenv('OPINION_TAGGER_ENV')}")

    def _validate(self) -> None:
        """Проверяет значения и возвращает дефолты для некорректных."""
        clear_features = str(self.get('annotation.clear_features', 'no')).lower()
        if clear_features not in CLEAR_FEATURES_CHOICES:
            logger.warning(f"annotation.clear_features={clear_features!r} некорректен, используется 'no'")
            self._set_nested(self.config_data, 'annotation.clear_features', 'no')
        output_format = str(self.get('annotation.output_format', 'naf')).lower()
        if output_format not in OUTPUT_FORMAT_CHOICES:
            logger.warning(f"annotation.output_format={output_format!r} некорректен, используется 'naf'")
            self._set_nested(self.config_data, 'annotation.output_format', 'naf')
        try:
            port = int(self.get('server.port', 5000))
            if not 0 < port < 65536:
                raise ValueError(port)
        except (TypeError, ValueError):
            logger.warning("server.port вне диапазона 1..65535, используется 5000")
            self._set_nested(self.config_data, 'server.port', 5000)

    def _configure_logging_if_needed(self, force: bool = False) -> None:
        """Инициализирует/переинициализирует базовое логирование по config.

        Повторная конфигурация выполняется, если:
          - ранее не конфигурировалось, или
          - изменился уровень/формат/файл логирования, или
          - явно указан force=True
        """
        root = logging.getLogger()

        console_level_name = str(self.get_console_logging_level()).upper()
        file_level_name = str(self.get_file_logging_level()).upper()
        console_level = getattr(logging, console_level_name, logging.INFO)
        file_level = getattr(logging, file_level_name, logging.DEBUG)

        desired_fmt = self.get_logging_format()
        desired_file = self.get_logging_file() if self.is_logging_to_file_enabled() else None

        if getattr(root, "_opinion_tagger_configured", False) and not force:
            if (
                getattr(root, "_opinion_tagger_console_level", None) == console_level_name and
                getattr(root, "_opinion_tagger_file_level", None) == file_level_name and
                getattr(root, "_opinion_tagger_format", None) == desired_fmt and
                getattr(root, "_opinion_tagger_file", None) == desired_file
            ):
                return

        handlers: List[logging.Handler] = []
        # stdout занят документами, поэтому консольный лог идёт в stderr
        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(desired_fmt))
        handlers.append(console)

        if desired_file:
            self.cleanup_old_log_files()
            log_file = Path(desired_file)
            try:
                log_file.parent.mkdir(parents=True, exist_ok=True)
                fh = logging.FileHandler(log_file, encoding='utf-8')
                fh.setLevel(file_level)
                fh.setFormatter(logging.Formatter(desired_fmt))
                handlers.append(fh)
            except OSError as e:
                logger.debug(f"Не удалось открыть файл лога: {e}")

        root_level = min(console_level, file_level) if desired_file else console_level
        logging.basicConfig(level=root_level, handlers=handlers, format=desired_fmt, force=True)
        setattr(root, "_opinion_tagger_configured", True)
        setattr(root, "_opinion_tagger_console_level", console_level_name)
        setattr(root, "_opinion_tagger_file_level", file_level_name)
        setattr(root, "_opinion_tagger_format", desired_fmt)
        setattr(root, "_opinion_tagger_file", desired_file)

    def _get_default_config(self) -> Dict[str, Any]:
        """Возвращает конфигурацию по умолчанию"""
        return {
            'annotation': {
                # no | yes | docstart
                'clear_features': "no",
                # naf | tabulated (tabulated пока сериализуется как NAF)
                'output_format': "naf",
                # None: язык берётся из документа
                'language': None,
                'boundary_marker': "-DOCSTART-",
            },
            'models': {
                'target': {'type': None, 'path': None, 'adaptive': True},
                'aspect': {'type': None, 'path': None, 'adaptive': True},
                'polarity': {'type': None, 'path': None},
                # Путь к словарю полярности или "off"
                'dictionary': "off",
            },
            'server': {
                'host': "0.0.0.0",
                'port': 5000,
                # Таймаут на соединение в секундах, 0 означает без таймаута
                'timeout': 0,
            },
            'client': {
                'host': "localhost",
                'timeout': 0,
            },
            'logging': {
                'level': "INFO",
                'format': "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                'log_to_file': False,
                'log_file': "logs/opinion_tagger.log",
                'max_log_files': 10,
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Получает значение конфигурации по ключу

        Args:
            key: Ключ в формате 'section.subsection.parameter'
            default: Значение по умолчанию

        Returns:
            Значение параметра или default
        """
        try:
            value = self.config_data
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def get_env(self, key: str, default: Any = None) -> Any:
        """Получает значение переменной окружения, загруженной при старте"""
        value = self.env_data.get(key)
        return default if value is None else value

    # --- Аннотация ---
    def get_annotation_config(self) -> Dict[str, Any]:
        """Получает конфигурацию аннотации"""
        return self.config_data.get('annotation', {})

    def get_clear_features(self) -> str:
        """Политика сброса адаптивных признаков: no | yes | docstart"""
        return str(self.get('annotation.clear_features', "no")).lower()

    def get_output_format(self) -> str:
        """Формат вывода: naf | tabulated"""
        return str(self.get('annotation.output_format', "naf")).lower()

    def get_language(self) -> Optional[str]:
        """Язык по умолчанию (None: брать из документа)"""
        return self.get('annotation.language')

    def get_boundary_marker(self) -> str:
        """Литерал, которым начинается предложение-граница документа"""
        return self.get('annotation.boundary_marker', "-DOCSTART-")

    # --- Модели ---
    def get_model_config(self, name: str) -> Dict[str, Any]:
        """Настройки модели по имени секции (target/aspect/polarity)."""
        return dict(self.get(f'models.{name}', {}) or {})

    def get_dictionary_path(self) -> str:
        """Путь к словарю полярности или 'off'"""
        return str(self.get('models.dictionary', "off") or "off")

    # --- Сервер и клиент ---
    def get_server_host(self) -> str:
        return self.get('server.host', "0.0.0.0")

    def get_server_port(self) -> int:
        return int(self.get('server.port', 5000))

    def get_server_timeout(self) -> Optional[float]:
        """Таймаут соединения на сервере; None если отключён."""
        timeout = float(self.get('server.timeout', 0) or 0)
        return timeout if timeout > 0 else None

    def get_client_host(self) -> str:
        return self.get('client.host', "localhost")

    def get_client_timeout(self) -> Optional[float]:
        timeout = float(self.get('client.timeout', 0) or 0)
        return timeout if timeout > 0 else None

    # --- Логирование ---
    def get_logging_config(self) -> Dict[str, Any]:
        """Получает конфигурацию логирования"""
        return self.config_data.get('logging', {})

    def get_console_logging_level(self) -> str:
        """Получает уровень логирования для консоли"""
        # Поддержка старого формата logging.level
        return self.get('logging.console_level', self.get('logging.level', "INFO"))

    def get_file_logging_level(self) -> str:
        """Получает уровень логирования для файла"""
        return self.get('logging.file_level', "DEBUG")

    def get_logging_level(self) -> str:
        return self.get_console_logging_level()

    def get_logging_format(self) -> str:
        """Получает формат логов"""
        return self.get('logging.format', "%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    def is_logging_to_file_enabled(self) -> bool:
        """Проверяет, включено ли логирование в файл"""
        return bool(self.get('logging.log_to_file', False))

    def get_logging_file(self) -> str:
        """Получает путь к файлу логов ({timestamp} заменяется на время запуска)"""
        log_file_template = self.get('logging.log_file', "logs/opinion_tagger.log")
        if "{timestamp}" in log_file_template:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            return log_file_template.replace("{timestamp}", timestamp)
        return log_file_template

    def get_max_log_files(self) -> int:
        return int(self.get('logging.max_log_files', 10))

    def cleanup_old_log_files(self) -> None:
        """Удаляет старые файлы логов, оставляя только последние max_log_files"""
        logs_dir = Path(self.get('logging.log_file', "logs/opinion_tagger.log")).parent
        if not logs_dir.exists():
            return
        log_files = sorted(logs_dir.glob("opinion_tagger_*.log"), key=lambda f: f.stat().st_mtime)
        max_files = self.get_max_log_files()
        for old_file in log_files[:-max_files] if len(log_files) > max_files else []:
            try:
                old_file.unlink()
                logger.debug(f"Удален старый лог файл: {old_file}")
            except OSError as e:
                logger.debug(f"Не удалось удалить лог файл {old_file}: {e}")


# Глобальный экземпляр конфигурации
config = Config()
