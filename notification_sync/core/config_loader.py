# notification_sync/core/config_loader.py
import yaml
from pathlib import Path
from functools import lru_cache
from notification_sync.core.schemas.config import SyncSettings

# Определяем путь к директории с конфигами относительно текущего файла
CONFIG_PATH = Path(__file__).parent / "configs"

@lru_cache(maxsize=1)
def load_sync_settings_config() -> SyncSettings:
    """
    Загружает, валидирует через Pydantic и кеширует настройки синхронизации
    (размер страницы, интервал фонового обновления).
    """
    config_file = CONFIG_PATH / "sync_settings.yml"
    if not config_file.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")
    with open(config_file, 'r', encoding='utf-8') as f:
        raw_config = yaml.safe_load(f)
    return SyncSettings(**raw_config)

# Загружаем конфиг при импорте модуля, чтобы сразу проверить его наличие и валидность
SYNC_CONFIG = load_sync_settings_config()
