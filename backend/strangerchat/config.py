"""
Конфигурация приложения.
Значения берутся из окружения, затем из файла .env (python-decouple).
"""
from functools import lru_cache
from pathlib import Path

from decouple import Csv, config

_DEFAULT_STATIC_DIR = Path(__file__).resolve().parent.parent.parent / "frontend"


@lru_cache
def get_config():
    return type("Config", (), {
        "host": config("HOST", default="0.0.0.0"),
        "port": config("PORT", default=8001, cast=int),
        "allowed_origins": config("ALLOWED_ORIGINS", default="*", cast=Csv()),
        "log_level": config("LOG_LEVEL", default="INFO").upper(),
        "log_file": config("LOG_FILE", default=""),
        "static_dir": Path(config("STATIC_DIR", default=str(_DEFAULT_STATIC_DIR))),
    })()
