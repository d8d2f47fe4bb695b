# -*- coding: utf-8 -*-
"""
Configurações da aplicação usando pydantic-settings
"""

import json
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


DEFAULT_FONT_URL = (
    "https://raw.githubusercontent.com/ffmpegwasm/testdata/master/arial.ttf"
)


class AppSettings(BaseSettings):
    """Configurações da aplicação"""

    ffmpeg_path: Optional[str] = None
    ffprobe_path: Optional[str] = None

    # Limites de tempo (segundos)
    engine_load_timeout: float = 60.0
    render_timeout: float = 20 * 60.0
    probe_timeout: float = 30.0

    # Saída menor que isso é considerada vazia/corrompida
    min_output_bytes: int = 256
    max_input_bytes: int = 2 * 1024 * 1024 * 1024

    # Buffer de logs do engine
    log_buffer_size: int = 200
    log_tail_lines: int = 50

    default_font_path: Optional[str] = None
    default_font_url: str = DEFAULT_FONT_URL
    font_download_timeout: float = 30.0

    output_dir: str = "output_videos"
    work_dir: Optional[str] = None

    recreate_engine_after_timeout: bool = True

    class Config:
        env_prefix = "APP_"
        env_file = ".env"
        case_sensitive = False


def load_settings(config_path: Optional[Path] = None) -> AppSettings:
    """Carrega as configurações da aplicação"""
    # Primeiro tenta carregar do config.json
    config_path = config_path or Path("config.json")
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = json.load(f)
        return AppSettings(**config_data)

    # Senão carrega das variáveis de ambiente ou padrões
    return AppSettings()
