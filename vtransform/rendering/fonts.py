# -*- coding: utf-8 -*-
"""
Carregamento da fonte usada pelo drawtext
"""

from pathlib import Path
from typing import Optional

import requests

from ..domain.models.jobs import MediaResource
from ..engine.base import Engine
from ..infra.logging import get_logger
from .graph_builder import DRAWTEXT_FONT_NAME


DEFAULT_FONT_KEY = "__default__"


class FontResolver:
    """Grava a fonte no armazenamento do engine uma vez por identidade"""

    def __init__(
        self,
        engine: Engine,
        default_font_path: Optional[str] = None,
        default_font_url: Optional[str] = None,
        download_timeout: float = 30.0,
    ):
        self.engine = engine
        self.default_font_path = default_font_path
        self.default_font_url = default_font_url
        self.download_timeout = download_timeout
        self.loaded_key: Optional[str] = None
        self.logger = get_logger("FontResolver")

    def ensure_font(self, font: Optional[MediaResource] = None) -> bool:
        """
        Garante a fonte no armazenamento de trabalho.

        Falhas são registradas e não propagadas: apenas a marca d'água de
        texto depende da fonte.
        """
        try:
            key = font.identity_key() if font else DEFAULT_FONT_KEY
            if self.loaded_key == key:
                return True

            data = font.read_bytes() if font else self._default_font_bytes()
            self.engine.write_file(DRAWTEXT_FONT_NAME, data)
        except Exception as e:
            self.logger.warning(
                "Não foi possível carregar a fonte; a marca d'água de texto pode falhar: %s",
                e,
            )
            return False

        self.loaded_key = key
        self.logger.info("Fonte carregada: %s", key)
        return True

    def forget(self):
        """Esquece a fonte carregada (p.ex. após recriar o engine)"""
        self.loaded_key = None

    def _default_font_bytes(self) -> bytes:
        if self.default_font_path and Path(self.default_font_path).exists():
            return Path(self.default_font_path).read_bytes()

        if not self.default_font_url:
            raise FileNotFoundError("Nenhuma fonte padrão configurada")

        self.logger.info("Baixando fonte padrão: %s", self.default_font_url)
        response = requests.get(self.default_font_url, timeout=self.download_timeout)
        response.raise_for_status()
        return response.content
