# -*- coding: utf-8 -*-
"""
Serviços de mídia/IO para FFprobe e operações de arquivo
"""

import json
import math
import mimetypes
import subprocess
from pathlib import Path
from typing import Optional

from .logging import get_logger
from .paths import ffprobe_bin


class MediaIO:
    """Serviços de entrada/saída de mídia"""

    def __init__(self, ffprobe_path: Optional[str] = None, timeout: float = 30.0):
        self.logger = get_logger("MediaIO")
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    def get_video_duration(self, video_path: Path) -> float:
        """Obtém duração do vídeo em segundos (0.0 se desconhecida)"""
        if not video_path or not Path(video_path).exists():
            return 0.0

        try:
            result = subprocess.run(
                [
                    ffprobe_bin(self.ffprobe_path),
                    "-v",
                    "error",
                    "-show_entries",
                    "format=duration",
                    "-of",
                    "json",
                    str(video_path),
                ],
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
            data = json.loads(result.stdout)
            duration = float(data["format"]["duration"])
        except Exception as e:
            self.logger.warning("Erro ao obter duração de %s: %s", video_path, e)
            return 0.0

        if not math.isfinite(duration) or duration <= 0:
            return 0.0

        self.logger.debug("Duração de %s: %.2fs", video_path, duration)
        return duration


def guess_media_type(path: Path) -> str:
    """Tipo de mídia declarado a partir da extensão"""
    media_type, _ = mimetypes.guess_type(str(path))
    return media_type or "application/octet-stream"


def format_bytes(num_bytes: int, decimals: int = 2) -> str:
    """Formata tamanho em bytes para leitura humana"""
    if not num_bytes:
        return "0 Bytes"
    k = 1024
    dm = max(decimals, 0)
    sizes = ["Bytes", "KB", "MB", "GB", "TB"]
    i = min(int(math.floor(math.log(num_bytes) / math.log(k))), len(sizes) - 1)
    value = round(num_bytes / math.pow(k, i), dm)
    return f"{value:g} {sizes[i]}"
