# -*- coding: utf-8 -*-
"""
Resolução dos binários do FFmpeg
"""

import os
import shutil
from typing import Optional


def _resolve(explicit: Optional[str], name: str) -> str:
    if explicit:
        return explicit
    exe_name = f"{name}.exe" if os.name == "nt" else name
    return shutil.which(exe_name) or exe_name


def ffmpeg_bin(explicit: Optional[str] = None) -> str:
    """Resolve o caminho para o binário do FFmpeg"""
    return _resolve(explicit, "ffmpeg")


def ffprobe_bin(explicit: Optional[str] = None) -> str:
    """Resolve o caminho para o binário do FFprobe"""
    return _resolve(explicit, "ffprobe")
