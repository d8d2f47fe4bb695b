# -*- coding: utf-8 -*-
"""
Modelo de configurações de transformação de vídeo

Todo valor numérico é limitado à sua faixa válida a cada alteração.
A sanitização nunca rejeita uma entrada: valores inválidos viram o valor
válido mais próximo ou o padrão.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import asdict, dataclass
from typing import Any, Literal, Mapping


VALID_ROTATIONS = (0, 90, 180, 270)
HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


@dataclass(frozen=True)
class VideoSettings:
    """Conjunto declarativo de transformações aplicadas a um vídeo"""

    # Correção de cor
    brightness: float = 0  # -1..1
    contrast: float = 1  # 0..2
    saturation: float = 1  # 0..3

    # Enquadramento
    smart_crop: float = 0  # 0..0.20 de cada borda
    flip_h: bool = False
    rotation: int = 0  # 0, 90, 180, 270

    # Efeitos
    film_grain: float = 0  # 0..100
    fade_enabled: bool = False
    fade_duration: float = 0.5  # 0.1..2.0 s

    # Marca d'água de texto (x/y são o centro do texto, em %)
    watermark_text: str = ""
    watermark_x: float = 5
    watermark_y: float = 5
    watermark_size: float = 24  # 8..200
    watermark_font_family: str = "Arial"
    watermark_font_weight: float = 700  # 100..900
    watermark_font_style: Literal["normal", "italic"] = "normal"
    watermark_color: str = "#ffffff"
    watermark_opacity: float = 100  # 0..100

    # Marca d'água de imagem (o arquivo fica fora das configurações)
    watermark_image_enabled: bool = False
    watermark_image_x: float = 5
    watermark_image_y: float = 5
    watermark_image_scale: float = 0.25  # 0.05..2.0
    watermark_image_opacity: float = 90  # 0..100

    playback_rate: float = 1  # 0.95..1.05

    regenerate_metadata: bool = True


DEFAULT_SETTINGS = VideoSettings()

# Nome do campo -> chave JSON (formato plano compartilhado com presets)
JSON_KEYS = {
    "brightness": "brightness",
    "contrast": "contrast",
    "saturation": "saturation",
    "smart_crop": "smartCrop",
    "flip_h": "flipH",
    "rotation": "rotation",
    "film_grain": "filmGrain",
    "fade_enabled": "fadeEnabled",
    "fade_duration": "fadeDuration",
    "watermark_text": "watermarkText",
    "watermark_x": "watermarkX",
    "watermark_y": "watermarkY",
    "watermark_size": "watermarkSize",
    "watermark_font_family": "watermarkFontFamily",
    "watermark_font_weight": "watermarkFontWeight",
    "watermark_font_style": "watermarkFontStyle",
    "watermark_color": "watermarkColor",
    "watermark_opacity": "watermarkOpacity",
    "watermark_image_enabled": "watermarkImageEnabled",
    "watermark_image_x": "watermarkImageX",
    "watermark_image_y": "watermarkImageY",
    "watermark_image_scale": "watermarkImageScale",
    "watermark_image_opacity": "watermarkImageOpacity",
    "playback_rate": "playbackRate",
    "regenerate_metadata": "regenerateMetadata",
}
FIELD_NAMES = {v: k for k, v in JSON_KEYS.items()}


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def as_finite_number(value: Any, fallback: float) -> float:
    """Retorna o valor se for número finito, senão o fallback"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    try:
        if not math.isfinite(value):
            return fallback
    except OverflowError:
        # int grande demais para float
        return fallback
    return value


def _as_bool(value: Any, fallback: bool) -> bool:
    if value is None:
        return fallback
    return bool(value)


def _as_str(value: Any, fallback: str) -> str:
    if value is None:
        return fallback
    return str(value)


def _as_color(value: Any, fallback: str) -> str:
    if isinstance(value, str) and HEX_COLOR_RE.match(value):
        return value
    return fallback


def _as_rotation(value: Any) -> int:
    number = as_finite_number(value, 0)
    if number in VALID_ROTATIONS:
        return int(number)
    return 0


def sanitize_settings(
    raw: VideoSettings | Mapping[str, Any] | None,
    has_watermark_image: bool = False,
) -> VideoSettings:
    """
    Normaliza qualquer entrada para um VideoSettings válido.

    Aceita um VideoSettings ou um mapeamento (nomes de campo ou chaves JSON).
    Campos ausentes usam o padrão; campos extras são ignorados.
    """
    values = _to_field_mapping(raw)
    d = DEFAULT_SETTINGS

    def num(name: str, lo: float, hi: float) -> float:
        return clamp(as_finite_number(values.get(name), getattr(d, name)), lo, hi)

    return VideoSettings(
        brightness=num("brightness", -1, 1),
        contrast=num("contrast", 0, 2),
        saturation=num("saturation", 0, 3),
        smart_crop=num("smart_crop", 0, 0.2),
        flip_h=_as_bool(values.get("flip_h"), d.flip_h),
        rotation=_as_rotation(values.get("rotation")),
        film_grain=num("film_grain", 0, 100),
        fade_enabled=_as_bool(values.get("fade_enabled"), d.fade_enabled),
        fade_duration=num("fade_duration", 0.1, 2.0),
        watermark_text=_as_str(values.get("watermark_text"), d.watermark_text),
        watermark_x=num("watermark_x", 0, 100),
        watermark_y=num("watermark_y", 0, 100),
        watermark_size=num("watermark_size", 8, 200),
        watermark_font_family=_as_str(
            values.get("watermark_font_family"), d.watermark_font_family
        ),
        watermark_font_weight=num("watermark_font_weight", 100, 900),
        watermark_font_style=(
            "italic" if values.get("watermark_font_style") == "italic" else "normal"
        ),
        watermark_color=_as_color(values.get("watermark_color"), d.watermark_color),
        watermark_opacity=num("watermark_opacity", 0, 100),
        watermark_image_enabled=(
            _as_bool(values.get("watermark_image_enabled"), d.watermark_image_enabled)
            if has_watermark_image
            else False
        ),
        watermark_image_x=num("watermark_image_x", 0, 100),
        watermark_image_y=num("watermark_image_y", 0, 100),
        watermark_image_scale=num("watermark_image_scale", 0.05, 2.0),
        watermark_image_opacity=num("watermark_image_opacity", 0, 100),
        playback_rate=num("playback_rate", 0.95, 1.05),
        regenerate_metadata=_as_bool(
            values.get("regenerate_metadata"), d.regenerate_metadata
        ),
    )


def _to_field_mapping(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, VideoSettings):
        return asdict(raw)
    if not isinstance(raw, Mapping):
        return {}

    values: dict[str, Any] = {}
    for key, value in raw.items():
        if key in JSON_KEYS:
            values[key] = value
        elif key in FIELD_NAMES:
            values[FIELD_NAMES[key]] = value
    return values


def update_settings(
    current: VideoSettings, has_watermark_image: bool = False, **changes: Any
) -> VideoSettings:
    """Aplica uma alteração parcial e sanitiza o resultado"""
    merged = {**asdict(current), **changes}
    return sanitize_settings(merged, has_watermark_image)


def reset_settings() -> VideoSettings:
    """Volta às configurações padrão"""
    return DEFAULT_SETTINGS


def settings_to_dict(settings: VideoSettings) -> dict[str, Any]:
    """Serializa para a estrutura JSON plana"""
    return {JSON_KEYS[name]: value for name, value in asdict(settings).items()}


def settings_to_json(settings: VideoSettings, **kwargs: Any) -> str:
    return json.dumps(settings_to_dict(settings), **kwargs)


def settings_from_json(
    text: str | bytes, has_watermark_image: bool = False
) -> VideoSettings:
    """Lê configurações de JSON; JSON malformado resulta nos padrões"""
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        data = None
    return sanitize_settings(data, has_watermark_image)
