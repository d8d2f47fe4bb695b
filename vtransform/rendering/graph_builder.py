# -*- coding: utf-8 -*-
"""
Construção das cadeias de filtros FFmpeg a partir das configurações

A ordem dos filtros de vídeo importa: cada etapa trabalha sobre as
coordenadas e o tempo produzidos pelas etapas anteriores.
"""

from typing import List, Optional

from ..domain.models.jobs import RenderContext
from ..domain.models.settings import VideoSettings, clamp
from ..infra.logging import get_logger


# Fonte do drawtext, relativa ao armazenamento de trabalho do engine
DRAWTEXT_FONT_NAME = "wm_font.ttf"

# libx264 com yuv420p exige largura e altura pares
EVEN_DIMENSIONS_FILTER = "scale=trunc(iw/2)*2:trunc(ih/2)*2"

ATEMPO_MIN = 0.5
ATEMPO_MAX = 2.0

SHADOW_OFFSET = 2
SHADOW_ALPHA_BOOST = 0.2


def fmt_number(value: float) -> str:
    """Formata número para o filtergraph (inteiros sem casa decimal)"""
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    return str(value)


def escape_drawtext_text(text: str) -> str:
    """
    Escapa texto para drawtext.

    ':' separa chave=valor, então é escapado; aspas simples fechariam
    text='...', então são removidas.
    """
    return text.replace(":", "\\:").replace("'", "")


def build_atempo_chain(rate: float) -> List[float]:
    """
    Decompõe a velocidade em fatores de atempo dentro de [0.5, 2.0].

    O produto dos fatores é igual à velocidade pedida.
    """
    factors: List[float] = []
    if rate <= 0:
        return factors

    while rate > ATEMPO_MAX:
        factors.append(ATEMPO_MAX)
        rate /= ATEMPO_MAX

    while rate < ATEMPO_MIN:
        factors.append(ATEMPO_MIN)
        rate /= ATEMPO_MIN

    factors.append(rate)
    return factors


class FilterGraph:
    """Representa as cadeias de filtros de um comando FFmpeg"""

    def __init__(self):
        self.inputs: List[str] = []
        self.video_filters: List[str] = []
        self.audio_filters: List[str] = []
        # Cadeias do -filter_complex (apenas na composição com imagem)
        self.filters: List[str] = []
        self.video_output: Optional[str] = None

    def add_input(self, input_name: str):
        """Adiciona um input ao comando"""
        self.inputs.append(input_name)

    def add_filter(self, filter_expr: str):
        """Adiciona uma cadeia ao filter_complex"""
        self.filters.append(filter_expr)

    @property
    def is_complex(self) -> bool:
        return bool(self.filters)

    def video_chain(self) -> str:
        return ",".join(self.video_filters)

    def audio_chain(self) -> str:
        return ",".join(self.audio_filters)

    def to_string(self) -> str:
        """Converte o filter_complex para string FFmpeg"""
        return ";".join(self.filters)


class GraphBuilder:
    """Constrói o filtergraph a partir das configurações"""

    def __init__(self):
        self.logger = get_logger("GraphBuilder")

    def build(
        self, input_name: str, settings: VideoSettings, context: RenderContext
    ) -> FilterGraph:
        """Constrói o filtergraph completo para um job"""
        graph = FilterGraph()
        graph.add_input(input_name)

        video_filters = self.build_video_filters(settings)
        fades = self.build_fade_filters(settings, context.input_duration_sec)
        # Fades entram depois do setpts (tempo de saída) e antes da correção
        # de dimensões pares, que permanece sempre como último filtro.
        graph.video_filters = video_filters[:-1] + fades + video_filters[-1:]
        graph.audio_filters = self.build_audio_filters(settings)

        watermark_image = (
            context.watermark_image_input_name
            if settings.watermark_image_enabled
            else None
        )
        if watermark_image:
            graph.add_input(watermark_image)
            self._build_image_overlay(graph, settings)

        self.logger.debug(
            "Filtergraph construído: vf=%s af=%s fc=%s",
            graph.video_chain(),
            graph.audio_chain(),
            graph.to_string(),
        )
        return graph

    def build_video_filters(self, settings: VideoSettings) -> List[str]:
        """Cadeia de filtros de vídeo, terminando na correção de dimensões"""
        filters: List[str] = []

        # Correção de cor (sempre presente)
        filters.append(
            "eq=brightness={}:contrast={}:saturation={}".format(
                fmt_number(settings.brightness),
                fmt_number(settings.contrast),
                fmt_number(settings.saturation),
            )
        )

        # Enquadramento
        if settings.flip_h:
            filters.append("hflip")

        filters.extend(self._rotation_filters(settings.rotation))
        filters.extend(self._smart_crop_filters(settings.smart_crop))

        # Granulação
        if settings.film_grain > 0:
            strength = clamp(settings.film_grain, 0, 100)
            filters.append(f"noise=alls={fmt_number(strength)}:allf=t+u")

        if settings.watermark_text:
            filters.append(self._drawtext_filter(settings))

        # Velocidade
        if settings.playback_rate != 1:
            filters.append(f"setpts=PTS/{fmt_number(settings.playback_rate)}")

        filters.append(EVEN_DIMENSIONS_FILTER)
        return filters

    def build_fade_filters(
        self, settings: VideoSettings, input_duration_sec: float = 0.0
    ) -> List[str]:
        """Fade in sempre; fade out apenas com duração conhecida"""
        if not settings.fade_enabled or settings.fade_duration <= 0:
            return []

        d = clamp(settings.fade_duration, 0.1, 2.0)
        filters = [f"fade=t=in:st=0:d={fmt_number(d)}"]

        if input_duration_sec and input_duration_sec > 0:
            out_duration = input_duration_sec / (settings.playback_rate or 1)
            start = max(0.0, out_duration - d)
            filters.append(
                f"fade=t=out:st={fmt_number(round(start, 6))}:d={fmt_number(d)}"
            )
        return filters

    def build_audio_filters(self, settings: VideoSettings) -> List[str]:
        """atempo encadeado quando a velocidade muda"""
        if settings.playback_rate == 1:
            return []
        return [
            f"atempo={fmt_number(factor)}"
            for factor in build_atempo_chain(settings.playback_rate)
        ]

    def _rotation_filters(self, rotation: int) -> List[str]:
        if rotation == 90:
            return ["transpose=1"]
        if rotation == 180:
            return ["transpose=1", "transpose=1"]
        if rotation == 270:
            return ["transpose=2"]
        return []

    def _smart_crop_filters(self, smart_crop: float) -> List[str]:
        """Remove a fração de cada borda e escala de volta ao tamanho original"""
        if smart_crop <= 0:
            return []

        p = clamp(smart_crop, 0, 0.2)
        keep = 1 - 2 * p
        p_s, keep_s = fmt_number(p), fmt_number(keep)
        return [
            f"crop=iw*{keep_s}:ih*{keep_s}:iw*{p_s}:ih*{p_s}",
            # Depois do crop, iw/ih já são as dimensões recortadas
            f"scale=iw/{keep_s}:ih/{keep_s}",
        ]

    def _drawtext_filter(self, settings: VideoSettings) -> str:
        safe_text = escape_drawtext_text(settings.watermark_text)

        # X/Y representam o centro do texto
        x = f"(w*{fmt_number(settings.watermark_x / 100)}-text_w/2)"
        y = f"(h*{fmt_number(settings.watermark_y / 100)}-text_h/2)"

        hex_color = (settings.watermark_color or "#ffffff").replace("#", "")
        alpha = clamp(settings.watermark_opacity, 0, 100) / 100
        shadow_alpha = min(1.0, round(alpha + SHADOW_ALPHA_BOOST, 4))

        return (
            f"drawtext=fontfile={DRAWTEXT_FONT_NAME}:text='{safe_text}'"
            f":x={x}:y={y}:fontsize={fmt_number(settings.watermark_size)}"
            f":fontcolor=0x{hex_color}@{fmt_number(alpha)}"
            f":shadowcolor=black@{fmt_number(shadow_alpha)}"
            f":shadowx={SHADOW_OFFSET}:shadowy={SHADOW_OFFSET}"
        )

    def _build_image_overlay(self, graph: FilterGraph, settings: VideoSettings):
        """Compõe a imagem (input 1) centrada em X/Y% sobre o vídeo (input 0)"""
        base = graph.video_chain() or "null"
        alpha = clamp(settings.watermark_image_opacity, 0, 100) / 100
        scale = fmt_number(clamp(settings.watermark_image_scale, 0.05, 2.0))
        x = f"W*{fmt_number(settings.watermark_image_x / 100)}-w/2"
        y = f"H*{fmt_number(settings.watermark_image_y / 100)}-h/2"

        graph.add_filter(f"[0:v]{base}[v0]")
        graph.add_filter(
            f"[1:v]format=rgba,colorchannelmixer=aa={fmt_number(alpha)}"
            f",scale=iw*{scale}:ih*{scale}[wm]"
        )
        graph.add_filter(f"[v0][wm]overlay=x={x}:y={y}:format=auto[v]")
        graph.video_output = "[v]"
