# -*- coding: utf-8 -*-
"""
Construção dos argumentos FFmpeg a partir do filtergraph
"""

from typing import List, Optional

from ..domain.models.jobs import RenderContext, utc_now_iso
from ..domain.models.settings import VideoSettings
from ..infra.logging import get_logger
from .graph_builder import FilterGraph, GraphBuilder


METADATA_COMMENT = "transformed"


class CliBuilder:
    """Constrói a lista de argumentos passada ao engine"""

    def __init__(self, graph_builder: Optional[GraphBuilder] = None):
        self.logger = get_logger("CliBuilder")
        self.graph_builder = graph_builder or GraphBuilder()

    def make_command(
        self,
        input_name: str,
        output_name: str,
        settings: VideoSettings,
        context: Optional[RenderContext] = None,
    ) -> List[str]:
        """Gera os argumentos completos (sem o binário), saída por último"""
        context = context or RenderContext()
        graph = self.graph_builder.build(input_name, settings, context)

        cmd: List[str] = []
        for name in graph.inputs:
            cmd.extend(["-i", name])

        if graph.is_complex:
            cmd.extend(["-filter_complex", graph.to_string()])
            cmd.extend(["-map", graph.video_output])
            # O áudio vem direto do vídeo, se existir
            cmd.extend(["-map", "0:a?"])
        elif graph.video_filters:
            cmd.extend(["-vf", graph.video_chain()])

        if graph.audio_filters:
            cmd.extend(["-af", graph.audio_chain()])

        if settings.regenerate_metadata:
            cmd.extend(self._metadata_args(context.now_iso or utc_now_iso()))

        # Rápido e compatível com navegadores
        cmd.extend(["-preset", "ultrafast"])
        cmd.extend(["-pix_fmt", "yuv420p", "-movflags", "+faststart"])

        cmd.append(output_name)

        self.logger.debug("Argumentos FFmpeg: %s", " ".join(cmd))
        return cmd

    def _metadata_args(self, now_iso: str) -> List[str]:
        """Remove os metadados existentes e grava novos"""
        return [
            "-map_metadata",
            "-1",
            "-metadata",
            f"creation_time={now_iso}",
            "-metadata",
            f"comment={METADATA_COMMENT}",
        ]


def compile_command(
    input_name: str,
    output_name: str,
    settings: VideoSettings,
    context: Optional[RenderContext] = None,
) -> List[str]:
    """Compila configurações + contexto na lista de argumentos do engine"""
    return CliBuilder().make_command(input_name, output_name, settings, context)
