# -*- coding: utf-8 -*-
"""
vtransform/application/services/export_service.py
Serviço de exportação: dono do engine, das configurações e da fila
"""

from pathlib import Path
from typing import Any, List, Optional

from ...domain.errors import ExportFailedError, StagingError
from ...domain.models.jobs import (
    ExportQueue,
    ExportResult,
    JobResources,
    MediaResource,
    QueueItem,
    new_item_id,
)
from ...domain.models.settings import (
    DEFAULT_SETTINGS,
    VideoSettings,
    reset_settings,
    sanitize_settings,
    update_settings,
)
from ...engine.base import Engine
from ...engine.local import LocalFFmpegEngine
from ...infra.logging import get_logger
from ...infra.media_io import MediaIO, format_bytes
from ...infra.settings import AppSettings, load_settings
from ...rendering.batch_renderer import BatchRenderer, ItemCallback
from ...rendering.job_runner import JobRunner, ProgressCallback


class ExportService:
    """
    Ponto de entrada da aplicação.

    O engine é criado uma vez (ou injetado), carregado sob demanda e
    reutilizado por todas as exportações, individuais ou em lote.
    """

    def __init__(
        self,
        config: Optional[AppSettings] = None,
        engine: Optional[Engine] = None,
        runner: Optional[JobRunner] = None,
    ):
        self.logger = get_logger("ExportService")
        self.config = config or load_settings()
        self.engine = engine or LocalFFmpegEngine(
            ffmpeg_path=self.config.ffmpeg_path,
            work_dir=self.config.work_dir,
            media_io=MediaIO(self.config.ffprobe_path, self.config.probe_timeout),
            load_timeout=self.config.engine_load_timeout,
        )
        self.runner = runner or JobRunner(self.engine, self.config)
        self.output_dir = Path(self.config.output_dir)
        self.batch_renderer = BatchRenderer(self.runner, self.output_dir)
        self.queue = ExportQueue(max_input_bytes=self.config.max_input_bytes)

        self.settings: VideoSettings = DEFAULT_SETTINGS
        self.watermark_image: Optional[MediaResource] = None
        self.watermark_font: Optional[MediaResource] = None

    # Configurações

    def update_settings(self, **changes: Any) -> VideoSettings:
        self.settings = update_settings(
            self.settings, self.watermark_image is not None, **changes
        )
        return self.settings

    def set_settings(self, settings: Any) -> VideoSettings:
        """Substitui as configurações (p.ex. vindas de um preset JSON)"""
        self.settings = sanitize_settings(settings, self.watermark_image is not None)
        return self.settings

    def reset_settings(self) -> VideoSettings:
        self.settings = reset_settings()
        return self.settings

    def set_watermark_image(self, path: Optional[Path]) -> None:
        """Anexar imagem habilita a marca d'água de imagem; remover desabilita"""
        if path is None:
            self.watermark_image = None
            self.settings = update_settings(
                self.settings, False, watermark_image_enabled=False
            )
            return
        self.watermark_image = MediaResource.from_path(path)
        self.settings = update_settings(
            self.settings, True, watermark_image_enabled=True
        )

    def set_watermark_font(self, path: Optional[Path]) -> None:
        self.watermark_font = MediaResource.from_path(path) if path else None

    def resources(self) -> JobResources:
        return JobResources(
            watermark_image=self.watermark_image, font=self.watermark_font
        )

    # Exportação

    def export(
        self,
        video_path: Path,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ExportResult:
        """Exporta um único vídeo com as configurações atuais"""
        source = MediaResource.from_path(video_path)
        try:
            size = source.size()
        except OSError as e:
            self.logger.error("Não foi possível ler %s: %s", source.name, e)
            raise ExportFailedError(StagingError(source.name, str(e))) from e
        if size > self.config.max_input_bytes:
            self.logger.warning(
                "Arquivo %s tem %s; o processamento pode falhar por falta de memória",
                source.name,
                format_bytes(size),
            )

        return self.runner.run(
            job_id=new_item_id(),
            source=source,
            settings=self.settings,
            output_path=self.output_dir / f"processed_{source.path.stem}.mp4",
            resources=self.resources(),
            on_progress=on_progress,
        )

    def enqueue(self, paths: List[Path]) -> List[QueueItem]:
        return self.queue.add(paths)

    def run_batch(self, on_update: Optional[ItemCallback] = None) -> List[QueueItem]:
        """Processa a fila com um snapshot das configurações atuais"""
        return self.batch_renderer.render(
            self.queue, self.settings, self.resources(), on_update
        )

    def close(self) -> None:
        self.engine.reset()
