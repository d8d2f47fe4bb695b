# -*- coding: utf-8 -*-
"""
Execução de um job de exportação contra o engine compartilhado

Pipeline:
1. Carregar engine (com timeout)
2. Duração da fonte (apenas com fade) e fonte do drawtext (apenas com texto)
3. Preparar entradas no armazenamento de trabalho
4. Compilar argumentos -> executar engine (com timeout)
5. Ler e validar a saída
6. Limpar o armazenamento de trabalho em qualquer caminho
"""

from collections import deque
from pathlib import Path
from typing import Callable, Deque, List, Optional

from ..domain.errors import (
    EngineLoadTimeoutError,
    EngineTimeoutError,
    EmptyOutputError,
    ExportFailedError,
    RenderTimeoutError,
    StagingError,
)
from ..domain.models.jobs import (
    ExportResult,
    JobNames,
    JobResources,
    JobState,
    MediaResource,
    RenderContext,
    utc_now_iso,
)
from ..domain.models.settings import VideoSettings, sanitize_settings
from ..engine.base import Engine, LogEvent, ProgressEvent
from ..infra.logging import get_logger
from ..infra.media_io import MediaIO
from ..infra.settings import AppSettings
from .cli_builder import CliBuilder
from .fonts import FontResolver
from .progress import ProgressTracker
from .staging import StagedFiles
from .timeouts import call_with_timeout, iterate_with_timeout


ProgressCallback = Callable[[float], None]


class JobRunner:
    """Executa jobs, um por vez, contra uma única instância do engine"""

    def __init__(
        self,
        engine: Engine,
        config: Optional[AppSettings] = None,
        font_resolver: Optional[FontResolver] = None,
        cli_builder: Optional[CliBuilder] = None,
        duration_probe: Optional[Callable[[Path], float]] = None,
    ):
        self.logger = get_logger("JobRunner")
        self.engine = engine
        self.config = config or AppSettings()
        self.font_resolver = font_resolver or FontResolver(
            engine,
            default_font_path=self.config.default_font_path,
            default_font_url=self.config.default_font_url,
            download_timeout=self.config.font_download_timeout,
        )
        self.cli_builder = cli_builder or CliBuilder()
        self.duration_probe = duration_probe or MediaIO(
            self.config.ffprobe_path, self.config.probe_timeout
        ).get_video_duration
        self.state = JobState.IDLE
        # Depois de um timeout o engine não é confiável para reuso imediato
        self.engine_trusted = True

    def run(
        self,
        job_id: str,
        source: MediaResource,
        settings: VideoSettings,
        output_path: Path,
        resources: Optional[JobResources] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ExportResult:
        """
        Executa um job completo.

        Qualquer falha vira ExportFailedError, com a causa original e o fim
        do log do engine para diagnóstico.
        """
        resources = resources or JobResources()
        settings = sanitize_settings(settings, resources.watermark_image is not None)
        logs: Deque[str] = deque(maxlen=self.config.log_buffer_size)
        tracker = ProgressTracker()

        self.logger.info("Iniciando job %s: %s", job_id, source.name)
        try:
            self._ensure_engine()

            input_duration = 0.0
            if settings.fade_enabled:
                input_duration = self._probe_duration(source)

            if settings.watermark_text:
                self.font_resolver.ensure_font(resources.font)

            watermark_image = (
                resources.watermark_image if settings.watermark_image_enabled else None
            )
            names = JobNames.for_job(job_id, source, watermark_image)

            self._set_state(job_id, JobState.STAGING)
            with StagedFiles(self.engine) as staged:
                staged.purge(names.all())
                for name in names.all():
                    staged.claim(name)

                staged.stage(names.input, self._read(source, names.input))
                if watermark_image is not None:
                    staged.stage(
                        names.watermark_image,
                        self._read(watermark_image, names.watermark_image),
                    )

                args = self.cli_builder.make_command(
                    names.input,
                    names.output,
                    settings,
                    RenderContext(
                        input_duration_sec=input_duration,
                        now_iso=utc_now_iso(),
                        watermark_image_input_name=names.watermark_image,
                    ),
                )

                self._set_state(job_id, JobState.RENDERING)
                self._render(job_id, args, tracker, logs, on_progress)

                self._set_state(job_id, JobState.READING_OUTPUT)
                data = self.engine.read_file(names.output)
                if len(data) < self.config.min_output_bytes:
                    raise EmptyOutputError(len(data))

                output_path = Path(output_path)
                output_path.parent.mkdir(parents=True, exist_ok=True)
                output_path.write_bytes(data)

        except Exception as e:
            self._set_state(job_id, JobState.ERROR)
            tail = list(logs)[-self.config.log_tail_lines :]
            self.logger.error("Exportação %s falhou: %s", job_id, e)
            if tail:
                self.logger.error("Logs do FFmpeg (fim) [%s]:\n%s", job_id, "\n".join(tail))
            raise ExportFailedError(e, tail) from e

        self._set_state(job_id, JobState.DONE)
        if on_progress:
            on_progress(1.0)
        self.logger.info("Job %s concluído: %s (%d bytes)", job_id, output_path, len(data))
        return ExportResult(
            job_id=job_id,
            output_path=output_path,
            size=len(data),
            progress_history=list(tracker.history),
        )

    def _ensure_engine(self):
        """Carrega o engine, recriando-o se um timeout anterior o deixou instável"""
        if not self.engine_trusted and self.config.recreate_engine_after_timeout:
            self.logger.warning("Recriando engine após timeout anterior")
            self.engine.reset()
            self.font_resolver.forget()
            self.engine_trusted = True

        if self.engine.loaded:
            return

        try:
            call_with_timeout(
                self.engine.load,
                self.config.engine_load_timeout,
                EngineLoadTimeoutError,
            )
        except EngineTimeoutError:
            self.engine_trusted = False
            raise

    def _probe_duration(self, source: MediaResource) -> float:
        """Falha na sonda apenas omite o fade out"""
        try:
            return self.duration_probe(source.path) or 0.0
        except Exception as e:
            self.logger.warning("Duração desconhecida para %s: %s", source.name, e)
            return 0.0

    def _read(self, resource: MediaResource, name: str) -> bytes:
        try:
            return resource.read_bytes()
        except OSError as e:
            raise StagingError(name, str(e)) from e

    def _render(
        self,
        job_id: str,
        args: List[str],
        tracker: ProgressTracker,
        logs: Deque[str],
        on_progress: Optional[ProgressCallback],
    ):
        engine_logger = get_logger(f"FFmpeg.{job_id}")
        events = iterate_with_timeout(
            self.engine.execute(args),
            self.config.render_timeout,
            RenderTimeoutError,
        )
        try:
            for event in events:
                if isinstance(event, LogEvent):
                    logs.append(event.message)
                    engine_logger.debug(event.message)
                elif isinstance(event, ProgressEvent):
                    value = tracker.update(event)
                    if on_progress:
                        on_progress(value)
        except EngineTimeoutError:
            self.engine_trusted = False
            raise

    def _set_state(self, job_id: str, state: JobState):
        self.logger.debug("Job %s: %s -> %s", job_id, self.state.value, state.value)
        self.state = state
