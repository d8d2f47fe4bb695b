# -*- coding: utf-8 -*-
"""
Renderizador em lote: processa a fila em sequência com as mesmas configurações
"""

from pathlib import Path
from typing import Callable, List, Optional

from ..domain.errors import ExportFailedError
from ..domain.models.jobs import ExportQueue, JobResources, QueueItem, QueueStatus
from ..domain.models.settings import VideoSettings, sanitize_settings
from ..infra.logging import get_logger
from .job_runner import JobRunner


ItemCallback = Callable[[QueueItem], None]


def batch_output_name(item: QueueItem) -> str:
    return f"processed_{item.id}_{item.source.path.stem}.mp4"


def failure_message(error: ExportFailedError) -> str:
    """Causa da falha seguida da última linha de log do engine"""
    message = str(error.cause) or "Falha no processamento"
    if error.log_tail:
        message = f"{message}: {error.log_tail[-1]}"
    return message


class BatchRenderer:
    """
    Executa os itens da fila um após o outro no mesmo engine.

    Um item com falha é marcado como erro e o lote continua.
    """

    def __init__(self, runner: JobRunner, output_dir: Path):
        self.logger = get_logger("BatchRenderer")
        self.runner = runner
        self.output_dir = Path(output_dir)
        self.is_processing = False

    def render(
        self,
        queue: ExportQueue,
        settings: VideoSettings,
        resources: Optional[JobResources] = None,
        on_update: Optional[ItemCallback] = None,
    ) -> List[QueueItem]:
        """Processa todos os itens que ainda não estão concluídos"""
        if self.is_processing:
            self.logger.warning("Lote já em andamento; ignorando")
            return []

        resources = resources or JobResources()
        # Mesmo snapshot para todos os itens do lote
        snapshot = sanitize_settings(settings, resources.watermark_image is not None)

        processed: List[QueueItem] = []
        self.is_processing = True
        try:
            items = queue.pending()
            self.logger.info("Iniciando lote com %d itens", len(items))
            for index, item in enumerate(items, 1):
                self.logger.info(
                    "Processando item %d/%d: %s", index, len(items), item.source.name
                )
                self._render_item(queue, item, snapshot, resources, on_update)
                processed.append(item)
        finally:
            self.is_processing = False

        done = sum(1 for item in processed if item.status == QueueStatus.DONE)
        self.logger.info("Lote finalizado: %d/%d concluídos", done, len(processed))
        return processed

    def _render_item(
        self,
        queue: ExportQueue,
        item: QueueItem,
        settings: VideoSettings,
        resources: JobResources,
        on_update: Optional[ItemCallback],
    ):
        def notify():
            if on_update:
                on_update(item)

        queue.update(
            item.id,
            status=QueueStatus.PROCESSING,
            progress=0.0,
            output_path=None,
            error_message=None,
            progress_history=[],
        )
        notify()

        def on_progress(value: float):
            item.progress = value
            item.progress_history.append(value)
            notify()

        try:
            result = self.runner.run(
                job_id=item.id,
                source=item.source,
                settings=settings,
                output_path=self.output_dir / batch_output_name(item),
                resources=resources,
                on_progress=on_progress,
            )
        except ExportFailedError as e:
            queue.update(
                item.id,
                status=QueueStatus.ERROR,
                error_message=failure_message(e),
            )
        else:
            queue.update(
                item.id,
                status=QueueStatus.DONE,
                output_path=result.output_path,
                progress=1.0,
            )
        notify()
