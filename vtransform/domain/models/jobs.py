# -*- coding: utf-8 -*-
"""
Modelos de jobs de exportação e da fila de lote
"""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from ...infra.logging import get_logger
from ...infra.media_io import guess_media_type


WATERMARK_EXTENSIONS = (
    ("png", "png"),
    ("jpeg", "jpg"),
    ("jpg", "jpg"),
    ("webp", "webp"),
    ("gif", "gif"),
)


@dataclass(frozen=True)
class MediaResource:
    """Arquivo de mídia com tipo declarado"""

    path: Path
    media_type: str = ""

    @classmethod
    def from_path(cls, path: Path | str) -> "MediaResource":
        path = Path(path)
        return cls(path=path, media_type=guess_media_type(path))

    @property
    def name(self) -> str:
        return self.path.name

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def size(self) -> int:
        return self.path.stat().st_size

    def identity_key(self) -> str:
        """Identidade usada para evitar regravações (nome, tamanho, mtime)"""
        stat = self.path.stat()
        return f"{self.path.name}:{stat.st_size}:{int(stat.st_mtime * 1000)}"

    def watermark_extension(self) -> str:
        """Extensão derivada do tipo de mídia declarado"""
        media_type = self.media_type or ""
        for needle, ext in WATERMARK_EXTENSIONS:
            if needle in media_type:
                return ext
        return "png"


@dataclass(frozen=True)
class JobResources:
    """Recursos anexados compartilhados pelos jobs de uma exportação"""

    watermark_image: Optional[MediaResource] = None
    font: Optional[MediaResource] = None


@dataclass(frozen=True)
class RenderContext:
    """Contexto por renderização usado pelo compilador"""

    input_duration_sec: float = 0.0
    now_iso: str = ""
    watermark_image_input_name: Optional[str] = None


@dataclass(frozen=True)
class JobNames:
    """Nomes no armazenamento de trabalho, únicos por job"""

    input: str
    output: str
    watermark_image: Optional[str] = None

    @classmethod
    def for_job(
        cls,
        job_id: str,
        source: MediaResource,
        watermark_image: Optional[MediaResource] = None,
    ) -> "JobNames":
        wm_name = None
        if watermark_image is not None:
            wm_name = f"wm_{job_id}.{watermark_image.watermark_extension()}"
        return cls(
            input=f"input_{job_id}{source.path.suffix.lower()}",
            output=f"output_{job_id}.mp4",
            watermark_image=wm_name,
        )

    def all(self) -> List[str]:
        return [n for n in (self.input, self.output, self.watermark_image) if n]


class JobState(str, Enum):
    """Estados de um job de exportação"""

    IDLE = "idle"
    STAGING = "staging"
    RENDERING = "rendering"
    READING_OUTPUT = "reading-output"
    DONE = "done"
    ERROR = "error"


@dataclass
class ExportResult:
    """Resultado de um job executado com sucesso"""

    job_id: str
    output_path: Path
    size: int
    progress_history: List[float] = field(default_factory=list)


class QueueStatus(str, Enum):
    """Status de um item da fila"""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (QueueStatus.DONE, QueueStatus.ERROR)


def new_item_id() -> str:
    return uuid.uuid4().hex[:8]


def utc_now_iso() -> str:
    """Timestamp ISO 8601 em UTC com milissegundos"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class QueueItem:
    """Item da fila de exportação em lote"""

    source: MediaResource
    id: str = field(default_factory=new_item_id)
    status: QueueStatus = QueueStatus.PENDING
    progress: float = 0.0
    output_path: Optional[Path] = None
    error_message: Optional[str] = None
    progress_history: List[float] = field(default_factory=list)


class ExportQueue:
    """Fila ordenada de itens processados em sequência"""

    def __init__(self, max_input_bytes: Optional[int] = None):
        self.items: List[QueueItem] = []
        self.max_input_bytes = max_input_bytes
        self.skipped: List[Path] = []

    def add(self, paths: Iterable[Path | str]) -> List[QueueItem]:
        """Enfileira arquivos, ignorando os ilegíveis e os maiores que o limite"""
        logger = get_logger("ExportQueue")
        added = []
        for path in paths:
            resource = MediaResource.from_path(path)
            try:
                size = os.path.getsize(path)
            except OSError as e:
                logger.warning("Ignorando %s: %s", resource.name, e)
                self.skipped.append(resource.path)
                continue
            if self.max_input_bytes is not None and size > self.max_input_bytes:
                logger.warning("Ignorando %s: maior que o limite de entrada", resource.name)
                self.skipped.append(resource.path)
                continue
            item = QueueItem(source=resource)
            self.items.append(item)
            added.append(item)
        return added

    def get(self, item_id: str) -> Optional[QueueItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def update(self, item_id: str, **changes) -> Optional[QueueItem]:
        item = self.get(item_id)
        if item is None:
            return None
        for key, value in changes.items():
            setattr(item, key, value)
        return item

    def remove(self, item_id: str) -> None:
        self.items = [item for item in self.items if item.id != item_id]

    def clear(self) -> None:
        self.items = []

    def pending(self) -> List[QueueItem]:
        """Itens que ainda precisam ser processados"""
        return [item for item in self.items if item.status != QueueStatus.DONE]

    def __iter__(self):
        return iter(list(self.items))

    def __len__(self) -> int:
        return len(self.items)
