# -*- coding: utf-8 -*-
"""
Engine local: executa o binário do FFmpeg via subprocess

O armazenamento de trabalho é um diretório; os comandos rodam com esse
diretório como CWD, então os nomes dos recursos valem como caminhos.
"""

import queue
import shutil
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import Iterator, List, Optional

from ..domain.errors import EngineExecutionError
from ..infra.logging import get_logger
from ..infra.media_io import MediaIO
from ..infra.paths import ffmpeg_bin
from .base import EngineEvent, LogEvent, ProgressEvent


class LocalFFmpegEngine:
    """Engine baseado no FFmpeg instalado na máquina"""

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        work_dir: Optional[str] = None,
        media_io: Optional[MediaIO] = None,
        load_timeout: Optional[float] = 60.0,
    ):
        self.logger = get_logger("LocalFFmpegEngine")
        self.load_timeout = load_timeout
        self.ffmpeg_path = ffmpeg_path
        self.requested_work_dir = work_dir
        self.media_io = media_io
        self.work_dir: Optional[Path] = None
        self._owns_work_dir = False
        self._loaded = False
        self._process: Optional[subprocess.Popen] = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        """Verifica o binário e prepara o diretório de trabalho"""
        if self._loaded:
            return

        binary = ffmpeg_bin(self.ffmpeg_path)
        self.logger.info("Carregando FFmpeg: %s", binary)
        subprocess.run(
            [binary, "-hide_banner", "-version"],
            capture_output=True,
            text=True,
            check=True,
            timeout=self.load_timeout,
        )

        if self.requested_work_dir:
            self.work_dir = Path(self.requested_work_dir)
            self.work_dir.mkdir(parents=True, exist_ok=True)
            self._owns_work_dir = False
        else:
            self.work_dir = Path(tempfile.mkdtemp(prefix="vtransform_"))
            self._owns_work_dir = True

        self._loaded = True

    def _path(self, name: str) -> Path:
        if not self.work_dir:
            raise RuntimeError("Engine não carregado")
        if not name or Path(name).name != name:
            raise ValueError(f"Nome inválido no armazenamento de trabalho: {name!r}")
        return self.work_dir / name

    def write_file(self, name: str, data: bytes) -> None:
        self._path(name).write_bytes(data)

    def read_file(self, name: str) -> bytes:
        return self._path(name).read_bytes()

    def delete_file(self, name: str) -> None:
        self._path(name).unlink()

    def exists(self, name: str) -> bool:
        return self._path(name).exists()

    def execute(self, args: List[str]) -> Iterator[EngineEvent]:
        """Executa o FFmpeg produzindo eventos de progresso e log"""
        cmd = [
            ffmpeg_bin(self.ffmpeg_path),
            "-y",
            "-hide_banner",
            "-nostdin",
            "-progress",
            "pipe:1",
            *args,
        ]
        self.logger.info("Executando comando FFmpeg: %s", " ".join(cmd))

        duration = self._input_duration(args)
        stderr_lines: "queue.Queue[Optional[str]]" = queue.Queue()
        stderr_tail: List[str] = []

        process = subprocess.Popen(
            cmd,
            cwd=str(self.work_dir),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        self._process = process

        reader = threading.Thread(
            target=self._pump, args=(process.stderr, stderr_lines), daemon=True
        )
        reader.start()

        try:
            for line in process.stdout:
                yield from self._drain(stderr_lines, stderr_tail)
                progress = self._parse_progress_line(line.strip(), duration)
                if progress:
                    yield progress

            return_code = process.wait()
            reader.join()
            yield from self._drain(stderr_lines, stderr_tail)
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()
            self._process = None

        if return_code != 0:
            self.logger.error("Comando FFmpeg retornou código %d", return_code)
            raise EngineExecutionError(return_code, "\n".join(stderr_tail[-50:]))

        self.logger.info("Comando FFmpeg finalizado com sucesso.")

    def reset(self) -> None:
        """Encerra processo pendente e descarta o diretório de trabalho"""
        process = self._process
        if process is not None and process.poll() is None:
            self.logger.warning("Encerrando processo FFmpeg abandonado")
            process.kill()
        self._process = None

        if self.work_dir and self._owns_work_dir:
            shutil.rmtree(self.work_dir, ignore_errors=True)
        self.work_dir = None
        self._loaded = False

    def _input_duration(self, args: List[str]) -> float:
        if not self.media_io or "-i" not in args:
            return 0.0
        name = args[args.index("-i") + 1]
        return self.media_io.get_video_duration(self._path(name))

    @staticmethod
    def _pump(stream, lines: "queue.Queue[Optional[str]]"):
        for line in stream:
            lines.put(line.rstrip("\n"))
        lines.put(None)

    @staticmethod
    def _drain(
        lines: "queue.Queue[Optional[str]]", tail: List[str]
    ) -> Iterator[LogEvent]:
        while True:
            try:
                line = lines.get_nowait()
            except queue.Empty:
                return
            if line is None:
                return
            tail.append(line)
            del tail[:-200]
            yield LogEvent(line)

    def _parse_progress_line(
        self, line: str, duration: float
    ) -> Optional[ProgressEvent]:
        """Parseia linha do -progress (chave=valor)"""
        if not line or "=" not in line:
            return None

        key, value = line.split("=", 1)
        if key == "progress" and value == "end":
            return ProgressEvent(ratio=1.0)
        if key not in ("out_time_us", "out_time_ms"):
            return None

        try:
            # out_time_ms também vem em microssegundos
            seconds = int(value) / 1_000_000
        except ValueError:
            return None

        # Sem duração conhecida não há fração confiável; só o "end" conta
        if duration <= 0:
            return None
        return ProgressEvent(ratio=min(1.0, seconds / duration))

