# -*- coding: utf-8 -*-
"""
Fixtures compartilhadas: engine em memória e arquivos de mídia de teste
"""

import time
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from vtransform.domain.errors import EngineExecutionError
from vtransform.engine.base import LogEvent, ProgressEvent
from vtransform.infra.settings import AppSettings


class FakeEngine:
    """Engine com armazenamento em dicionário e execução roteirizada"""

    def __init__(
        self,
        events=None,
        output: bytes = b"\x00" * 1024,
        fail_inputs: Optional[List[str]] = None,
        load_delay: float = 0.0,
        exec_delay: float = 0.0,
    ):
        self.files: Dict[str, bytes] = {}
        self.events = list(
            events
            if events is not None
            else [ProgressEvent(ratio=0.25), LogEvent("frame=10"), ProgressEvent(ratio=0.75)]
        )
        self.output = output
        self.fail_inputs = fail_inputs or []
        self.load_delay = load_delay
        self.exec_delay = exec_delay
        self._loaded = False
        self.load_calls = 0
        self.reset_calls = 0
        self.executed: List[List[str]] = []
        self.deleted: List[str] = []

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        self.load_calls += 1
        if self.load_delay:
            time.sleep(self.load_delay)
        self._loaded = True

    def write_file(self, name: str, data: bytes) -> None:
        self.files[name] = bytes(data)

    def read_file(self, name: str) -> bytes:
        try:
            return self.files[name]
        except KeyError:
            raise FileNotFoundError(name) from None

    def delete_file(self, name: str) -> None:
        if name not in self.files:
            raise FileNotFoundError(name)
        del self.files[name]
        self.deleted.append(name)

    def exists(self, name: str) -> bool:
        return name in self.files

    def execute(self, args):
        self.executed.append(list(args))
        for event in self.events:
            yield event
        if self.exec_delay:
            time.sleep(self.exec_delay)
        if any(needle in arg for needle in self.fail_inputs for arg in args):
            yield LogEvent("Error while filtering")
            raise EngineExecutionError(1, "Error while filtering")
        self.files[args[-1]] = self.output

    def reset(self) -> None:
        self.reset_calls += 1
        self.files.clear()
        self._loaded = False


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def config(tmp_path):
    return AppSettings(
        output_dir=str(tmp_path / "out"),
        engine_load_timeout=5,
        render_timeout=5,
        default_font_url="",
    )


@pytest.fixture
def make_video(tmp_path):
    """Cria um arquivo de 'vídeo' com bytes arbitrários"""

    def _make(name: str = "clip.mp4", size: int = 2048) -> Path:
        path = tmp_path / "media" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x01" * size)
        return path

    return _make
