# -*- coding: utf-8 -*-
"""
Interface do engine de transcodificação consumido pelos jobs
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol, Union


@dataclass(frozen=True)
class ProgressEvent:
    """Progresso bruto; apenas um dos campos costuma vir preenchido"""

    progress: Optional[float] = None
    ratio: Optional[float] = None
    time: Optional[float] = None


@dataclass(frozen=True)
class LogEvent:
    """Linha de log emitida pelo engine"""

    message: str


EngineEvent = Union[ProgressEvent, LogEvent]


class Engine(Protocol):
    """
    Engine com armazenamento de trabalho próprio.

    Não é reentrante: apenas um job usa a instância por vez.
    """

    @property
    def loaded(self) -> bool:
        ...

    def load(self) -> None:
        ...

    def write_file(self, name: str, data: bytes) -> None:
        ...

    def read_file(self, name: str) -> bytes:
        ...

    def delete_file(self, name: str) -> None:
        """Remove a entrada; FileNotFoundError se não existir"""
        ...

    def exists(self, name: str) -> bool:
        ...

    def execute(self, args: List[str]) -> Iterator[EngineEvent]:
        """
        Executa o comando, produzindo eventos até terminar.

        Termina normalmente em caso de sucesso e levanta
        EngineExecutionError em caso de falha.
        """
        ...

    def reset(self) -> None:
        """Descarta o estado para que o próximo load() crie uma instância nova"""
        ...
