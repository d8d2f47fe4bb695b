# -*- coding: utf-8 -*-
"""
Gerenciamento escopado do armazenamento de trabalho do engine
"""

from typing import Iterable, List, Optional

from ..domain.errors import StagingError
from ..engine.base import Engine
from ..infra.logging import get_logger


class StagedFiles:
    """
    Registra as entradas criadas por um job e remove todas ao sair do bloco,
    em qualquer caminho de saída.

        with StagedFiles(engine) as staged:
            staged.stage("input_x.mp4", data)
            staged.claim("output_x.mp4")
            ...
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.names: List[str] = []
        self.logger = get_logger("StagedFiles")

    def __enter__(self) -> "StagedFiles":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def claim(self, name: Optional[str]) -> Optional[str]:
        """Registra um nome para remoção sem gravar nada"""
        if name and name not in self.names:
            self.names.append(name)
        return name

    def stage(self, name: str, data: bytes) -> str:
        """Grava dados no armazenamento de trabalho"""
        self.claim(name)
        try:
            self.engine.write_file(name, data)
        except Exception as e:
            raise StagingError(name, str(e)) from e
        return name

    def purge(self, names: Iterable[Optional[str]]) -> None:
        """Remove entradas antigas que colidiriam com os nomes deste job"""
        for name in names:
            if name:
                self.discard(name)

    def discard(self, name: str) -> None:
        """Remove uma entrada; ausência não é erro"""
        try:
            self.engine.delete_file(name)
        except FileNotFoundError:
            pass
        except Exception as e:
            self.logger.debug("Falha ao remover %s: %s", name, e)

    def release(self) -> None:
        for name in reversed(self.names):
            self.discard(name)
        self.names = []
