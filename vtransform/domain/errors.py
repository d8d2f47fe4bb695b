# -*- coding: utf-8 -*-
"""
Tipos de erro de exportação.

Todos herdam de ExportError. Falhas de sanitização não existem: entradas
inválidas são corrigidas silenciosamente.
"""

from typing import List, Optional


class ExportError(RuntimeError):
    """Base para todas as falhas de exportação"""

    pass


class StagingError(ExportError):
    """Falha ao gravar um recurso no armazenamento de trabalho do engine"""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Falha ao preparar {name}: {reason}")


class EngineTimeoutError(ExportError):
    """Operação do engine excedeu o limite de tempo"""

    def __init__(self, label: str, timeout: float):
        self.label = label
        self.timeout = timeout
        super().__init__(f"{label} excedeu o timeout de {round(timeout)}s")


class EngineLoadTimeoutError(EngineTimeoutError):
    """Carregamento do engine excedeu o limite de tempo"""

    def __init__(self, timeout: float):
        super().__init__("Carregamento do FFmpeg", timeout)


class RenderTimeoutError(EngineTimeoutError):
    """Renderização excedeu o limite de tempo"""

    def __init__(self, timeout: float):
        super().__init__("Renderização do FFmpeg", timeout)


class EngineExecutionError(ExportError):
    """O engine reportou falha na execução"""

    def __init__(self, returncode: Optional[int], stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"FFmpeg falhou com código {returncode}")


class EmptyOutputError(ExportError):
    """Saída menor que o mínimo aceitável"""

    def __init__(self, size: int):
        self.size = size
        super().__init__(f"Exportação produziu uma saída vazia ({size} bytes)")


class ExportFailedError(ExportError):
    """Resultado único apresentado ao usuário; mantém a causa e o fim do log"""

    def __init__(self, cause: BaseException, log_tail: Optional[List[str]] = None):
        self.cause = cause
        self.log_tail = list(log_tail or [])
        super().__init__(f"Exportação falhou: {cause}")
