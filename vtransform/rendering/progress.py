# -*- coding: utf-8 -*-
"""
Normalização do progresso reportado pelo engine
"""

import math
from typing import Any, List, Optional


def _raw_value(event: Any) -> Optional[float]:
    """Extrai o valor bruto de um evento (progress, ratio ou time)"""
    if isinstance(event, bool):
        return None
    if isinstance(event, (int, float)):
        return event
    for key in ("progress", "ratio", "time"):
        value = event.get(key) if isinstance(event, dict) else getattr(event, key, None)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
    return None


def normalize_progress(event: Any) -> float:
    """
    Converte o progresso bruto em fração [0, 1].

    Valores até 1 já estão normalizados; até 100 são porcentagem; acima
    disso (p.ex. tempo decorrido) o sinal não é confiável e vira 0.
    """
    raw = _raw_value(event)
    if raw is None or not math.isfinite(raw):
        return 0.0
    if raw <= 1.000001:
        return max(0.0, min(1.0, float(raw)))
    if raw <= 100:
        return max(0.0, min(1.0, raw / 100))
    return 0.0


class ProgressTracker:
    """Mantém o máximo visto para que o progresso exibido nunca diminua"""

    def __init__(self):
        self.value = 0.0
        self.history: List[float] = []

    def update(self, event: Any) -> float:
        self.value = max(self.value, normalize_progress(event))
        self.history.append(self.value)
        return self.value

    def reset(self):
        self.value = 0.0
        self.history = []
