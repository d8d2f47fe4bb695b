# -*- coding: utf-8 -*-
"""
Testes unitários para a normalização de progresso
"""

import pytest

from vtransform.engine.base import ProgressEvent
from vtransform.rendering.progress import ProgressTracker, normalize_progress


@pytest.mark.parametrize(
    "raw,expected",
    [
        (0.5, 0.5),
        (50, 0.5),
        (150, 0.0),
        (1.0, 1.0),
        (1.0000005, 1.0),
        (100, 1.0),
        (-0.3, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
    ],
)
def test_normalize_raw_numbers(raw, expected):
    assert normalize_progress(raw) == pytest.approx(expected)


def test_normalize_events():
    assert normalize_progress(ProgressEvent(progress=0.4)) == pytest.approx(0.4)
    assert normalize_progress(ProgressEvent(ratio=25)) == pytest.approx(0.25)
    # Tempo decorrido (segundos) não é confiável
    assert normalize_progress(ProgressEvent(time=734.2)) == 0.0
    assert normalize_progress({"ratio": 0.9}) == pytest.approx(0.9)
    assert normalize_progress(ProgressEvent()) == 0.0
    assert normalize_progress(None) == 0.0


def test_tracker_is_monotonic():
    tracker = ProgressTracker()

    displayed = [tracker.update(v) for v in [0.2, 0.1, 0.6]]

    assert displayed == [0.2, 0.2, 0.6]
    assert tracker.history == [0.2, 0.2, 0.6]


def test_tracker_ignores_unreliable_values():
    tracker = ProgressTracker()
    tracker.update(0.5)
    tracker.update(5000)

    assert tracker.value == 0.5

    tracker.reset()
    assert tracker.value == 0.0
    assert tracker.history == []
