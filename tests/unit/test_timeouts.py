# -*- coding: utf-8 -*-
"""
Testes unitários para os limites de tempo
"""

import time

import pytest

from vtransform.domain.errors import EngineLoadTimeoutError, RenderTimeoutError
from vtransform.rendering.timeouts import call_with_timeout, iterate_with_timeout


def test_call_returns_value():
    assert call_with_timeout(lambda: 42, 1.0, EngineLoadTimeoutError) == 42


def test_call_without_timeout_runs_inline():
    assert call_with_timeout(lambda: "ok", None, EngineLoadTimeoutError) == "ok"


def test_call_times_out():
    with pytest.raises(EngineLoadTimeoutError) as exc:
        call_with_timeout(lambda: time.sleep(1), 0.05, EngineLoadTimeoutError)

    assert exc.value.timeout == 0.05


def test_call_propagates_errors():
    def boom():
        raise ValueError("x")

    with pytest.raises(ValueError):
        call_with_timeout(boom, 1.0, EngineLoadTimeoutError)


def test_iterate_forwards_events_in_order():
    assert list(iterate_with_timeout(iter([1, 2, 3]), 1.0, RenderTimeoutError)) == [1, 2, 3]


def test_iterate_reraises_source_error():
    def events():
        yield 1
        raise RuntimeError("engine failed")

    received = []
    with pytest.raises(RuntimeError, match="engine failed"):
        for event in iterate_with_timeout(events(), 1.0, RenderTimeoutError):
            received.append(event)

    assert received == [1]


def test_iterate_times_out_and_abandons_source():
    def slow():
        yield "started"
        time.sleep(1)
        yield "late"

    received = []
    with pytest.raises(RenderTimeoutError):
        for event in iterate_with_timeout(slow(), 0.1, RenderTimeoutError):
            received.append(event)

    assert received == ["started"]
