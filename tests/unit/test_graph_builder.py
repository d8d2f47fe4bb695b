# -*- coding: utf-8 -*-
"""
Testes unitários para a construção das cadeias de filtros
"""

import math
import re

import pytest

from vtransform.domain.models.jobs import RenderContext
from vtransform.domain.models.settings import sanitize_settings
from vtransform.rendering.graph_builder import (
    DRAWTEXT_FONT_NAME,
    EVEN_DIMENSIONS_FILTER,
    GraphBuilder,
    build_atempo_chain,
    escape_drawtext_text,
    fmt_number,
)


def video_filters(**raw):
    return GraphBuilder().build_video_filters(sanitize_settings(raw, True))


def transposes(filters):
    return [f for f in filters if f.startswith("transpose")]


@pytest.mark.parametrize(
    "rotation,expected",
    [(0, []), (90, ["transpose=1"]), (180, ["transpose=1", "transpose=1"]), (270, ["transpose=2"]), (45, [])],
)
def test_rotation_transposes(rotation, expected):
    assert transposes(video_filters(rotation=rotation)) == expected


def test_color_grading_always_first():
    filters = video_filters()

    assert filters[0] == "eq=brightness=0:contrast=1:saturation=1"
    assert video_filters(brightness=-0.25, contrast=1.5)[0] == (
        "eq=brightness=-0.25:contrast=1.5:saturation=1"
    )


def test_identity_settings_emit_only_eq_and_even_guard():
    assert video_filters() == [
        "eq=brightness=0:contrast=1:saturation=1",
        EVEN_DIMENSIONS_FILTER,
    ]


def test_flip_comes_before_rotation():
    filters = video_filters(flipH=True, rotation=90)

    assert filters.index("hflip") < filters.index("transpose=1")


def test_smart_crop_keeps_center_and_restores_size():
    filters = video_filters(smartCrop=0.1)
    crop = next(f for f in filters if f.startswith("crop="))
    scale = next(f for f in filters if f.startswith("scale=iw/"))

    assert crop == "crop=iw*0.8:ih*0.8:iw*0.1:ih*0.1"
    keep = float(re.match(r"crop=iw\*([\d.]+):", crop).group(1))
    divisor = float(re.match(r"scale=iw/([\d.]+):", scale).group(1))
    assert keep == pytest.approx(0.8)
    assert keep * (1 / divisor) == pytest.approx(1.0)


def test_smart_crop_zero_emits_nothing():
    assert not [f for f in video_filters(smartCrop=0) if f.startswith("crop")]


def test_film_grain():
    assert "noise=alls=35:allf=t+u" in video_filters(filmGrain=35)
    assert not [f for f in video_filters(filmGrain=0) if f.startswith("noise")]


def test_drawtext_is_centered_and_escaped():
    filters = video_filters(
        watermarkText="it's 12:30", watermarkX=50, watermarkY=25, watermarkSize=32
    )
    drawtext = next(f for f in filters if f.startswith("drawtext="))

    assert f"fontfile={DRAWTEXT_FONT_NAME}" in drawtext
    assert "text='its 12\\:30'" in drawtext
    assert "x=(w*0.5-text_w/2)" in drawtext
    assert "y=(h*0.25-text_h/2)" in drawtext
    assert "fontsize=32" in drawtext


def test_drawtext_color_opacity_and_shadow():
    filters = video_filters(watermarkText="x", watermarkColor="#ff0000", watermarkOpacity=50)
    drawtext = next(f for f in filters if f.startswith("drawtext="))

    assert "fontcolor=0xff0000@0.5" in drawtext
    assert "shadowcolor=black@0.7" in drawtext
    assert "shadowx=2:shadowy=2" in drawtext


def test_drawtext_shadow_alpha_is_capped():
    filters = video_filters(watermarkText="x", watermarkOpacity=100)
    drawtext = next(f for f in filters if f.startswith("drawtext="))

    assert "shadowcolor=black@1:" in drawtext


def test_empty_text_emits_no_drawtext():
    assert not [f for f in video_filters(watermarkText="") if f.startswith("drawtext")]


def test_escape_drawtext_text():
    assert escape_drawtext_text("a:b'c") == "a\\:bc"


def test_playback_rate_setpts():
    assert "setpts=PTS/1.05" in video_filters(playbackRate=1.05)
    assert not [f for f in video_filters(playbackRate=1) if f.startswith("setpts")]


def test_order_of_all_stages():
    filters = video_filters(
        flipH=True,
        rotation=180,
        smartCrop=0.05,
        filmGrain=10,
        watermarkText="hello",
        playbackRate=0.95,
    )
    prefixes = [f.split("=")[0] for f in filters]

    assert prefixes == [
        "eq",
        "hflip",
        "transpose",
        "transpose",
        "crop",
        "scale",
        "noise",
        "drawtext",
        "setpts",
        "scale",
    ]
    assert filters[-1] == EVEN_DIMENSIONS_FILTER


@pytest.mark.parametrize(
    "raw,duration",
    [
        ({}, 0),
        ({"fadeEnabled": True}, 0),
        ({"fadeEnabled": True, "watermarkText": "x", "playbackRate": 1.02}, 12.0),
        ({"smartCrop": 0.2, "rotation": 90, "filmGrain": 100, "flipH": True}, 0),
    ],
)
def test_even_guard_is_always_last(raw, duration):
    settings = sanitize_settings(raw)
    graph = GraphBuilder().build("in.mp4", settings, RenderContext(input_duration_sec=duration))

    assert graph.video_filters[-1] == EVEN_DIMENSIONS_FILTER


def test_fade_in_only_without_duration():
    graph = GraphBuilder().build(
        "in.mp4", sanitize_settings({"fadeEnabled": True, "fadeDuration": 1}), RenderContext()
    )
    fades = [f for f in graph.video_filters if f.startswith("fade")]

    assert fades == ["fade=t=in:st=0:d=1"]


def test_fade_out_uses_output_duration():
    settings = sanitize_settings(
        {"fadeEnabled": True, "fadeDuration": 0.5, "playbackRate": 1.05, "watermarkText": "x"}
    )
    graph = GraphBuilder().build("in.mp4", settings, RenderContext(input_duration_sec=21.0))
    fades = [f for f in graph.video_filters if f.startswith("fade")]

    assert fades[0] == "fade=t=in:st=0:d=0.5"
    start = float(re.search(r"st=([\d.]+)", fades[1]).group(1))
    assert start == pytest.approx(21.0 / 1.05 - 0.5)
    # Fades operam no tempo de saída: depois do setpts
    setpts = next(i for i, f in enumerate(graph.video_filters) if f.startswith("setpts"))
    assert graph.video_filters.index(fades[0]) > setpts


def test_fade_out_start_never_negative():
    settings = sanitize_settings({"fadeEnabled": True, "fadeDuration": 2})
    fades = GraphBuilder().build_fade_filters(settings, input_duration_sec=1.0)

    assert fades[1] == "fade=t=out:st=0:d=2"


def test_fade_disabled_emits_nothing():
    assert GraphBuilder().build_fade_filters(sanitize_settings({}), 10.0) == []


@pytest.mark.parametrize("rate", [3.0, 0.3, 5.0, 0.1, 1.05, 0.95])
def test_atempo_chain_factors_in_range_and_product(rate):
    factors = build_atempo_chain(rate)

    assert all(0.5 <= f <= 2.0 for f in factors)
    assert math.prod(factors) == pytest.approx(rate)


def test_atempo_chain_decomposition():
    assert build_atempo_chain(3.0) == [2.0, 1.5]
    assert build_atempo_chain(0.3) == pytest.approx([0.5, 0.6])


def test_audio_filters():
    builder = GraphBuilder()

    assert builder.build_audio_filters(sanitize_settings({})) == []
    assert builder.build_audio_filters(sanitize_settings({"playbackRate": 0.95})) == [
        "atempo=0.95"
    ]


def test_image_overlay_graph():
    settings = sanitize_settings(
        {
            "watermarkImageEnabled": True,
            "watermarkImageX": 50,
            "watermarkImageY": 90,
            "watermarkImageScale": 0.5,
            "watermarkImageOpacity": 80,
        },
        has_watermark_image=True,
    )
    graph = GraphBuilder().build(
        "in.mp4", settings, RenderContext(watermark_image_input_name="wm_1.png")
    )

    assert graph.inputs == ["in.mp4", "wm_1.png"]
    assert graph.filters[0].startswith("[0:v]eq=")
    assert graph.filters[0].endswith(f"{EVEN_DIMENSIONS_FILTER}[v0]")
    assert graph.filters[1] == (
        "[1:v]format=rgba,colorchannelmixer=aa=0.8,scale=iw*0.5:ih*0.5[wm]"
    )
    assert graph.filters[2] == "[v0][wm]overlay=x=W*0.5-w/2:y=H*0.9-h/2:format=auto[v]"
    assert graph.video_output == "[v]"


def test_image_overlay_requires_input_name():
    settings = sanitize_settings({"watermarkImageEnabled": True}, has_watermark_image=True)
    graph = GraphBuilder().build("in.mp4", settings, RenderContext())

    assert not graph.is_complex
    assert graph.inputs == ["in.mp4"]


@pytest.mark.parametrize("value,expected", [(1, "1"), (1.0, "1"), (0.5, "0.5"), (-0.25, "-0.25"), (100, "100")])
def test_fmt_number(value, expected):
    assert fmt_number(value) == expected
