import pytest

from lectureqa.ingestion.vtt import Cue, build_passages, format_timestamp, parse_timestamp, parse_vtt

SAMPLE = """WEBVTT
Kind: captions

NOTE recorded live, audio drops at 00:03

1
00:00:01.000 --> 00:00:04.500 align:start position:10%
<v Hitesh>Welcome to the Node.js course.</v>

2
00:00:04.500 --> 00:00:08.000
Today we talk about
the &amp; event loop.

03:05.250 --> 03:09.000
Short form timestamps work too.

00:00:10.000 --> 00:00:11.000

"""


def test_parse_vtt_reads_cues_in_order() -> None:
    cues = parse_vtt(SAMPLE)

    assert [c.text for c in cues] == [
        "Welcome to the Node.js course.",
        "Today we talk about the & event loop.",
        "Short form timestamps work too.",
    ]
    assert cues[0].start == 1.0
    assert cues[0].end == 4.5
    assert cues[2].start == 185.25


def test_parse_vtt_handles_crlf_and_empty_input() -> None:
    assert parse_vtt("") == []
    cues = parse_vtt("WEBVTT\r\n\r\n00:00:01.000 --> 00:00:02.000\r\nHello\r\n")
    assert [c.text for c in cues] == ["Hello"]


def test_timestamps() -> None:
    assert parse_timestamp("01:02:03.500") == 3723.5
    assert parse_timestamp("02:03,5") == 123.5
    assert format_timestamp(3723.9) == "01:02:03"
    with pytest.raises(ValueError):
        parse_timestamp("not a time")


def test_build_passages_windows_consecutive_cues() -> None:
    cues = [
        Cue(start=0.0, end=2.0, text="a" * 40),
        Cue(start=2.0, end=4.0, text="b" * 40),
        Cue(start=65.0, end=70.0, text="c" * 40),
    ]

    passages = build_passages(cues, "Intro", max_chars=90)

    assert [(p.start_time, p.end_time) for p in passages] == [
        ("00:00:00", "00:00:04"),
        ("00:01:05", "00:01:10"),
    ]
    assert all(p.lecture == "Intro" for p in passages)
    assert passages[0].text == "a" * 40 + " " + "b" * 40


def test_oversized_cue_becomes_its_own_passage() -> None:
    cues = [Cue(start=0.0, end=1.0, text="short"), Cue(start=1.0, end=9.0, text="x" * 50)]

    passages = build_passages(cues, "L", max_chars=20)

    assert [p.text for p in passages] == ["short", "x" * 50]
    assert build_passages([], "L") == []
