# tests/test_trimmer.py
"""
Tests for trailing headline-list removal.
"""

from conftest import HEADLINES, PARAGRAPH_ONE, PARAGRAPH_TWO

from tolge.extract.trimmer import (
    TrimmerSettings,
    find_trailing_list_cutoff,
    is_headline_like,
    trim_trailing_list,
)


def _join(paragraphs):
    return "\n\n".join(paragraphs)


def test_headline_detection():
    assert is_headline_like("Mars rover finds signs of ancient river delta")
    # narrative opening
    assert not is_headline_like("The rover found signs of an ancient river delta")
    # two sentences
    assert not is_headline_like("Rover lands safely. Scientists cheer. More to follow")
    # too short
    assert not is_headline_like("Short teaser")


def test_trailing_headlines_are_removed():
    text = _join([PARAGRAPH_ONE, PARAGRAPH_TWO] + HEADLINES)
    assert trim_trailing_list(text) == _join([PARAGRAPH_ONE, PARAGRAPH_TWO])


def test_fewer_than_three_paragraphs_unchanged():
    text = _join([PARAGRAPH_ONE, HEADLINES[0]])
    assert trim_trailing_list(text) == text


def test_long_paragraph_among_the_tail_stops_trimming():
    long_paragraph = "Scientists kept measuring the ice. " * 10
    assert len(long_paragraph.strip()) > 300
    text = _join([PARAGRAPH_ONE] + HEADLINES[:3] + [long_paragraph.strip()] + HEADLINES[3:5])
    assert trim_trailing_list(text) == text


def test_short_runs_are_kept():
    text = _join([PARAGRAPH_ONE, PARAGRAPH_TWO] + HEADLINES[:4])
    assert trim_trailing_list(text) == text


def test_all_headlines_is_left_alone():
    paragraphs = HEADLINES[:]
    assert find_trailing_list_cutoff(paragraphs) == -1


def test_thresholds_are_configurable():
    settings = TrimmerSettings(run_length=3, min_removed=3)
    text = _join([PARAGRAPH_ONE, PARAGRAPH_TWO] + HEADLINES[:3])
    assert trim_trailing_list(text, settings) == _join([PARAGRAPH_ONE, PARAGRAPH_TWO])
