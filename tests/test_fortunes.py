from __future__ import annotations

from fortunes import DEFAULT_FORTUNES, FILLER_FORTUNE, MAX_SLICES, pad_fortunes


def test_defaults_cover_every_slice():
    assert len(DEFAULT_FORTUNES) == MAX_SLICES
    assert len(set(DEFAULT_FORTUNES)) == MAX_SLICES


def test_pad_extends_short_lists():
    padded = pad_fortunes(["Health"], count=4)
    assert padded == ["Health", FILLER_FORTUNE, FILLER_FORTUNE, FILLER_FORTUNE]


def test_pad_keeps_long_lists_and_copies():
    source = list(DEFAULT_FORTUNES)
    padded = pad_fortunes(source, count=3)
    assert padded == source
    assert padded is not source
