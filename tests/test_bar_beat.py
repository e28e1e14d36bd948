import pytest

import notewarp.bar_beat


def test_beats_per_bar () -> None:

	"""A beat is a quarter note whatever the denominator."""

	assert notewarp.bar_beat.beats_per_bar(4, 4) == 4.0
	assert notewarp.bar_beat.beats_per_bar(3, 4) == 3.0
	assert notewarp.bar_beat.beats_per_bar(6, 8) == 3.0
	assert notewarp.bar_beat.beats_per_bar(2, 2) == 4.0

	with pytest.raises(ValueError):
		notewarp.bar_beat.beats_per_bar(0, 4)


def test_bar_beat_to_beats () -> None:

	"""Bars and beats count from 1."""

	assert notewarp.bar_beat.bar_beat_to_beats("1|1") == 0.0
	assert notewarp.bar_beat.bar_beat_to_beats("1|2") == 1.0
	assert notewarp.bar_beat.bar_beat_to_beats("2|1") == 4.0
	assert notewarp.bar_beat.bar_beat_to_beats("2|3") == 6.0
	assert notewarp.bar_beat.bar_beat_to_beats("2|1", 6, 8) == 3.0
	assert notewarp.bar_beat.bar_beat_to_beats("3|2", 3, 4) == 7.0


def test_fractional_beats () -> None:

	"""Decimal, slash and plus forms all work."""

	assert notewarp.bar_beat.bar_beat_to_beats("1|1.5") == 0.5
	assert notewarp.bar_beat.bar_beat_to_beats("1|3/2") == 0.5
	assert notewarp.bar_beat.bar_beat_to_beats("1|1+1/2") == 0.5
	assert notewarp.bar_beat.bar_beat_to_beats("2|2+1/4") == pytest.approx(5.25)


def test_invalid_positions () -> None:

	"""Bar 0, beat 0 and malformed text are rejected."""

	for text in ["0|1", "1|0", "1", "1|", "a|b", "1|1/0"]:
		with pytest.raises(ValueError):
			notewarp.bar_beat.bar_beat_to_beats(text)


def test_beats_to_bar_beat () -> None:

	"""Absolute beats format back to bar|beat."""

	assert notewarp.bar_beat.beats_to_bar_beat(0.0) == "1|1"
	assert notewarp.bar_beat.beats_to_bar_beat(6.5) == "2|3.5"
	assert notewarp.bar_beat.beats_to_bar_beat(3.0, 6, 8) == "2|1"
	assert notewarp.bar_beat.beats_to_bar_beat_position(5.0, 4, 4) == (2, 2.0)
