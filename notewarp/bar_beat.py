"""Conversion between bar|beat positions and absolute beats.

Positions are written ``bar|beat`` with both parts counting from 1, so
``1|1`` is the very start of a clip. Beats may be fractional: ``2|1.5``,
``2|3/2`` and ``2|1+1/2`` all name the same point.

A beat is always one quarter note. In 6/8 a bar lasts ``6 * 4 / 8 = 3``
beats, so ``2|1`` in 6/8 is beat 3.0 from the start.
"""

import re
import typing

import notewarp.constants


BEAT_VALUE_PATTERN = r"\d+(?:\.\d+)?(?:\+\d+/\d+|/\d+)?"

_BAR_BEAT_RE = re.compile(rf"^\s*(\d+)\|({BEAT_VALUE_PATTERN})\s*$")
_BEAT_VALUE_RE = re.compile(r"^(\d+(?:\.\d+)?)(?:\+(\d+)/(\d+)|/(\d+))?$")


def beats_per_bar (
	numerator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_NUMERATOR,
	denominator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_DENOMINATOR
) -> float:

	"""
	Return the number of quarter-note beats in one bar.

	Example:
		```python
		beats_per_bar(4, 4)  # → 4.0
		beats_per_bar(6, 8)  # → 3.0
		beats_per_bar(7, 4)  # → 7.0
		```
	"""

	if numerator <= 0 or denominator <= 0:
		raise ValueError(f"Invalid time signature {numerator}/{denominator}")

	return numerator * (4 / denominator)


def parse_beat_value (text: str) -> float:

	"""
	Parse the beat part of a position: ``"3"``, ``"1.5"``, ``"3/2"`` or
	``"1+1/2"``.
	"""

	match = _BEAT_VALUE_RE.match(text)

	if not match:
		raise ValueError(f"Invalid beat value: {text!r}")

	whole, plus_num, plus_den, over_den = match.groups()
	value = float(whole)

	if plus_num is not None:
		if int(plus_den) == 0:
			raise ValueError(f"Division by zero in beat value: {text!r}")
		value += int(plus_num) / int(plus_den)

	elif over_den is not None:
		if int(over_den) == 0:
			raise ValueError(f"Division by zero in beat value: {text!r}")
		value /= int(over_den)

	return value


def bar_beat_position_to_beats (bar: int, beat: float, numerator: int, denominator: int) -> float:

	"""
	Convert a numeric bar and beat (both 1-based) to absolute beats.
	"""

	if bar < 1:
		raise ValueError(f"Bar number must be 1 or greater, got {bar}")

	if beat < 1:
		raise ValueError(f"Beat must be 1 or greater, got {beat}")

	return (bar - 1) * beats_per_bar(numerator, denominator) + (beat - 1)


def bar_beat_to_beats (
	text: str,
	numerator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_NUMERATOR,
	denominator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_DENOMINATOR
) -> float:

	"""
	Convert a ``bar|beat`` string to absolute beats from the clip start.

	Parameters:
		text: Position such as ``"1|1"``, ``"3|2.5"`` or ``"2|1+1/3"``.
		numerator: Time signature numerator.
		denominator: Time signature denominator.

	Returns:
		The position in beats (quarter notes).

	Example:
		```python
		bar_beat_to_beats("1|1")        # → 0.0
		bar_beat_to_beats("2|3")        # → 6.0
		bar_beat_to_beats("2|1", 6, 8)  # → 3.0
		```
	"""

	match = _BAR_BEAT_RE.match(text)

	if not match:
		raise ValueError(f"Invalid bar|beat position: {text!r}")

	return bar_beat_position_to_beats(int(match.group(1)), parse_beat_value(match.group(2)), numerator, denominator)


def beats_to_bar_beat_position (beats: float, numerator: int, denominator: int) -> typing.Tuple[int, float]:

	"""
	Split absolute beats into a 1-based ``(bar, beat)`` pair.
	"""

	bar_length = beats_per_bar(numerator, denominator)
	bar_index = int(beats // bar_length)

	return bar_index + 1, beats - bar_index * bar_length + 1


def beats_to_bar_beat (
	beats: float,
	numerator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_NUMERATOR,
	denominator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_DENOMINATOR
) -> str:

	"""
	Format absolute beats as a ``bar|beat`` string.

	Whole beats print without a decimal point; fractional beats print with up
	to three decimals.

	Example:
		```python
		beats_to_bar_beat(0.0)   # → "1|1"
		beats_to_bar_beat(6.5)   # → "2|3.5"
		```
	"""

	bar, beat = beats_to_bar_beat_position(beats, numerator, denominator)

	if abs(beat - round(beat)) < 1e-9:
		beat_text = str(int(round(beat)))

	else:
		beat_text = f"{beat:.3f}".rstrip("0").rstrip(".")

	return f"{bar}|{beat_text}"
