"""Scales as pitch-class sets and 12-bit masks.

A pitch-class mask has bit ``n`` set when pitch class ``n`` (0 = C,
11 = B) belongs to the scale, so C major is ``0b101010110101`` (2741).
Hosts that already track a scale as a bitmask can pass it straight to the
evaluator; ``scale_mask()`` builds one from a key and mode name.
"""

import math
import typing

import notewarp.constants
import notewarp.pitch


INTERVAL_DEFINITIONS: typing.Dict[str, typing.List[int]] = {
	"blues_scale": [0, 3, 5, 6, 7, 10],
	"chromatic": [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],
	"dorian_mode": [0, 2, 3, 5, 7, 9, 10],
	"double_harmonic": [0, 1, 4, 5, 7, 8, 11],
	"harmonic_minor": [0, 2, 3, 5, 7, 8, 11],
	"hungarian_minor": [0, 2, 3, 6, 7, 8, 11],
	"locrian_mode": [0, 1, 3, 5, 6, 8, 10],
	"lydian": [0, 2, 4, 6, 7, 9, 11],
	"lydian_dominant": [0, 2, 4, 6, 7, 9, 10],
	"major_ionian": [0, 2, 4, 5, 7, 9, 11],
	"major_pentatonic": [0, 2, 4, 7, 9],
	"melodic_minor": [0, 2, 3, 5, 7, 9, 11],
	"minor_pentatonic": [0, 3, 5, 7, 10],
	"mixolydian": [0, 2, 4, 5, 7, 9, 10],
	"natural_minor": [0, 2, 3, 5, 7, 8, 10],
	"phrygian_mode": [0, 1, 3, 5, 7, 8, 10],
	"phrygian_dominant": [0, 1, 4, 5, 7, 8, 10],
	"whole_tone": [0, 2, 4, 6, 8, 10],
}


# Map mode names to scale interval keys.
SCALE_MODE_MAP: typing.Dict[str, str] = {
	"ionian":           "major_ionian",
	"major":            "major_ionian",
	"dorian":           "dorian_mode",
	"phrygian":         "phrygian_mode",
	"lydian":           "lydian",
	"mixolydian":       "mixolydian",
	"aeolian":          "natural_minor",
	"minor":            "natural_minor",
	"locrian":          "locrian_mode",
	"harmonic_minor":   "harmonic_minor",
	"melodic_minor":    "melodic_minor",
	"major_pentatonic": "major_pentatonic",
	"minor_pentatonic": "minor_pentatonic",
	"blues":            "blues_scale",
	"whole_tone":       "whole_tone",
	"chromatic":        "chromatic",
}


def get_intervals (name: str) -> typing.List[int]:

	"""
	Return a named interval list from the registry.
	"""

	if name not in INTERVAL_DEFINITIONS:
		raise ValueError(f"Unknown interval set: {name}")

	return list(INTERVAL_DEFINITIONS[name])


def scale_pitch_classes (key_pc: int, mode: str = "ionian") -> typing.List[int]:

	"""
	Return the pitch classes (0–11) that belong to a key and mode.

	Parameters:
		key_pc: Root pitch class (0 = C, 1 = C#/Db, …, 11 = B).
		mode: Scale mode name. Supports all keys of ``SCALE_MODE_MAP``
		      (e.g. ``"ionian"``, ``"dorian"``, ``"minor"``, ``"blues"``).

	Returns:
		List of pitch classes in scale order, starting from the root.

	Example:
		```python
		scale_pitch_classes(9, "aeolian")  # → [9, 11, 0, 2, 4, 5, 7]
		```
	"""

	if mode not in SCALE_MODE_MAP:
		raise ValueError(f"Unknown mode '{mode}'. Available: {sorted(SCALE_MODE_MAP)}")

	intervals = get_intervals(SCALE_MODE_MAP[mode])
	return [(key_pc + i) % 12 for i in intervals]


def pitch_classes_to_mask (pitch_classes: typing.Iterable[int]) -> int:

	"""
	Pack pitch classes into a 12-bit mask (bit n = pitch class n).
	"""

	mask = 0

	for pc in pitch_classes:
		mask |= 1 << (pc % 12)

	return mask


def mask_to_pitch_classes (mask: int) -> typing.List[int]:

	"""
	Unpack a 12-bit mask into a sorted list of pitch classes.
	"""

	return [pc for pc in range(12) if mask & (1 << pc)]


def scale_mask (key_pc: int, mode: str = "ionian") -> int:

	"""
	Build the pitch-class mask for a key and mode.

	Example:
		```python
		scale_mask(0, "major")  # → 2741
		```
	"""

	return pitch_classes_to_mask(scale_pitch_classes(key_pc, mode))


def parse_scale (text: str) -> int:

	"""
	Build a mask from a human-written scale such as ``"C major"``,
	``"F# dorian"`` or ``"Bb harmonic_minor"``. A bare key means major.
	"""

	parts = text.split()

	if not parts or len(parts) > 2:
		raise ValueError(f"Expected '<key> [mode]', got {text!r}")

	key_pc = notewarp.pitch.key_name_to_pc(parts[0])
	mode = parts[1].lower() if len(parts) == 2 else "major"

	return scale_mask(key_pc, mode)


def in_mask (pitch: int, mask: int) -> bool:
	"""Whether ``pitch``'s pitch class is set in ``mask``."""
	return bool(mask & (1 << (pitch % 12)))


def quantize_pitch (pitch: int, scale_pcs: typing.Sequence[int]) -> int:

	"""
	Snap a MIDI pitch to the nearest note in the given scale.

	Searches outward in semitone steps from the input pitch.  When two
	notes are equidistant (e.g. C# between C and D in C major), the
	upward direction is preferred.

	Parameters:
		pitch: MIDI note number to quantize.
		scale_pcs: Pitch classes accepted by the scale (0–11).

	Returns:
		A MIDI note number that lies within the scale, or ``pitch``
		unchanged when the scale is empty.

	Example:
		```python
		scale = scale_pitch_classes(0, "ionian")  # [0, 2, 4, 5, 7, 9, 11]
		quantize_pitch(61, scale)  # → 62
		```
	"""

	pc = pitch % 12

	if pc in scale_pcs:
		return pitch

	for offset in range(1, 7):
		if (pc + offset) % 12 in scale_pcs:
			return pitch + offset
		if (pc - offset) % 12 in scale_pcs:
			return pitch - offset

	return pitch


def clamp_to_scale_bounds (pitch: int, mask: int) -> int:

	"""
	Pull an out-of-range pitch back into 0–127, landing on an in-scale note.

	Pitches above 127 search downward from 127; pitches below 0 search
	upward from 0. In-range pitches are returned unchanged.
	"""

	low = notewarp.constants.MIN_PITCH
	high = notewarp.constants.MAX_PITCH

	if pitch > high:
		candidates = range(high, low - 1, -1)

	elif pitch < low:
		candidates = range(low, high + 1)

	else:
		return pitch

	for candidate in candidates:
		if in_mask(candidate, mask):
			return candidate

	return min(max(pitch, low), high)


def quantize_to_mask (value: float, mask: int) -> int:

	"""
	Round ``value`` to a MIDI note and snap it to the scale in ``mask``.

	Halves round upward before snapping, ties between two scale notes go to
	the higher one, and the result always lies in 0–127.

	Example:
		```python
		quantize_to_mask(61, 2741)    # → 62 (C# → D in C major)
		quantize_to_mask(130, 2741)   # → 127
		quantize_to_mask(-1, 2741)    # → 0
		```
	"""

	rounded = math.floor(value + 0.5)
	snapped = quantize_pitch(rounded, mask_to_pitch_classes(mask))

	return clamp_to_scale_bounds(snapped, mask)
