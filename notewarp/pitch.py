"""Note names and MIDI note numbers.

Note names follow the convention used by most DAWs where middle C is
``C3`` = 60, so the full MIDI range runs from ``C-2`` (0) to ``G8`` (127).

Module-level data:
- `NOTE_NAME_TO_PC`: Maps note names (e.g., `"C"`, `"F#"`, `"Bb"`) to pitch classes (0-11)
- `PC_TO_NOTE_NAME`: Maps pitch classes to note names

Module-level helpers:
- `key_name_to_pc(key_name)`: Validate a key name and return its pitch class (0–11).
- `note_name_to_midi(name)`: Convert ``"C3"``, ``"f#-1"``, ``"Bb4"`` to a MIDI number.
- `midi_to_note_name(pitch)`: The reverse, using sharps.
"""

import re
import typing

import notewarp.constants


NOTE_NAME_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"Fb": 4,
	"E#": 5,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
	"Cb": 11,
	"B#": 0,
}

PC_TO_NOTE_NAME: typing.List[str] = [
	"C",
	"C#",
	"D",
	"D#",
	"E",
	"F",
	"F#",
	"G",
	"G#",
	"A",
	"A#",
	"B",
]

# Octave number of the octave that starts at MIDI note 0
LOWEST_OCTAVE = -2

NOTE_NAME_PATTERN = r"[A-Ga-g][#b]?-?\d+"

_NOTE_NAME_RE = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)$")


def key_name_to_pc (key_name: str) -> int:

	"""Validate a key name and return its pitch class (0–11).

	Letters are case-insensitive; accidentals are ``#`` and ``b``.

	Raises:
		ValueError: If the key name is not recognised.

	Example:
		```python
		key_name_to_pc("C")   # → 0
		key_name_to_pc("f#")  # → 6
		key_name_to_pc("Bb")  # → 10
		```
	"""

	normalised = key_name[:1].upper() + key_name[1:]

	if normalised not in NOTE_NAME_TO_PC:
		raise ValueError(
			f"Unknown key name: {key_name!r}. Expected e.g. 'C', 'F#', 'Bb'."
		)

	return NOTE_NAME_TO_PC[normalised]


def note_name_to_midi (name: str) -> typing.Optional[int]:

	"""
	Convert a note name with octave to a MIDI note number.

	Parameters:
		name: Letter, optional ``#``/``b``, then octave (``"C3"``, ``"Db-1"``).

	Returns:
		The MIDI note number, or ``None`` when the text is not a note name or
		the note lies outside 0–127. B#/Cb wrap into the neighbouring octave,
		so ``"Cb3"`` is 59.

	Example:
		```python
		note_name_to_midi("C3")   # → 60
		note_name_to_midi("C-2")  # → 0
		note_name_to_midi("G8")   # → 127
		note_name_to_midi("A9")   # → None
		```
	"""

	match = _NOTE_NAME_RE.match(name.strip())

	if not match:
		return None

	letter, accidental, octave_text = match.groups()
	base = "CDEFGAB".index(letter.upper())
	semitone = [0, 2, 4, 5, 7, 9, 11][base] + {"": 0, "#": 1, "b": -1}[accidental]

	midi = (int(octave_text) - LOWEST_OCTAVE) * 12 + semitone

	if midi < notewarp.constants.MIN_PITCH or midi > notewarp.constants.MAX_PITCH:
		return None

	return midi


def midi_to_note_name (pitch: int) -> str:

	"""
	Convert a MIDI note number to a note name (``60`` → ``"C3"``).
	"""

	return f"{PC_TO_NOTE_NAME[pitch % 12]}{pitch // 12 + LOWEST_OCTAVE}"
