"""Apply a transform program to a clip's notes in place.

Each note is evaluated on its own: its start time is the position, its
pitch feeds pitch filters, and its own properties are readable as
``note.*``. All of a note's deltas are computed from its values before any
of them are written back, so ``velocity = note.velocity * 0.5`` always
reads the original velocity.

Only ``deviation`` is clamped here (to -127..127). Pitch is rounded to a
whole note number; any other range policy belongs to the host.
"""

import logging
import math
import typing

import notewarp.bar_beat
import notewarp.constants
import notewarp.constants.velocity
import notewarp.dispatch
import notewarp.evaluator
import notewarp.expression
import notewarp.notes
import notewarp.parser
import notewarp.waveforms


logger = logging.getLogger(__name__)


# Parameter → NoteEvent attribute
PARAMETER_FIELDS: typing.Dict[str, str] = {
	"velocity": "velocity",
	"timing": "start",
	"duration": "duration",
	"probability": "probability",
	"deviation": "deviation",
	"pitch": "pitch",
}

PARAMETER_DEFAULTS: typing.Dict[str, float] = {
	"deviation": notewarp.constants.velocity.DEFAULT_DEVIATION,
	"probability": notewarp.constants.DEFAULT_PROBABILITY,
}


def note_properties (note: notewarp.notes.NoteEvent, index: int, count: int) -> typing.Dict[str, float]:

	"""
	The ``note.*`` variables for one note.
	"""

	return {
		"pitch": note.pitch,
		"start": note.start,
		"velocity": note.velocity,
		"duration": note.duration,
		"probability": note.probability if note.probability is not None else PARAMETER_DEFAULTS["probability"],
		"deviation": note.deviation if note.deviation is not None else PARAMETER_DEFAULTS["deviation"],
		"index": index,
		"count": count,
	}


def clip_properties (
	notes: typing.Sequence[notewarp.notes.NoteEvent],
	beats_per_bar: float,
	overrides: typing.Optional[typing.Dict[str, float]] = None
) -> typing.Dict[str, float]:

	"""
	The ``clip.*`` variables, keyed ``"clip:<name>"``.

	Duration is the span of the notes; a host that knows the clip's real
	length, its arrangement position or its index among several clips
	passes them in ``overrides`` (``{"duration": 16.0, "index": 2}``).
	"""

	start = min(note.start for note in notes) if notes else 0.0
	end = max(note.end for note in notes) if notes else 0.0

	values: typing.Dict[str, float] = {
		"position": 0.0,
		"duration": end - start,
		"index": 0,
		"count": 1,
		"barDuration": beats_per_bar,
	}

	if overrides:
		values.update(overrides)

	return {f"clip:{name}": value for name, value in values.items()}


def _apply_deltas (note: notewarp.notes.NoteEvent, deltas: typing.Dict[str, notewarp.expression.ParameterDelta]) -> None:

	for parameter, delta in deltas.items():

		attribute = PARAMETER_FIELDS[parameter]
		current = getattr(note, attribute)

		if current is None:
			current = PARAMETER_DEFAULTS[parameter]

		value = delta.apply(current)

		if not math.isfinite(value):
			logger.warning(f"Skipping {parameter} change: {current} {delta.operator} {delta.value} is not a finite number")
			continue

		if parameter == "deviation":
			value = min(max(value, notewarp.constants.velocity.MIN_DEVIATION), notewarp.constants.velocity.MAX_DEVIATION)

		elif parameter == "pitch":
			value = int(math.floor(value + 0.5))

		setattr(note, attribute, value)


def apply_transforms (
	notes: typing.List[notewarp.notes.NoteEvent],
	source: typing.Optional[str],
	numerator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_NUMERATOR,
	denominator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_DENOMINATOR,
	scale_mask: typing.Optional[int] = None,
	rng: typing.Optional[notewarp.waveforms.RandomSource] = None,
	clip: typing.Optional[typing.Dict[str, float]] = None,
	parameters: typing.Optional[typing.Dict[str, str]] = None
) -> int:

	"""
	Transform ``notes`` in place.

	The source is parsed once. A parse failure logs one warning and leaves
	every note untouched; a statement that fails for a particular note is
	logged and skipped while the rest still apply. Audio-only parameters
	(``gain``, ``pitchShift``) are ignored with a warning.

	Parameters:
		notes: The clip's notes. Their list order is not changed.
		source: Transform program text.
		numerator: Time signature numerator.
		denominator: Time signature denominator.
		scale_mask: 12-bit pitch-class mask for ``quant()``.
		rng: Random source for ``noise()``, ``rand()`` and ``choose()``.
		clip: Overrides for ``clip.*`` variables (see `clip_properties()`).
		parameters: Parameter vocabulary, ``TRANSFORM_PARAMETERS`` by default.

	Returns:
		The number of notes that received at least one delta.

	Example:
		```python
		notes = [NoteEvent(pitch=60, start=0.0, duration=1.0, velocity=100)]
		apply_transforms(notes, "velocity += 10 * cos(1t)")  # → 1
		notes[0].velocity  # → 110.0
		```
	"""

	if not notes or not source or not source.strip():
		return 0

	try:
		statements = notewarp.parser.parse(source, parameters)

	except notewarp.parser.ParseError as e:
		logger.warning(f"Failed to parse transform: {e}")
		return 0

	resolved = notewarp.dispatch.resolve_filters(statements)
	audio_parameters = sorted({r.statement.parameter for r in resolved} & notewarp.expression.AUDIO_PARAMETERS)

	if audio_parameters:
		logger.warning(f"Ignoring audio parameters for MIDI notes: {', '.join(audio_parameters)}")
		resolved = [r for r in resolved if r.statement.parameter not in notewarp.expression.AUDIO_PARAMETERS]

	signature = notewarp.evaluator.TimeSignature(numerator, denominator)
	clip_values = clip_properties(notes, signature.beats_per_bar, clip)
	time_range = notewarp.evaluator.TimeRange(
		min(note.start for note in notes),
		max(note.end for note in notes)
	)

	# note.index follows musical order without reordering the caller's list
	order = sorted(range(len(notes)), key=lambda i: (notes[i].start, notes[i].pitch))
	transformed = 0

	for index, position in enumerate(order):

		note = notes[position]
		bar: typing.Optional[int] = None
		beat: typing.Optional[float] = None

		if note.start >= 0:
			bar, beat = notewarp.bar_beat.beats_to_bar_beat_position(note.start, numerator, denominator)

		context = notewarp.evaluator.EvaluationContext(
			position = note.start,
			time_signature = signature,
			time_range = time_range,
			pitch = note.pitch,
			bar = bar,
			beat = beat,
			scale_mask = scale_mask,
			note_properties = {**clip_values, **note_properties(note, index, len(notes))},
			rng = rng,
		)

		deltas = notewarp.dispatch.evaluate_resolved(resolved, context)

		if deltas:
			_apply_deltas(note, deltas)
			transformed += 1
			logger.debug(f"Note {index} ({note.pitch} at {note.start}): {deltas}")

	return transformed
