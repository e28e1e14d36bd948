"""Read and write Standard MIDI Files as `NoteEvent` lists.

This is the host side of the engine: it turns a file into notes measured
in beats, and after transforms it applies the MIDI range policy before
writing (pitch 0-127, velocity 0-127, silent or zero-length notes
dropped).

Only notes, the first tempo and the first time signature survive a round
trip; other events are not carried over. Everything is written to a
single track.
"""

import collections
import dataclasses
import logging
import math
import typing

import mido

import notewarp.constants
import notewarp.constants.velocity
import notewarp.notes
import notewarp.waveforms


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class MidiClip:

	"""
	Notes read from a file plus the timing information needed to write them back.
	"""

	notes: typing.List[notewarp.notes.NoteEvent] = dataclasses.field(default_factory=list)
	ticks_per_beat: int = notewarp.constants.DEFAULT_TICKS_PER_BEAT
	numerator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_NUMERATOR
	denominator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_DENOMINATOR
	tempo: int = notewarp.constants.DEFAULT_TEMPO


def read_midi_file (path: str) -> MidiClip:

	"""
	Load the notes of every track in a MIDI file.

	Note-ons are paired with the next note-off (or zero-velocity note-on) of
	the same channel and pitch. Notes still sounding at the end of a track
	are dropped with a warning.

	Example:
		```python
		clip = read_midi_file("bassline.mid")
		clip.notes[0].start  # → 0.0 (beats)
		```
	"""

	mid = mido.MidiFile(path)
	clip = MidiClip(ticks_per_beat=mid.ticks_per_beat)
	seen_tempo = False
	seen_time_signature = False
	unclosed = 0

	for track in mid.tracks:

		tick = 0
		pending: typing.Dict[typing.Tuple[int, int], typing.Deque[typing.Tuple[int, int]]] = collections.defaultdict(collections.deque)

		for message in track:

			tick += message.time

			if message.type == "set_tempo" and not seen_tempo:
				clip.tempo = message.tempo
				seen_tempo = True

			elif message.type == "time_signature" and not seen_time_signature:
				clip.numerator = message.numerator
				clip.denominator = message.denominator
				seen_time_signature = True

			elif message.type == "note_on" and message.velocity > 0:
				pending[(message.channel, message.note)].append((tick, message.velocity))

			elif message.type in ("note_on", "note_off"):
				queue = pending.get((message.channel, message.note))
				if not queue:
					continue
				start_tick, velocity = queue.popleft()
				clip.notes.append(notewarp.notes.NoteEvent(
					pitch = message.note,
					start = start_tick / mid.ticks_per_beat,
					duration = (tick - start_tick) / mid.ticks_per_beat,
					velocity = velocity,
					channel = message.channel,
				))

		unclosed += sum(len(queue) for queue in pending.values())

	if unclosed:
		logger.warning(f"Dropped {unclosed} notes without a note-off in {path}")

	clip.notes.sort(key=lambda note: (note.start, note.pitch))

	logger.info(f"Read {len(clip.notes)} notes from {path} ({clip.numerator}/{clip.denominator})")

	return clip


def _round (value: float) -> int:

	return int(math.floor(value + 0.5))


def prepare_notes (notes: typing.Sequence[notewarp.notes.NoteEvent]) -> typing.List[notewarp.notes.NoteEvent]:

	"""
	Return copies of ``notes`` that fit MIDI.

	Pitch and velocity are rounded and clamped, starts before zero move to
	zero, and notes with a velocity below 1 or no duration are dropped.
	"""

	prepared: typing.List[notewarp.notes.NoteEvent] = []

	for note in notes:

		velocity = min(max(_round(note.velocity), notewarp.constants.velocity.MIN_VELOCITY), notewarp.constants.velocity.MAX_VELOCITY)

		if velocity < notewarp.constants.velocity.MIN_AUDIBLE_VELOCITY or note.duration <= 0:
			continue

		prepared.append(dataclasses.replace(
			note,
			pitch = min(max(_round(note.pitch), notewarp.constants.MIN_PITCH), notewarp.constants.MAX_PITCH),
			start = max(note.start, 0.0),
			velocity = velocity,
		))

	dropped = len(notes) - len(prepared)

	if dropped:
		logger.info(f"Dropped {dropped} notes that were silent or had no duration")

	return prepared


def realize_chance (
	notes: typing.Sequence[notewarp.notes.NoteEvent],
	rng: typing.Optional[notewarp.waveforms.RandomSource] = None
) -> typing.List[notewarp.notes.NoteEvent]:

	"""
	Bake trigger probability and velocity deviation into concrete notes.

	A note with probability ``p`` survives when a random draw falls below
	``p``. A note with deviation ``d`` gets a random velocity offset between
	0 and ``d`` (``d`` may be negative). The returned copies carry neither
	field, since a MIDI file cannot store them.
	"""

	rng = notewarp.waveforms.resolve_rng(rng)
	realized: typing.List[notewarp.notes.NoteEvent] = []

	for note in notes:

		probability = note.probability if note.probability is not None else notewarp.constants.DEFAULT_PROBABILITY

		if probability < 1.0 and rng.random() >= probability:
			continue

		velocity = note.velocity

		if note.deviation:
			velocity += rng.random() * note.deviation

		realized.append(dataclasses.replace(note, velocity=velocity, deviation=None, probability=None))

	return realized


def write_midi_file (clip: MidiClip, path: str) -> None:

	"""
	Save a clip as a type 1 MIDI file with tempo and time signature meta
	events followed by the notes.
	"""

	mid = mido.MidiFile(type=1)
	mid.ticks_per_beat = clip.ticks_per_beat
	track = mido.MidiTrack()
	mid.tracks.append(track)

	track.append(mido.MetaMessage("set_tempo", tempo=clip.tempo, time=0))
	track.append(mido.MetaMessage("time_signature", numerator=clip.numerator, denominator=clip.denominator, time=0))

	# (tick, order, message): note-offs sort before note-ons on the same tick
	events: typing.List[typing.Tuple[int, int, mido.Message]] = []

	for note in prepare_notes(clip.notes):

		start_tick = _round(note.start * clip.ticks_per_beat)
		end_tick = max(_round(note.end * clip.ticks_per_beat), start_tick + 1)

		events.append((start_tick, 1, mido.Message("note_on", channel=note.channel, note=note.pitch, velocity=note.velocity)))
		events.append((end_tick, 0, mido.Message("note_off", channel=note.channel, note=note.pitch, velocity=0)))

	events.sort(key=lambda event: (event[0], event[1]))

	last_tick = 0

	for tick, _, message in events:
		track.append(message.copy(time=tick - last_tick))
		last_tick = tick

	mid.save(path)

	logger.info(f"Wrote {len(events) // 2} notes to {path}")
