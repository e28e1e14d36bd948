import logging
import pathlib

import mido
import pytest

import notewarp.midi_file
import notewarp.notes


Note = notewarp.notes.NoteEvent


def _save (path: pathlib.Path, messages: list, ticks_per_beat: int = 480) -> str:

	"""Write raw messages to a single-track file and return its path."""

	mid = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)
	track = mido.MidiTrack()
	track.extend(messages)
	mid.tracks.append(track)
	mid.save(str(path))

	return str(path)


# ---------------------------------------------------------------------------
# read_midi_file
# ---------------------------------------------------------------------------

def test_read_converts_ticks_to_beats (tmp_path: pathlib.Path) -> None:

	"""Starts and durations are measured in beats; note-on velocity 0 ends a note."""

	path = _save(tmp_path / "in.mid", [
		mido.MetaMessage("time_signature", numerator=3, denominator=4, time=0),
		mido.MetaMessage("set_tempo", tempo=600000, time=0),
		mido.Message("note_on", note=60, velocity=90, time=0),
		mido.Message("note_off", note=60, velocity=0, time=240),
		mido.Message("note_on", note=64, velocity=70, channel=2, time=240),
		mido.Message("note_on", note=64, velocity=0, channel=2, time=960),
	])

	clip = notewarp.midi_file.read_midi_file(path)

	assert clip.numerator == 3
	assert clip.denominator == 4
	assert clip.tempo == 600000
	assert clip.notes == [
		Note(pitch=60, start=0.0, duration=0.5, velocity=90),
		Note(pitch=64, start=1.0, duration=2.0, velocity=70, channel=2),
	]


def test_read_pairs_overlapping_notes_in_order (tmp_path: pathlib.Path) -> None:

	"""Repeated note-ons on one pitch close first-in, first-out."""

	path = _save(tmp_path / "in.mid", [
		mido.Message("note_on", note=60, velocity=100, time=0),
		mido.Message("note_on", note=60, velocity=50, time=480),
		mido.Message("note_off", note=60, time=480),
		mido.Message("note_off", note=60, time=480),
	])

	notes = notewarp.midi_file.read_midi_file(path).notes

	assert [(n.start, n.duration, n.velocity) for n in notes] == [(0.0, 2.0, 100), (1.0, 2.0, 50)]


def test_read_drops_unclosed_notes (tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture) -> None:

	"""A note with no note-off is dropped with a warning."""

	path = _save(tmp_path / "in.mid", [
		mido.Message("note_on", note=60, velocity=100, time=0),
		mido.Message("note_off", note=60, time=480),
		mido.Message("note_on", note=62, velocity=100, time=0),
	])

	with caplog.at_level(logging.WARNING, logger="notewarp.midi_file"):
		notes = notewarp.midi_file.read_midi_file(path).notes

	assert [n.pitch for n in notes] == [60]
	assert "Dropped 1 notes without a note-off" in caplog.text


def test_read_defaults_without_meta_events (tmp_path: pathlib.Path) -> None:

	"""A file with no tempo or time signature reads as 120 BPM in 4/4."""

	path = _save(tmp_path / "in.mid", [mido.Message("note_on", note=60, velocity=100, time=0)], ticks_per_beat=96)

	clip = notewarp.midi_file.read_midi_file(path)

	assert (clip.numerator, clip.denominator, clip.tempo, clip.ticks_per_beat) == (4, 4, 500000, 96)


# ---------------------------------------------------------------------------
# prepare_notes
# ---------------------------------------------------------------------------

def test_prepare_notes_clamps_and_rounds () -> None:

	"""Pitch and velocity are rounded into 0-127 and starts cannot be negative."""

	prepared = notewarp.midi_file.prepare_notes([
		Note(pitch=130, start=-0.5, duration=1.0, velocity=200.0),
		Note(pitch=-3, start=1.0, duration=1.0, velocity=64.5),
	])

	assert [(n.pitch, n.start, n.velocity) for n in prepared] == [(127, 0.0, 127), (0, 1.0, 65)]


def test_prepare_notes_drops_silent_and_empty_notes () -> None:

	"""Velocity below 1 or no duration means the note is not written."""

	notes = [
		Note(pitch=60, start=0.0, duration=1.0, velocity=0.4),
		Note(pitch=62, start=0.0, duration=0.0, velocity=100),
		Note(pitch=64, start=0.0, duration=-1.0, velocity=100),
		Note(pitch=65, start=0.0, duration=1.0, velocity=1),
	]

	prepared = notewarp.midi_file.prepare_notes(notes)

	assert [n.pitch for n in prepared] == [65]
	assert notes[0].velocity == 0.4


# ---------------------------------------------------------------------------
# realize_chance
# ---------------------------------------------------------------------------

def test_realize_chance (scripted_rng) -> None:

	"""Probability draws decide survival; deviation offsets velocity."""

	rng = scripted_rng(0.7, 0.2, 0.5)

	realized = notewarp.midi_file.realize_chance([
		Note(pitch=60, start=0.0, duration=1.0, velocity=100, probability=0.5),
		Note(pitch=62, start=1.0, duration=1.0, velocity=100, probability=0.5),
		Note(pitch=64, start=2.0, duration=1.0, velocity=100, deviation=10),
	], rng)

	assert [n.pitch for n in realized] == [62, 64]
	assert realized[1].velocity == 105
	assert all(n.probability is None and n.deviation is None for n in realized)
	assert rng.calls == 3


def test_realize_chance_keeps_certain_notes (scripted_rng) -> None:

	"""Notes without probability or deviation never draw."""

	rng = scripted_rng(0.99)

	realized = notewarp.midi_file.realize_chance([Note(pitch=60, start=0.0, duration=1.0, velocity=100)], rng)

	assert len(realized) == 1
	assert rng.calls == 0


# ---------------------------------------------------------------------------
# write_midi_file
# ---------------------------------------------------------------------------

def test_write_then_read (tmp_path: pathlib.Path) -> None:

	"""A written clip reads back with the same notes and meta information."""

	path = str(tmp_path / "out.mid")

	clip = notewarp.midi_file.MidiClip(
		notes = [
			Note(pitch=60, start=0.0, duration=1.0, velocity=100.4),
			Note(pitch=60, start=1.0, duration=0.5, velocity=80),
			Note(pitch=67, start=1.5, duration=2.0, velocity=0),
		],
		numerator = 6,
		denominator = 8,
		tempo = 400000,
	)

	notewarp.midi_file.write_midi_file(clip, path)
	loaded = notewarp.midi_file.read_midi_file(path)

	assert (loaded.numerator, loaded.denominator, loaded.tempo) == (6, 8, 400000)
	assert loaded.notes == [
		Note(pitch=60, start=0.0, duration=1.0, velocity=100),
		Note(pitch=60, start=1.0, duration=0.5, velocity=80),
	]
