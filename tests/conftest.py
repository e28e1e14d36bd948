import random
import typing

import pytest

import notewarp.intervals
import notewarp.notes


class ScriptedRandom:

	"""Random source that replays a fixed list of values."""

	def __init__ (self, values: typing.Sequence[float]) -> None:

		"""Store the values to replay in order (cycling when exhausted)."""

		self.values = list(values)
		self.calls = 0

	def random (self) -> float:

		"""Return the next scripted value."""

		value = self.values[self.calls % len(self.values)]
		self.calls += 1
		return value


@pytest.fixture
def rng () -> random.Random:

	"""A seeded generator for tests that only need repeatability."""

	return random.Random(42)


@pytest.fixture
def scripted_rng () -> typing.Callable[..., ScriptedRandom]:

	"""Factory for random sources that return chosen values."""

	def _make (*values: float) -> ScriptedRandom:
		return ScriptedRandom(values)

	return _make


@pytest.fixture
def c_major_mask () -> int:

	"""Pitch-class mask for C major (C D E F G A B)."""

	return notewarp.intervals.scale_mask(0, "major")


@pytest.fixture
def clip_notes () -> typing.List[notewarp.notes.NoteEvent]:

	"""Four half-beat notes: C3, E3 and G3 on beats 1-3 of bar 1, C4 on bar 2 beat 1."""

	return [
		notewarp.notes.NoteEvent(pitch=60, start=0.0, duration=0.5, velocity=100),
		notewarp.notes.NoteEvent(pitch=64, start=1.0, duration=0.5, velocity=100),
		notewarp.notes.NoteEvent(pitch=67, start=2.0, duration=0.5, velocity=100),
		notewarp.notes.NoteEvent(pitch=72, start=4.0, duration=0.5, velocity=100),
	]
