"""Waveform and randomness primitives for transform expressions.

Periodic shapes take a *phase* where one full cycle spans 0 to 1. Phases
outside that range wrap, so ``tri(1.25) == tri(0.25)``. Every periodic shape
stays within [-1, 1]:

    "cos"     Starts at the peak: 1 → -1 → 1.
    "sin"     Starts at zero: 0 → 1 → 0 → -1 → 0.
    "tri"     Sine-aligned triangle: 0 → 1 (0.25) → 0 (0.5) → -1 (0.75) → 0.
    "saw"     Sine-aligned sawtooth: 0 rising to 1, drops to -1 at 0.5, rises to 0.
    "square"  1.0 while phase < duty cycle, otherwise -1.0.

``ramp`` and ``curve`` map a normalised progress value in [0, 1] to a value
between a start and an end; progress beyond 1 holds the end value.

``noise``, ``rand`` and ``choose`` draw from a random source. The source's
single method is ``random()``, returning a float in [0, 1), so a seeded
``random.Random`` can be passed as-is for repeatable results and tests can
pass any object with that one method (see `RandomSource`).
"""

import logging
import math
import random
import typing


logger = logging.getLogger(__name__)


class RandomSource(typing.Protocol):

	"""
	The only capability the random functions need from a generator: one
	``random()`` call per draw, matching `random.Random.random`.
	"""

	def random (self) -> float:
		...


_default_rng = random.Random()


def resolve_rng (rng: typing.Optional[RandomSource]) -> RandomSource:

	return rng if rng is not None else _default_rng


# ─── Periodic shapes ──────────────────────────────────────────────────────────


def cos (phase: float) -> float:
	"""Cosine wave, 1.0 at phase 0."""
	return math.cos(2 * math.pi * (phase % 1.0))


def sin (phase: float) -> float:
	"""Sine wave, 0.0 at phase 0."""
	return math.sin(2 * math.pi * (phase % 1.0))


def tri (phase: float) -> float:

	"""
	Triangle wave with the same zero crossings and peaks as ``sin``.
	"""

	p = phase % 1.0

	if p < 0.25:
		return 4 * p

	if p < 0.75:
		return 2 - 4 * p

	return 4 * p - 4


def saw (phase: float) -> float:

	"""
	Sawtooth wave aligned with ``sin``: it passes through zero rising at
	phase 0 and jumps from 1 to -1 at phase 0.5.
	"""

	p = phase % 1.0

	if p < 0.5:
		return 2 * p

	return 2 * p - 2


def square (phase: float, duty: float = 0.5) -> float:

	"""
	Pulse wave that is high for the first ``duty`` fraction of each cycle.

	Parameters:
		phase: Position in the cycle (wraps modulo 1).
		duty: Fraction of the cycle spent at 1.0 (default 0.5).

	Returns:
		Exactly 1.0 or -1.0.
	"""

	return 1.0 if phase % 1.0 < duty else -1.0


# ─── Progress shapes ──────────────────────────────────────────────────────────


def ramp (phase: float, start: float, end: float, speed: float = 1.0) -> float:

	"""
	Linear interpolation from ``start`` to ``end``.

	Parameters:
		phase: Progress through the active time range (0 to 1).
		start: Value at phase 0.
		end: Value once progress reaches 1.
		speed: Multiplier on progress. ``speed=2`` reaches ``end`` halfway
			through the range and holds it. Values <= 0 are clamped to 0,
			which holds ``start``.

	Example:
		```python
		ramp(0.5, 0, 100)            # → 50.0
		ramp(0.5, 0, 100, speed=2)   # → 100.0
		ramp(1.5, 0, 100)            # → 100.0 (clamped)
		```
	"""

	if speed <= 0:
		logger.warning(f"ramp() speed must be > 0, got {speed}, clamping to 0")
		speed = 0.0

	progress = min(max(phase * speed, 0.0), 1.0)

	return start + (end - start) * progress


def curve (phase: float, start: float, end: float, exponent: float) -> float:

	"""
	Power-curve interpolation from ``start`` to ``end``.

	An exponent above 1 starts slowly and accelerates; below 1 it starts
	quickly and tapers. An exponent of 1 is a straight line. Exponents <= 0
	are clamped to 0.001.
	"""

	if exponent <= 0:
		logger.warning(f"curve() exponent must be > 0, got {exponent}, clamping to 0.001")
		exponent = 0.001

	progress = min(max(phase, 0.0), 1.0)

	return start + (end - start) * (progress ** exponent)


# ─── Randomness ───────────────────────────────────────────────────────────────


def noise (rng: typing.Optional[RandomSource] = None) -> float:
	"""Uniform random value in [-1, 1)."""
	return resolve_rng(rng).random() * 2 - 1


def rand (minimum: float, maximum: float, rng: typing.Optional[RandomSource] = None) -> float:
	"""Uniform random value between ``minimum`` and ``maximum``."""
	return minimum + resolve_rng(rng).random() * (maximum - minimum)


def choose (options: typing.Sequence[float], rng: typing.Optional[RandomSource] = None) -> float:

	"""
	Pick one of ``options`` with equal probability.
	"""

	if not options:
		raise ValueError("choose() needs at least one option")

	index = min(int(resolve_rng(rng).random() * len(options)), len(options) - 1)

	return options[index]
