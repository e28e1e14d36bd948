import logging
import random

import pytest

import notewarp.waveforms


PERIODIC_SHAPES = [
	notewarp.waveforms.cos,
	notewarp.waveforms.sin,
	notewarp.waveforms.tri,
	notewarp.waveforms.saw,
	notewarp.waveforms.square,
]


# ─── Core properties of all periodic shapes ──────────────────────────────────


def test_periodic_shapes_stay_in_range () -> None:

	"""Every periodic shape returns values within [-1, 1]."""

	for shape in PERIODIC_SHAPES:
		for i in range(-200, 201):
			value = shape(i / 37)
			assert -1.0 <= value <= 1.0, f"{shape.__name__}({i / 37}) = {value}"


def test_periodic_shapes_wrap_phase () -> None:

	"""Phases one cycle apart give the same value."""

	for shape in PERIODIC_SHAPES:
		for phase in [0.0, 0.1, 0.3, 0.6, 0.85]:
			assert shape(phase + 1.0) == pytest.approx(shape(phase), abs=1e-9)
			assert shape(phase + 3.0) == pytest.approx(shape(phase), abs=1e-9)


# ─── Shape-specific values ───────────────────────────────────────────────────


def test_cos_and_sin_key_points () -> None:

	"""cos starts at the peak, sin starts at zero."""

	assert notewarp.waveforms.cos(0.0) == pytest.approx(1.0)
	assert notewarp.waveforms.cos(0.25) == pytest.approx(0.0, abs=1e-9)
	assert notewarp.waveforms.cos(0.5) == pytest.approx(-1.0)
	assert notewarp.waveforms.sin(0.0) == pytest.approx(0.0, abs=1e-9)
	assert notewarp.waveforms.sin(0.25) == pytest.approx(1.0)
	assert notewarp.waveforms.sin(0.75) == pytest.approx(-1.0)


def test_tri_is_sine_aligned () -> None:

	"""tri rises to 1 at a quarter cycle and falls to -1 at three quarters."""

	assert notewarp.waveforms.tri(0.0) == pytest.approx(0.0)
	assert notewarp.waveforms.tri(0.125) == pytest.approx(0.5)
	assert notewarp.waveforms.tri(0.25) == pytest.approx(1.0)
	assert notewarp.waveforms.tri(0.5) == pytest.approx(0.0)
	assert notewarp.waveforms.tri(0.75) == pytest.approx(-1.0)
	assert notewarp.waveforms.tri(-0.25) == pytest.approx(-1.0)


def test_saw_jumps_at_half_cycle () -> None:

	"""saw rises from 0 towards 1, drops to -1 at 0.5, then rises back to 0."""

	assert notewarp.waveforms.saw(0.0) == pytest.approx(0.0)
	assert notewarp.waveforms.saw(0.25) == pytest.approx(0.5)
	assert notewarp.waveforms.saw(0.4999) == pytest.approx(1.0, abs=1e-3)
	assert notewarp.waveforms.saw(0.5) == pytest.approx(-1.0)
	assert notewarp.waveforms.saw(0.75) == pytest.approx(-0.5)


def test_square_only_returns_full_scale () -> None:

	"""square returns exactly 1.0 or -1.0 and respects the duty cycle."""

	for i in range(100):
		assert notewarp.waveforms.square(i / 100) in (1.0, -1.0)
		assert notewarp.waveforms.square(i / 100, 0.3) in (1.0, -1.0)

	assert notewarp.waveforms.square(0.25) == 1.0
	assert notewarp.waveforms.square(0.5) == -1.0
	assert notewarp.waveforms.square(0.2, 0.25) == 1.0
	assert notewarp.waveforms.square(0.3, 0.25) == -1.0


# ─── Ramp and curve ──────────────────────────────────────────────────────────


def test_ramp_endpoints_and_clamping () -> None:

	"""ramp starts at start, ends at end and holds beyond the end."""

	assert notewarp.waveforms.ramp(0.0, 0, 100) == pytest.approx(0.0)
	assert notewarp.waveforms.ramp(0.5, 0, 100) == pytest.approx(50.0)
	assert notewarp.waveforms.ramp(1.0, 0, 100) == pytest.approx(100.0)
	assert notewarp.waveforms.ramp(2.0, 0, 100) == pytest.approx(100.0)
	assert notewarp.waveforms.ramp(-1.0, 0, 100) == pytest.approx(0.0)


def test_ramp_speed () -> None:

	"""speed=2 reaches the end halfway through."""

	assert notewarp.waveforms.ramp(0.25, 10, 20, speed=2) == pytest.approx(15.0)
	assert notewarp.waveforms.ramp(0.5, 10, 20, speed=2) == pytest.approx(20.0)
	assert notewarp.waveforms.ramp(0.9, 10, 20, speed=2) == pytest.approx(20.0)


def test_ramp_non_positive_speed_holds_start (caplog: pytest.LogCaptureFixture) -> None:

	"""speed <= 0 is clamped to 0 with a warning instead of raising."""

	with caplog.at_level(logging.WARNING, logger="notewarp.waveforms"):
		value = notewarp.waveforms.ramp(0.75, 10, 20, speed=-1)

	assert value == pytest.approx(10.0)
	assert "speed must be > 0" in caplog.text


def test_curve_shape () -> None:

	"""curve follows progress ** exponent between start and end."""

	assert notewarp.waveforms.curve(0.0, 0, 100, 2) == pytest.approx(0.0)
	assert notewarp.waveforms.curve(0.5, 0, 100, 2) == pytest.approx(25.0)
	assert notewarp.waveforms.curve(1.0, 0, 100, 2) == pytest.approx(100.0)
	assert notewarp.waveforms.curve(3.0, 0, 100, 2) == pytest.approx(100.0)
	assert notewarp.waveforms.curve(0.25, 0, 100, 0.5) == pytest.approx(50.0)


def test_curve_non_positive_exponent_is_clamped (caplog: pytest.LogCaptureFixture) -> None:

	"""exponent <= 0 becomes 0.001 (almost a step to the end) with a warning."""

	with caplog.at_level(logging.WARNING, logger="notewarp.waveforms"):
		value = notewarp.waveforms.curve(0.5, 0, 100, 0)

	assert value == pytest.approx(100.0, abs=0.1)
	assert "exponent must be > 0" in caplog.text


# ─── Randomness ──────────────────────────────────────────────────────────────


def test_noise_and_rand_scale_the_draw (scripted_rng) -> None:

	"""noise maps [0, 1) onto [-1, 1); rand onto [min, max)."""

	source = scripted_rng(0.0, 0.5, 0.75)

	assert notewarp.waveforms.noise(source) == pytest.approx(-1.0)
	assert notewarp.waveforms.noise(source) == pytest.approx(0.0)
	assert notewarp.waveforms.rand(10, 20, source) == pytest.approx(17.5)


def test_noise_range_with_real_generator (rng: random.Random) -> None:

	"""Seeded noise stays within [-1, 1]."""

	values = [notewarp.waveforms.noise(rng) for _ in range(1000)]

	assert all(-1.0 <= v <= 1.0 for v in values)
	assert min(values) < -0.9
	assert max(values) > 0.9


def test_choose_picks_by_draw (scripted_rng) -> None:

	"""The draw is split evenly across the options."""

	source = scripted_rng(0.0, 0.5, 0.999)
	options = [1.0, 2.0, 3.0]

	assert notewarp.waveforms.choose(options, source) == 1.0
	assert notewarp.waveforms.choose(options, source) == 2.0
	assert notewarp.waveforms.choose(options, source) == 3.0


def test_choose_is_unbiased (rng: random.Random) -> None:

	"""Each option is picked about equally often."""

	counts = {1.0: 0, 2.0: 0, 3.0: 0}

	for _ in range(3000):
		counts[notewarp.waveforms.choose([1.0, 2.0, 3.0], rng)] += 1

	for count in counts.values():
		assert 850 < count < 1150


def test_choose_needs_options () -> None:

	"""An empty option list is rejected."""

	with pytest.raises(ValueError):
		notewarp.waveforms.choose([])


def test_random_source_needs_only_random () -> None:

	"""Any object with a random() method works; a seeded random.Random repeats."""

	class Fixed:
		def random (self) -> float:
			return 0.25

	assert notewarp.waveforms.rand(0, 8, Fixed()) == 2.0
	assert notewarp.waveforms.noise(Fixed()) == -0.5

	first = [notewarp.waveforms.rand(0, 1, random.Random(3)) for _ in range(2)]
	second = [notewarp.waveforms.rand(0, 1, random.Random(3)) for _ in range(2)]

	assert first == second
	assert notewarp.waveforms.resolve_rng(None) is notewarp.waveforms.resolve_rng(None)
