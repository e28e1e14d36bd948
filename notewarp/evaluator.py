"""Evaluate expression trees against a note's musical context.

`evaluate_expression()` and `evaluate_function()` are strict: they raise
`EvaluationError` for missing variables, wrong argument counts, invalid
periods and results that are not finite numbers. The dispatch layer wraps
them for callers that must never fail.

**Functions**

| Call                            | Result                                              |
|---------------------------------|-----------------------------------------------------|
| ``cos/sin/tri/saw(period, [offset])`` | Wave at ``position / period + offset``          |
| ``square(period, [offset], [duty])``  | ±1 pulse, ``duty`` defaults to 0.5              |
| ``wave(period, ..., sync)``     | Phase counted from the arrangement (``clip.position``) |
| ``ramp(start, end, [speed])``   | Linear across the active time range                 |
| ``curve(start, end, exponent)`` | Power curve across the active time range            |
| ``noise()``                     | Uniform in [-1, 1]                                  |
| ``rand(min, max)``              | Uniform in [min, max]                               |
| ``choose(a, b, ...)``           | One of the arguments                                |
| ``quant(pitch)``                | Nearest in-scale pitch (ties upward), or unchanged  |
| ``round/floor/ceil/abs(x)``     | Usual math; ``round`` rounds halves up              |
| ``clamp(x, a, b)``              | ``x`` limited to the range, bounds in either order  |
| ``min/max(a, b, ...)``          | Smallest / largest argument                         |
| ``pow(base, exponent)``         | Power; non-finite results are errors                |

Periods are beats, or a period literal such as ``1t`` or ``1:0t`` that is
converted using the time signature.
"""

import dataclasses
import math
import typing

import notewarp.bar_beat
import notewarp.constants
import notewarp.expression
import notewarp.intervals
import notewarp.waveforms


class EvaluationError(Exception):
	pass


@dataclasses.dataclass(frozen=True)
class TimeSignature:

	numerator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_NUMERATOR
	denominator: int = notewarp.constants.DEFAULT_TIME_SIGNATURE_DENOMINATOR

	@property
	def beats_per_bar (self) -> float:
		return notewarp.bar_beat.beats_per_bar(self.numerator, self.denominator)


@dataclasses.dataclass(frozen=True)
class TimeRange:

	"""
	A span of beats used to normalise ``ramp()`` and ``curve()`` progress.
	"""

	start: float
	end: float

	def progress (self, position: float) -> float:

		"""
		Return how far ``position`` is through the range (0 for an empty range).
		"""

		length = self.end - self.start

		if length <= 0:
			return 0.0

		return (position - self.start) / length


@dataclasses.dataclass
class EvaluationContext:

	"""
	Everything an expression can see while being evaluated for one note.

	Parameters:
		position: Musical position in beats (drives waveforms).
		time_signature: Converts bars to beats.
		time_range: Span used by ``ramp()``/``curve()``.
		pitch: The note's pitch, used by pitch filters. ``None`` matches any
			pitch filter.
		bar: 1-based bar, used by time filters together with ``beat``.
		beat: 1-based beat within the bar.
		scale_mask: 12-bit pitch-class mask used by ``quant()``.
		note_properties: Values exposed as ``note.*``; ``clip.*`` variables
			and the scale mask may also be supplied here under the keys
			``"clip:<name>"`` and ``"scale:mask"``.
		audio_properties: Values exposed as ``audio.*``. ``None`` marks a
			MIDI note context where audio variables are an error.
		rng: Random source for ``noise()``, ``rand()`` and ``choose()``.
	"""

	position: float
	time_signature: TimeSignature = dataclasses.field(default_factory=TimeSignature)
	time_range: typing.Optional[TimeRange] = None
	pitch: typing.Optional[int] = None
	bar: typing.Optional[int] = None
	beat: typing.Optional[float] = None
	scale_mask: typing.Optional[int] = None
	note_properties: typing.Dict[str, float] = dataclasses.field(default_factory=dict)
	audio_properties: typing.Optional[typing.Dict[str, float]] = None
	rng: typing.Optional[notewarp.waveforms.RandomSource] = None

	def resolved_scale_mask (self) -> typing.Optional[int]:

		if self.scale_mask is not None:
			return self.scale_mask

		mask = self.note_properties.get("scale:mask")

		return int(mask) if mask is not None else None


# ─── Expressions ──────────────────────────────────────────────────────────────


def evaluate_expression (node: notewarp.expression.ExpressionNode, context: EvaluationContext) -> float:

	"""
	Compute the value of an expression tree.

	Raises:
		EvaluationError: For missing variables, arity errors, bad periods and
			unrecognised nodes.

	Example:
		```python
		statement = notewarp.parser.parse("velocity += 20 * cos(1t)")[0]
		evaluate_expression(statement.expression, EvaluationContext(position=0.0))  # → 20.0
		```
	"""

	if isinstance(node, notewarp.expression.NumberLiteral):
		return node.value

	if isinstance(node, notewarp.expression.Variable):
		return _evaluate_variable(node, context)

	if isinstance(node, notewarp.expression.BinaryOp):
		return _evaluate_binary(node, context)

	if isinstance(node, notewarp.expression.FunctionCall):
		return evaluate_function(node.name, node.args, context, node.sync)

	if isinstance(node, notewarp.expression.PeriodLiteral):
		raise EvaluationError("Period literals are only valid as the first argument of a waveform function")

	raise EvaluationError(f"Unknown expression node: {node!r}")


def _evaluate_variable (node: notewarp.expression.Variable, context: EvaluationContext) -> float:

	if node.namespace == "audio":

		if context.audio_properties is None:
			raise EvaluationError(f"Cannot use {node} variable in MIDI note context")

		value = context.audio_properties.get(node.name)

	elif node.namespace == "clip":
		value = context.note_properties.get(f"clip:{node.name}")

	else:
		value = context.note_properties.get(node.name)

	if value is None:
		raise EvaluationError(f'Variable "{node}" is not available in this context')

	return float(value)


def _apply_operator (kind: str, left: float, right: float) -> float:

	if kind == "add":
		return left + right

	if kind == "subtract":
		return left - right

	if kind == "multiply":
		return left * right

	if kind == "divide":
		return 0.0 if right == 0 else left / right

	if kind == "modulo":
		# Python's % already follows the divisor's sign: -1 % 4 == 3, 7 % -3 == -2
		return 0.0 if right == 0 else left % right

	raise EvaluationError(f"Unknown operator: {kind}")


def _evaluate_binary (node: notewarp.expression.BinaryOp, context: EvaluationContext) -> float:

	# Right-nested chains of the same associative operator fold left to right.
	operands: typing.List[notewarp.expression.ExpressionNode] = [node.left]
	right = node.right

	if node.kind in ("add", "multiply"):
		while isinstance(right, notewarp.expression.BinaryOp) and right.kind == node.kind:
			operands.append(right.left)
			right = right.right

	operands.append(right)

	result = evaluate_expression(operands[0], context)

	for operand in operands[1:]:
		result = _apply_operator(node.kind, result, evaluate_expression(operand, context))

	return _require_finite(f"Result of {node.kind}", result)


def _require_finite (what: str, value: float) -> float:

	if not math.isfinite(value):
		raise EvaluationError(f"{what} is not a finite number: {value}")

	return value


# ─── Functions ────────────────────────────────────────────────────────────────


def _check_arity (name: str, args: typing.Sequence[typing.Any], minimum: int, maximum: typing.Optional[int]) -> None:

	count = len(args)

	if minimum == maximum and count != minimum:
		plural = "argument" if minimum == 1 else "arguments"
		raise EvaluationError(f"Function {name}() requires exactly {minimum} {plural}, got {count}")

	if count < minimum:
		raise EvaluationError(f"Function {name}() requires at least {minimum} arguments, got {count}")

	if maximum is not None and count > maximum:
		raise EvaluationError(f"Function {name}() accepts at most {maximum} arguments, got {count}")


def resolve_period (name: str, node: notewarp.expression.ExpressionNode, context: EvaluationContext) -> float:

	"""
	Turn a waveform's first argument into a period in beats.

	Raises:
		EvaluationError: If the period is not strictly positive.
	"""

	if isinstance(node, notewarp.expression.PeriodLiteral):
		period = node.to_beats(context.time_signature.beats_per_bar)

	else:
		period = evaluate_expression(node, context)

	if not period > 0:
		raise EvaluationError(f"Function {name}() period must be > 0, got {period}")

	return period


def _evaluate_waveform (
	name: str,
	args: typing.Sequence[notewarp.expression.ExpressionNode],
	context: EvaluationContext,
	sync: bool = False
) -> float:

	if not args:
		raise EvaluationError(f"Function {name}() requires at least a period argument")

	_check_arity(name, args, 1, 3 if name == "square" else 2)

	period = resolve_period(name, args[0], context)
	position = context.position

	if sync:
		clip_start = context.note_properties.get("clip:position")
		if clip_start is None:
			raise EvaluationError("sync requires an arrangement clip (no clip.position available)")
		position += clip_start

	offset = evaluate_expression(args[1], context) if len(args) > 1 else 0.0
	phase = _require_finite(f"Function {name}() phase", (position / period) % 1.0 + offset)

	if name == "square":
		duty = evaluate_expression(args[2], context) if len(args) > 2 else 0.5
		return notewarp.waveforms.square(phase, duty)

	shape: typing.Callable[[float], float] = getattr(notewarp.waveforms, name)

	return shape(phase)


def _active_progress (name: str, context: EvaluationContext) -> float:

	if context.time_range is None:
		raise EvaluationError(f"Function {name}() requires an active time range")

	return context.time_range.progress(context.position)


def evaluate_function (
	name: str,
	args: typing.Sequence[notewarp.expression.ExpressionNode],
	context: EvaluationContext,
	sync: bool = False
) -> float:

	"""
	Evaluate one function call.

	Arguments are checked before any random number is drawn, so a
	malformed ``rand()`` never consumes randomness.

	``sync`` only applies to waveforms; see `FunctionCall`.

	Raises:
		EvaluationError: For unknown functions, wrong argument counts, bad
			periods, a ``sync`` call without ``clip.position`` and non-finite
			results.
	"""

	if name in notewarp.expression.WAVEFORM_FUNCTIONS:
		return _evaluate_waveform(name, args, context, sync)

	if name not in notewarp.expression.FUNCTION_NAMES:
		raise EvaluationError(f"Unknown function: {name}()")

	if name == "noise":
		_check_arity(name, args, 0, 0)
		return notewarp.waveforms.noise(context.rng)

	values = [evaluate_expression(arg, context) for arg in args]

	if name == "ramp":
		_check_arity(name, values, 2, 3)
		speed = values[2] if len(values) > 2 else 1.0
		return notewarp.waveforms.ramp(_active_progress(name, context), values[0], values[1], speed)

	if name == "curve":
		_check_arity(name, values, 3, 3)
		return notewarp.waveforms.curve(_active_progress(name, context), values[0], values[1], values[2])

	if name == "rand":
		_check_arity(name, values, 2, 2)
		return notewarp.waveforms.rand(values[0], values[1], context.rng)

	if name == "choose":
		_check_arity(name, values, 1, None)
		return notewarp.waveforms.choose(values, context.rng)

	if name == "quant":
		_check_arity(name, values, 1, 1)
		mask = context.resolved_scale_mask()
		if mask is None:
			return values[0]
		_require_finite("Function quant() input", values[0])
		return float(notewarp.intervals.quantize_to_mask(values[0], mask))

	if name in ("round", "floor", "ceil", "abs"):
		_check_arity(name, values, 1, 1)
		x = values[0]
		if not math.isfinite(x):
			raise EvaluationError(f"Function {name}() needs a finite number, got {x}")
		if name == "round":
			return float(math.floor(x + 0.5))
		if name == "floor":
			return float(math.floor(x))
		if name == "ceil":
			return float(math.ceil(x))
		return abs(x)

	if name == "clamp":
		_check_arity(name, values, 3, 3)
		low, high = min(values[1], values[2]), max(values[1], values[2])
		return min(max(values[0], low), high)

	if name in ("min", "max"):
		_check_arity(name, values, 2, None)
		return min(values) if name == "min" else max(values)

	if name == "pow":
		_check_arity(name, values, 2, 2)
		try:
			result = math.pow(values[0], values[1])
		except (OverflowError, ValueError) as e:
			raise EvaluationError(f"Function pow({values[0]}, {values[1]}) is not a finite number") from e
		if not math.isfinite(result):
			raise EvaluationError(f"Function pow({values[0]}, {values[1]}) is not a finite number")
		return result

	raise EvaluationError(f"Unknown function: {name}()")
