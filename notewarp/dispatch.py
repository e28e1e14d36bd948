"""Decide which statements apply to a note and collect their deltas.

Pitch and time selectors cascade: a selector stays in effect for the
statements after it until another selector of the same kind replaces it.
Replacing one kind leaves the other in place.

```
C3 velocity += 10        # C3, any time
timing += 0.05           # still C3
1|1-2|4 duration = 0.5   # C3, bars 1-2
D3 velocity = 64         # D3, still bars 1-2
```

`evaluate_statements()`, `evaluate_transform()` and `evaluate_modulation()`
never raise for problems in the program itself: each failing statement is
logged as a warning and contributes nothing.
"""

import dataclasses
import logging
import math
import typing

import notewarp.bar_beat
import notewarp.evaluator
import notewarp.expression
import notewarp.parser


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ResolvedStatement:

	"""
	A statement paired with the filters in effect for it after cascading.
	"""

	statement: notewarp.expression.Statement
	pitch_filter: typing.Optional[notewarp.expression.PitchFilter]
	time_filter: typing.Optional[notewarp.expression.TimeFilter]


def resolve_filters (statements: typing.Sequence[notewarp.expression.Statement]) -> typing.List[ResolvedStatement]:

	"""
	Fold over the program, carrying the current pitch and time filters.
	"""

	resolved: typing.List[ResolvedStatement] = []
	current_pitch: typing.Optional[notewarp.expression.PitchFilter] = None
	current_time: typing.Optional[notewarp.expression.TimeFilter] = None

	for statement in statements:

		if statement.pitch_filter is not None:
			current_pitch = statement.pitch_filter

		if statement.time_filter is not None:
			current_time = statement.time_filter

		resolved.append(ResolvedStatement(statement, current_pitch, current_time))

	return resolved


def _context_beats (context: notewarp.evaluator.EvaluationContext) -> float:

	signature = context.time_signature

	if context.bar is not None and context.beat is not None:
		return notewarp.bar_beat.bar_beat_position_to_beats(context.bar, context.beat, signature.numerator, signature.denominator)

	return context.position


def statement_applies (resolved: ResolvedStatement, context: notewarp.evaluator.EvaluationContext) -> bool:

	"""
	Whether the effective filters of ``resolved`` accept this context.

	A pitch filter only rejects when the context carries a pitch.
	"""

	if resolved.pitch_filter is not None and context.pitch is not None:
		if not resolved.pitch_filter.matches(context.pitch):
			return False

	if resolved.time_filter is not None:
		signature = context.time_signature
		if not resolved.time_filter.contains(_context_beats(context), signature.numerator, signature.denominator):
			return False

	return True


def active_time_range (resolved: ResolvedStatement, context: notewarp.evaluator.EvaluationContext) -> notewarp.evaluator.TimeRange:

	"""
	The span ``ramp()`` and ``curve()`` progress across for this statement.

	A time filter's window takes precedence, then the context's range, then
	the span from 0 to the current position.
	"""

	if resolved.time_filter is not None:
		signature = context.time_signature
		start, end = resolved.time_filter.window(signature.numerator, signature.denominator)
		return notewarp.evaluator.TimeRange(start, end)

	if context.time_range is not None:
		return context.time_range

	return notewarp.evaluator.TimeRange(0.0, context.position)


def evaluate_statement (resolved: ResolvedStatement, context: notewarp.evaluator.EvaluationContext) -> notewarp.expression.ParameterDelta:

	"""
	Evaluate one statement's expression, raising on failure.
	"""

	statement_context = dataclasses.replace(context, time_range=active_time_range(resolved, context))
	value = notewarp.evaluator.evaluate_expression(resolved.statement.expression, statement_context)

	if not math.isfinite(value):
		raise notewarp.evaluator.EvaluationError(f"{resolved.statement.parameter} value is not a finite number: {value}")

	return notewarp.expression.ParameterDelta(resolved.statement.operator, value)


def evaluate_statements (
	statements: typing.Sequence[notewarp.expression.Statement],
	context: notewarp.evaluator.EvaluationContext
) -> typing.Dict[str, notewarp.expression.ParameterDelta]:

	"""
	Evaluate every applicable statement and return one delta per parameter.

	When several statements target the same parameter, the last one that
	applies wins. A statement that fails to evaluate is logged and skipped.

	Parameters:
		statements: A parsed program.
		context: The note being evaluated.

	Returns:
		Parameter name → `ParameterDelta`.

	Example:
		```python
		program = notewarp.parser.parse("C3 velocity += 10\\ntiming += 0.05")
		evaluate_statements(program, EvaluationContext(position=0.0, pitch=60))
		# → {"velocity": ParameterDelta("add", 10.0), "timing": ParameterDelta("add", 0.05)}
		```
	"""

	return evaluate_resolved(resolve_filters(statements), context)


def evaluate_resolved (
	resolved_statements: typing.Sequence[ResolvedStatement],
	context: notewarp.evaluator.EvaluationContext
) -> typing.Dict[str, notewarp.expression.ParameterDelta]:

	"""
	`evaluate_statements()` for a program whose filters are already resolved,
	so batch callers can cascade once and evaluate many notes.
	"""

	deltas: typing.Dict[str, notewarp.expression.ParameterDelta] = {}

	for resolved in resolved_statements:

		if not statement_applies(resolved, context):
			continue

		try:
			deltas[resolved.statement.parameter] = evaluate_statement(resolved, context)

		except notewarp.evaluator.EvaluationError as e:
			logger.warning(f"Skipping {resolved.statement.parameter} statement: {e}")

	return deltas


def _with_properties (
	context: notewarp.evaluator.EvaluationContext,
	note_properties: typing.Optional[typing.Dict[str, float]]
) -> notewarp.evaluator.EvaluationContext:

	if not note_properties:
		return context

	return dataclasses.replace(context, note_properties={**context.note_properties, **note_properties})


def evaluate_transform (
	source: typing.Optional[str],
	context: notewarp.evaluator.EvaluationContext,
	note_properties: typing.Optional[typing.Dict[str, float]] = None,
	parameters: typing.Optional[typing.Dict[str, str]] = None
) -> typing.Dict[str, notewarp.expression.ParameterDelta]:

	"""
	Parse and evaluate transform source for one context without raising.

	Parameters:
		source: Transform program text.
		context: The note being evaluated.
		note_properties: Extra ``note.*`` values (and ``"clip:*"`` /
			``"scale:mask"`` entries) merged over the context's own.
		parameters: Parameter vocabulary, ``TRANSFORM_PARAMETERS`` by default.

	Returns:
		Parameter name → `ParameterDelta`; empty when the source is empty or
		fails to parse.

	Example:
		```python
		evaluate_transform("pitch = quant(61)", EvaluationContext(position=0.0), {"scale:mask": 2741})
		# → {"pitch": ParameterDelta("set", 62.0)}
		```
	"""

	if not source or not source.strip():
		return {}

	try:
		statements = notewarp.parser.parse(source, parameters)

	except notewarp.parser.ParseError as e:
		logger.warning(f"Failed to parse transform: {e}")
		return {}

	return evaluate_statements(statements, _with_properties(context, note_properties))


def evaluate_modulation (
	source: typing.Optional[str],
	context: notewarp.evaluator.EvaluationContext,
	note_properties: typing.Optional[typing.Dict[str, float]] = None
) -> typing.Dict[str, notewarp.expression.ParameterDelta]:

	"""
	`evaluate_transform()` with the modulation vocabulary, where
	``velocityDeviation`` sets the ``deviation`` parameter.
	"""

	return evaluate_transform(source, context, note_properties, notewarp.expression.MODULATION_PARAMETERS)
