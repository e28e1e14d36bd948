"""Syntax tree for transform programs.

A program is an ordered list of `Statement` objects. Each statement assigns
the value of an expression tree to one note parameter, optionally guarded by
a pitch filter and a time filter:

```
C3-C5 1|1-4|4.75 velocity += 20 * cos(1t)
│     │          │        │  └─ expression
│     │          │        └─ operator ("add")
│     │          └─ parameter
│     └─ time filter
└─ pitch filter
```

All nodes are frozen dataclasses holding tuples, so a parsed program can be
shared between threads and evaluated for any number of notes.
"""

import dataclasses
import typing

import notewarp.bar_beat


# ─── Parameter tables ─────────────────────────────────────────────────────────

# Accepted parameter name → canonical parameter.
TRANSFORM_PARAMETERS: typing.Dict[str, str] = {
	"velocity": "velocity",
	"timing": "timing",
	"duration": "duration",
	"probability": "probability",
	"deviation": "deviation",
	"pitch": "pitch",
	"gain": "gain",
	"pitchShift": "pitchShift",
}

MODULATION_PARAMETERS: typing.Dict[str, str] = {
	"velocity": "velocity",
	"timing": "timing",
	"duration": "duration",
	"probability": "probability",
	"velocityDeviation": "deviation",
}

# Parameters that only make sense on audio clips.
AUDIO_PARAMETERS: typing.FrozenSet[str] = frozenset({"gain", "pitchShift"})

OPERATORS: typing.Dict[str, str] = {
	"=": "set",
	"+=": "add",
}


# ─── Variables and functions ──────────────────────────────────────────────────

VARIABLE_NAMESPACES: typing.Dict[str, typing.FrozenSet[str]] = {
	"note": frozenset({"pitch", "start", "velocity", "duration", "probability", "deviation", "index", "count"}),
	"audio": frozenset({"gain", "pitchShift"}),
	"clip": frozenset({"position", "duration", "index", "count", "barDuration"}),
}

WAVEFORM_FUNCTIONS: typing.FrozenSet[str] = frozenset({"cos", "sin", "tri", "saw", "square"})

FUNCTION_NAMES: typing.FrozenSet[str] = WAVEFORM_FUNCTIONS | frozenset({
	"noise", "rand", "choose", "ramp", "curve",
	"quant", "round", "floor", "ceil", "abs", "clamp", "min", "max", "pow",
})

BINARY_OPERATORS: typing.Dict[str, str] = {
	"+": "add",
	"-": "subtract",
	"*": "multiply",
	"/": "divide",
	"%": "modulo",
}


# ─── Expression nodes ─────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class NumberLiteral:
	value: float


@dataclasses.dataclass(frozen=True)
class PeriodLiteral:

	"""
	A wave period written as ``<beats>t`` or ``<bars>:<beats>t``.
	"""

	bars: float
	beats: float

	def to_beats (self, beats_per_bar: float) -> float:
		return self.bars * beats_per_bar + self.beats


@dataclasses.dataclass(frozen=True)
class Variable:

	"""
	A property read such as ``note.velocity``.
	"""

	namespace: str
	name: str

	def __str__ (self) -> str:
		return f"{self.namespace}.{self.name}"


@dataclasses.dataclass(frozen=True)
class BinaryOp:
	kind: str
	left: "ExpressionNode"
	right: "ExpressionNode"


@dataclasses.dataclass(frozen=True)
class FunctionCall:

	"""
	A call such as ``cos(1t, 0.25)``. ``sync`` is set by a trailing ``sync``
	keyword on a waveform call and measures its phase from the start of the
	arrangement (``clip.position``) instead of the clip.
	"""

	name: str
	args: typing.Tuple["ExpressionNode", ...] = ()
	sync: bool = False


ExpressionNode = typing.Union[NumberLiteral, PeriodLiteral, Variable, BinaryOp, FunctionCall]


# ─── Filters and statements ───────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class PitchFilter:

	"""
	A single MIDI pitch (``low == high``) or an inclusive pitch range.
	"""

	low: int
	high: int

	def matches (self, pitch: int) -> bool:
		return self.low <= pitch <= self.high


@dataclasses.dataclass(frozen=True)
class TimeFilter:

	"""
	An inclusive ``bar|beat`` window. Bars and beats are kept as written and
	converted to beats once the time signature is known.
	"""

	start_bar: int
	start_beat: float
	end_bar: int
	end_beat: float

	def window (self, numerator: int, denominator: int) -> typing.Tuple[float, float]:

		"""
		Return the window as ``(start, end)`` in beats.
		"""

		start = notewarp.bar_beat.bar_beat_position_to_beats(self.start_bar, self.start_beat, numerator, denominator)
		end = notewarp.bar_beat.bar_beat_position_to_beats(self.end_bar, self.end_beat, numerator, denominator)

		return start, end

	def contains (self, beats: float, numerator: int, denominator: int) -> bool:

		start, end = self.window(numerator, denominator)

		return start <= beats <= end


@dataclasses.dataclass(frozen=True)
class Statement:

	"""
	One ``[pitch] [time] parameter (=|+=) expression`` line.

	``pitch_filter`` and ``time_filter`` are what was written on this line;
	``None`` means the statement inherits whatever filter an earlier line set.
	"""

	parameter: str
	operator: str
	expression: ExpressionNode
	pitch_filter: typing.Optional[PitchFilter] = None
	time_filter: typing.Optional[TimeFilter] = None


@dataclasses.dataclass(frozen=True)
class ParameterDelta:

	"""
	The change one statement makes to one parameter of one note.
	"""

	operator: str
	value: float

	def apply (self, current: float) -> float:

		"""
		Overwrite (``set``) or offset (``add``) ``current``.
		"""

		if self.operator == "add":
			return current + self.value

		return self.value
