"""Parser for transform programs.

A program is a list of statements separated by newlines or commas:

```
C3 velocity += 20            // only C3
1|1-2|4 timing += 0.05       # C3 notes in bars 1-2
C4-C5 1|1-4|4: duration = note.duration * 1.5
pitch = quant(note.pitch + choose(0, 4, 7))
velocity += 30 * cos(1:0t, 0.25) /* one cycle per bar, quarter offset */
```

**Statements** are ``[pitch selector] [time selector] [:] parameter op expression``:

- Pitch selector: a note name (``C3``, ``F#-1``, ``bb4``; C3 = 60) or an
  inclusive range ``C3-C5``.
- Time selector: an inclusive ``bar|beat-bar|beat`` window such as
  ``1|1-2|4.5`` or ``3|1+1/2-4|1``.
- Selectors stay in effect for later statements until replaced.
- Operators: ``=`` sets the parameter, ``+=`` adds to it.

**Expressions** support ``+ - * / %``, parentheses, unary minus, numbers
(``12``, ``1.5``, ``.5``), note names as pitch numbers, variables
(``note.velocity``, ``clip.index``, ``audio.gain``) and function calls.

**Period literals** give a waveform's cycle length in musical time and are
only valid as function arguments:

- ``1t`` one beat, ``0.5t`` half a beat, ``1/3t`` or ``/3t`` a third of a beat
- ``1:0t`` one bar, ``2:1.5t`` two bars and a beat and a half
- ``1:1/2t`` or ``1:/2t`` one bar and half a beat
"""

import dataclasses
import re
import typing

import notewarp.bar_beat
import notewarp.expression
import notewarp.pitch


class ParseError(Exception):

	"""
	Raised for malformed transform source. ``line`` and ``column`` are
	1-based and point at the offending token when known.
	"""

	def __init__ (self, message: str, line: typing.Optional[int] = None, column: typing.Optional[int] = None) -> None:

		self.message = message
		self.line = line
		self.column = column

		if line is not None and column is not None:
			super().__init__(f"{message} (line {line}, column {column})")
		else:
			super().__init__(message)


@dataclasses.dataclass(frozen=True)
class Token:

	kind: str
	text: str
	offset: int
	value: typing.Any = None


_IDENT_TAIL = r"(?![A-Za-z0-9_])"

_PERIOD_RE = re.compile(
	r"(?:(?P<bars>\d+(?:\.\d+)?):)?"
	r"(?P<num>\d+(?:\.\d+)?|\.\d+)?"
	r"(?:/(?P<den>\d+(?:\.\d+)?))?"
	r"t" + _IDENT_TAIL
)
_POSITION_RE = re.compile(r"(\d+)\|(" + notewarp.bar_beat.BEAT_VALUE_PATTERN + r")")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_NOTE_RE = re.compile(notewarp.pitch.NOTE_NAME_PATTERN + _IDENT_TAIL)
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_PUNCTUATION: typing.Dict[str, str] = {
	"(": "lparen",
	")": "rparen",
	",": "comma",
	".": "dot",
	":": "colon",
	"=": "assign",
}


# ─── Tokenizer ────────────────────────────────────────────────────────────────


def _line_column (text: str, offset: int) -> typing.Tuple[int, int]:

	line = text.count("\n", 0, offset) + 1
	column = offset - (text.rfind("\n", 0, offset) + 1) + 1

	return line, column


def _error_at (text: str, offset: int, message: str) -> ParseError:

	line, column = _line_column(text, offset)

	return ParseError(message, line, column)


def _skip_comment (text: str, i: int) -> typing.Optional[int]:

	"""
	Return the offset just past a comment starting at ``i``, or ``None``
	when there is no comment there.
	"""

	if text.startswith("//", i) or text[i] == "#":
		end = text.find("\n", i)
		return len(text) if end == -1 else end

	if text.startswith("/*", i):
		end = text.find("*/", i + 2)
		if end == -1:
			raise _error_at(text, i, "Unterminated block comment")
		return end + 2

	return None


def _period_token (text: str, i: int) -> typing.Optional[Token]:

	match = _PERIOD_RE.match(text, i)

	if not match or (match.group("num") is None and match.group("den") is None):
		return None

	bars = float(match.group("bars")) if match.group("bars") is not None else 0.0
	beats = float(match.group("num")) if match.group("num") is not None else 1.0

	if match.group("den") is not None:
		denominator = float(match.group("den"))
		if denominator == 0:
			raise _error_at(text, i, f"Division by zero in period '{match.group(0)}'")
		beats /= denominator

	return Token("period", match.group(0), i, (bars, beats))


def _tokenize (text: str) -> typing.List[Token]:

	"""
	Split source text into tokens, ending with an ``eof`` token.

	Newlines inside parentheses are dropped so long function calls can wrap.
	"""

	tokens: typing.List[Token] = []
	depth = 0
	i = 0

	while i < len(text):

		ch = text[i]

		if ch == "\n":
			if depth == 0:
				tokens.append(Token("newline", ch, i))
			i += 1
			continue

		if ch.isspace():
			i += 1
			continue

		comment_end = _skip_comment(text, i)
		if comment_end is not None:
			i = comment_end
			continue

		at_argument = depth > 0 and tokens and tokens[-1].kind in ("lparen", "comma")

		if at_argument:
			period = _period_token(text, i)
			if period is not None:
				tokens.append(period)
				i += len(period.text)
				continue

		match = _POSITION_RE.match(text, i)
		if match:
			try:
				beat = notewarp.bar_beat.parse_beat_value(match.group(2))
			except ValueError as e:
				raise _error_at(text, i, str(e)) from e
			tokens.append(Token("position", match.group(0), i, (int(match.group(1)), beat)))
			i = match.end()
			continue

		match = _NUMBER_RE.match(text, i)
		if match:
			tokens.append(Token("number", match.group(0), i, float(match.group(0))))
			i = match.end()
			continue

		match = _NOTE_RE.match(text, i)
		if match:
			midi = notewarp.pitch.note_name_to_midi(match.group(0))
			if midi is None:
				raise _error_at(text, i, f"Note '{match.group(0)}' is outside valid range (C-2 to G8)")
			tokens.append(Token("note", match.group(0), i, midi))
			i = match.end()
			continue

		match = _IDENT_RE.match(text, i)
		if match:
			tokens.append(Token("identifier", match.group(0), i))
			i = match.end()
			continue

		if text.startswith("+=", i):
			tokens.append(Token("assign", "+=", i))
			i += 2
			continue

		if ch in notewarp.expression.BINARY_OPERATORS:
			tokens.append(Token("operator", ch, i))
			i += 1
			continue

		if ch in _PUNCTUATION:
			if ch == "(":
				depth += 1
			elif ch == ")":
				depth = max(depth - 1, 0)
			tokens.append(Token(_PUNCTUATION[ch], ch, i))
			i += 1
			continue

		raise _error_at(text, i, f"Unexpected character '{ch}'")

	tokens.append(Token("eof", "", len(text)))

	return tokens


# ─── Grammar ──────────────────────────────────────────────────────────────────


def _fold_chain (operands: typing.List[notewarp.expression.ExpressionNode], operators: typing.List[str]) -> notewarp.expression.ExpressionNode:

	"""
	Combine ``a op b op c ...`` into a tree.

	Operators nest to the left, except that a run of the same associative
	operator (``+`` or ``*``) nests to the right: ``5 + 3 + 2`` becomes
	``5 + (3 + 2)`` while ``5 - 3 - 2`` becomes ``(5 - 3) - 2``.
	"""

	result = operands[0]
	i = 0

	while i < len(operators):

		kind = notewarp.expression.BINARY_OPERATORS[operators[i]]
		j = i

		if kind in ("add", "multiply"):
			while j + 1 < len(operators) and operators[j + 1] == operators[i]:
				j += 1

		run = operands[i + 1:j + 2]
		right = run[-1]

		for operand in reversed(run[:-1]):
			right = notewarp.expression.BinaryOp(kind, operand, right)

		result = notewarp.expression.BinaryOp(kind, result, right)
		i = j + 1

	return result


class _Parser:

	def __init__ (self, text: str, tokens: typing.List[Token], parameters: typing.Dict[str, str]) -> None:

		self.text = text
		self.tokens = tokens
		self.parameters = parameters
		self.pos = 0

	def peek (self, ahead: int = 0) -> Token:

		return self.tokens[min(self.pos + ahead, len(self.tokens) - 1)]

	def advance (self) -> Token:

		token = self.tokens[self.pos]
		if token.kind != "eof":
			self.pos += 1
		return token

	def error (self, message: str, token: typing.Optional[Token] = None) -> ParseError:

		token = token or self.peek()
		return _error_at(self.text, token.offset, message)

	def describe (self, token: Token) -> str:

		return "end of input" if token.kind == "eof" else ("newline" if token.kind == "newline" else f"'{token.text}'")

	def expect (self, kind: str, message: str) -> Token:

		if self.peek().kind != kind:
			raise self.error(f"{message}, got {self.describe(self.peek())}")
		return self.advance()

	# -- Program structure --

	def parse_program (self) -> typing.List[notewarp.expression.Statement]:

		statements: typing.List[notewarp.expression.Statement] = []

		while True:

			while self.peek().kind in ("newline", "comma"):
				self.advance()

			if self.peek().kind == "eof":
				return statements

			statements.append(self.parse_statement())

			if self.peek().kind not in ("newline", "comma", "eof"):
				raise self.error(f"Expected end of statement, got {self.describe(self.peek())}")

	def parse_statement (self) -> notewarp.expression.Statement:

		pitch_filter: typing.Optional[notewarp.expression.PitchFilter] = None
		time_filter: typing.Optional[notewarp.expression.TimeFilter] = None

		while self.peek().kind in ("note", "position"):

			if self.peek().kind == "note":
				if pitch_filter is not None:
					raise self.error("Only one pitch selector is allowed per statement")
				pitch_filter = self.parse_pitch_selector()

			else:
				if time_filter is not None:
					raise self.error("Only one time selector is allowed per statement")
				time_filter = self.parse_time_selector()

		if (pitch_filter or time_filter) and self.peek().kind == "colon":
			self.advance()

		name_token = self.expect("identifier", "Expected parameter name")

		if name_token.text not in self.parameters:
			raise self.error(
				f"Unknown parameter '{name_token.text}'. Expected one of: {', '.join(self.parameters)}",
				name_token
			)

		operator_token = self.peek()

		if operator_token.kind != "assign":
			raise self.error(f"Expected '=' or '+=' after '{name_token.text}', got {self.describe(operator_token)}")

		self.advance()

		expression = self.parse_expression()

		return notewarp.expression.Statement(
			parameter = self.parameters[name_token.text],
			operator = notewarp.expression.OPERATORS[operator_token.text],
			expression = expression,
			pitch_filter = pitch_filter,
			time_filter = time_filter,
		)

	def parse_pitch_selector (self) -> notewarp.expression.PitchFilter:

		start_token = self.advance()
		low = high = start_token.value

		if self.peek().kind == "operator" and self.peek().text == "-" and self.peek(1).kind == "note":
			self.advance()
			end_token = self.advance()
			high = end_token.value

			if high < low:
				raise self.error(f"Invalid pitch range {start_token.text}-{end_token.text}: end is below start", start_token)

		return notewarp.expression.PitchFilter(low, high)

	def parse_time_selector (self) -> notewarp.expression.TimeFilter:

		start_token = self.advance()

		if not (self.peek().kind == "operator" and self.peek().text == "-"):
			raise self.error(f"Expected '-' after time position {start_token.text}")

		self.advance()
		end_token = self.expect("position", f"Expected end position after '{start_token.text}-'")

		for token in (start_token, end_token):
			bar, beat = token.value
			if bar < 1 or beat < 1:
				raise self.error(f"Invalid position {token.text}: bars and beats start at 1", token)

		if end_token.value < start_token.value:
			raise self.error(f"Invalid time range {start_token.text}-{end_token.text}: end is before start", start_token)

		start_bar, start_beat = start_token.value
		end_bar, end_beat = end_token.value

		return notewarp.expression.TimeFilter(start_bar, start_beat, end_bar, end_beat)

	# -- Expressions --

	def parse_expression (self) -> notewarp.expression.ExpressionNode:

		return self.parse_binary(("+", "-"), self.parse_term)

	def parse_term (self) -> notewarp.expression.ExpressionNode:

		return self.parse_binary(("*", "/", "%"), self.parse_unary)

	def parse_binary (self, symbols: typing.Tuple[str, ...], parse_operand: typing.Callable[[], notewarp.expression.ExpressionNode]) -> notewarp.expression.ExpressionNode:

		operands = [parse_operand()]
		operators: typing.List[str] = []

		while self.peek().kind == "operator" and self.peek().text in symbols:
			operators.append(self.advance().text)
			operands.append(parse_operand())

		return _fold_chain(operands, operators)

	def parse_unary (self) -> notewarp.expression.ExpressionNode:

		token = self.peek()

		if token.kind == "operator" and token.text in ("-", "+"):
			self.advance()
			operand = self.parse_unary()

			if token.text == "+":
				return operand

			if isinstance(operand, notewarp.expression.NumberLiteral):
				return notewarp.expression.NumberLiteral(-operand.value)

			return notewarp.expression.BinaryOp("subtract", notewarp.expression.NumberLiteral(0.0), operand)

		return self.parse_primary()

	def parse_primary (self) -> notewarp.expression.ExpressionNode:

		token = self.peek()

		if token.kind in ("number", "note"):
			self.advance()
			return notewarp.expression.NumberLiteral(float(token.value))

		if token.kind == "lparen":
			self.advance()
			inner = self.parse_expression()
			self.expect("rparen", "Expected ')'")
			return inner

		if token.kind == "identifier":
			if self.peek(1).kind == "dot":
				return self.parse_variable()
			if self.peek(1).kind == "lparen":
				return self.parse_call()
			raise self.error(f"Unexpected identifier '{token.text}'")

		if token.kind == "period":
			raise self.error(f"Period '{token.text}' is only allowed as a function argument")

		raise self.error(f"Unexpected {self.describe(token)} in expression")

	def parse_variable (self) -> notewarp.expression.Variable:

		namespace_token = self.advance()
		self.advance()
		name_token = self.expect("identifier", f"Expected property name after '{namespace_token.text}.'")

		namespace = namespace_token.text
		properties = notewarp.expression.VARIABLE_NAMESPACES.get(namespace)

		if properties is None:
			raise self.error(
				f"Unknown variable namespace '{namespace}'. Expected one of: {', '.join(notewarp.expression.VARIABLE_NAMESPACES)}",
				namespace_token
			)

		if name_token.text not in properties:
			raise self.error(f"Unknown variable '{namespace}.{name_token.text}'", name_token)

		return notewarp.expression.Variable(namespace, name_token.text)

	def parse_call (self) -> notewarp.expression.FunctionCall:

		name_token = self.advance()

		if name_token.text not in notewarp.expression.FUNCTION_NAMES:
			raise self.error(f"Unknown function '{name_token.text}()'", name_token)

		self.advance()
		args: typing.List[notewarp.expression.ExpressionNode] = []

		if self.peek().kind == "rparen":
			self.advance()
			return notewarp.expression.FunctionCall(name_token.text, ())

		while True:

			token = self.peek()

			if token.kind == "identifier" and token.text == "sync" and self.peek(1).kind == "rparen":

				if name_token.text not in notewarp.expression.WAVEFORM_FUNCTIONS:
					raise self.error(f"'sync' is only allowed on waveform functions, not {name_token.text}()", token)

				if not args:
					raise self.error(f"'sync' must follow the period in {name_token.text}()", token)

				self.advance()
				self.advance()
				return notewarp.expression.FunctionCall(name_token.text, tuple(args), sync=True)

			if token.kind == "period" and self.peek(1).kind in ("comma", "rparen"):
				self.advance()
				bars, beats = token.value
				args.append(notewarp.expression.PeriodLiteral(bars, beats))

			else:
				args.append(self.parse_expression())

			if self.peek().kind == "comma":
				self.advance()
				continue

			self.expect("rparen", f"Expected ',' or ')' in {name_token.text}()")
			return notewarp.expression.FunctionCall(name_token.text, tuple(args))


# ─── Public API ───────────────────────────────────────────────────────────────


def parse (
	source: str,
	parameters: typing.Optional[typing.Dict[str, str]] = None
) -> typing.List[notewarp.expression.Statement]:

	"""
	Parse transform source into a list of statements.

	Parameters:
		source: Program text. Empty or comment-only text gives ``[]``.
		parameters: Accepted parameter names mapped to the parameter each one
			sets. Defaults to ``TRANSFORM_PARAMETERS``; pass
			``MODULATION_PARAMETERS`` for the modulation vocabulary.

	Returns:
		Statements in source order. Filters are as written; inheritance
		between statements happens at evaluation time.

	Raises:
		ParseError: On any malformed input. No partial result is returned.

	Example:
		```python
		statements = parse("C3 velocity += 20 * cos(1t)")
		statements[0].pitch_filter  # → PitchFilter(low=60, high=60)
		```
	"""

	if parameters is None:
		parameters = notewarp.expression.TRANSFORM_PARAMETERS

	tokens = _tokenize(source)

	return _Parser(source, tokens, parameters).parse_program()
