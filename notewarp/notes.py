import dataclasses
import typing


@dataclasses.dataclass
class NoteEvent:

	"""
	A note as the host stores it. Positions and durations are in beats.

	``velocity`` and ``pitch`` may hold fractional values while transforms are
	applied; hosts round them when they write notes out.
	``deviation`` and ``probability`` are ``None`` when the host has not set
	them (read as 0 and 1).
	"""

	pitch: int
	start: float
	duration: float
	velocity: float
	deviation: typing.Optional[float] = None
	probability: typing.Optional[float] = None
	channel: int = 0

	@property
	def end (self) -> float:
		return self.start + self.duration
