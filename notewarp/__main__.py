"""Apply a transform program to a MIDI file.

```
python -m notewarp in.mid out.mid -e "velocity += 20 * cos(1t)"
python -m notewarp in.mid out.mid -f groove.nw --scale "D dorian" --realize --seed 7
python -m notewarp in.mid out.mid -c notewarp.yaml
```

Settings may also come from a YAML file; command-line flags win:

```yaml
transform: |
  C1-C2 velocity += 20 * saw(1:0t)
  pitch = quant(note.pitch)
scale:
  root: "A"
  mode: "minor"
time_signature:
  numerator: 7
  denominator: 8
seed: 42
realize: true
```
"""

import argparse
import logging
import os
import random
import sys
import typing

import yaml

import notewarp.applier
import notewarp.intervals
import notewarp.midi_file
import notewarp.pitch


logger = logging.getLogger(__name__)


def load_config (config_path: typing.Optional[str] = None) -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not config_path:
		return {}

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		return yaml.safe_load(f) or {}


def _read_text (path: str) -> str:

	with open(path, 'r', encoding='utf-8') as f:
		return f.read()


def _parse_time_signature (text: str) -> typing.Tuple[int, int]:

	try:
		numerator, denominator = (int(part) for part in text.split("/"))

	except ValueError:
		raise argparse.ArgumentTypeError(f"Expected a time signature like 3/4, got {text!r}")

	if numerator <= 0 or denominator <= 0:
		raise argparse.ArgumentTypeError(f"Invalid time signature {text!r}")

	return numerator, denominator


def build_parser () -> argparse.ArgumentParser:

	"""
	Command-line options for ``python -m notewarp``.
	"""

	parser = argparse.ArgumentParser(prog="notewarp", description="Apply a note transform program to a MIDI file")
	parser.add_argument("input", help="MIDI file to read")
	parser.add_argument("output", help="MIDI file to write")
	parser.add_argument("-e", "--expression", default=None, help="Transform program text")
	parser.add_argument("-f", "--file", default=None, help="File containing the transform program")
	parser.add_argument("-c", "--config", default=None, help="YAML config file")
	parser.add_argument("--scale", default=None, help="Scale for quant(), e.g. 'C major' or 'F# dorian'")
	parser.add_argument("--time-signature", type=_parse_time_signature, default=None, help="Override the file's time signature, e.g. 6/8")
	parser.add_argument("--seed", type=int, default=None, help="Seed for noise(), rand() and choose()")
	parser.add_argument("--realize", action="store_true", default=None, help="Bake probability and deviation into the written notes")
	parser.add_argument("--verbose", action="store_true", help="Log every transformed note")

	return parser


def _scale_mask (args: argparse.Namespace, config: dict) -> typing.Optional[int]:

	if args.scale:
		return notewarp.intervals.parse_scale(args.scale)

	scale = config.get('scale')

	if not scale:
		return None

	root = notewarp.pitch.key_name_to_pc(str(scale.get('root', 'C')))

	return notewarp.intervals.scale_mask(root, scale.get('mode', 'major'))


def run (argv: typing.Optional[typing.Sequence[str]] = None) -> int:

	"""
	Run the command line and return the exit status.
	"""

	args = build_parser().parse_args(argv)

	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

	config = load_config(args.config)

	if args.expression is not None:
		source = args.expression

	elif args.file or config.get('transform_file'):
		source = _read_text(args.file or config['transform_file'])

	else:
		source = config.get('transform')

	if not source:
		logger.error("No transform given. Use -e, -f or a 'transform' entry in the config file.")
		return 1

	if not os.path.exists(args.input):
		logger.error(f"Input file {args.input} not found")
		return 1

	try:
		scale_mask = _scale_mask(args, config)

	except ValueError as e:
		logger.error(f"Invalid scale: {e}")
		return 1

	seed = args.seed if args.seed is not None else config.get('seed')
	rng = random.Random(seed)

	clip = notewarp.midi_file.read_midi_file(args.input)

	if args.time_signature is not None:
		clip.numerator, clip.denominator = args.time_signature

	elif 'time_signature' in config:
		clip.numerator = config['time_signature'].get('numerator', clip.numerator)
		clip.denominator = config['time_signature'].get('denominator', clip.denominator)

	transformed = notewarp.applier.apply_transforms(
		clip.notes,
		source,
		clip.numerator,
		clip.denominator,
		scale_mask = scale_mask,
		rng = rng,
	)

	logger.info(f"Transformed {transformed} of {len(clip.notes)} notes")

	realize = args.realize if args.realize is not None else config.get('realize', False)

	if realize:
		clip.notes = notewarp.midi_file.realize_chance(clip.notes, rng)

	notewarp.midi_file.write_midi_file(clip, args.output)

	return 0


def main () -> None:

	"""
	Main entry point for the notewarp command.
	"""

	sys.exit(run())


if __name__ == "__main__":
	main()
