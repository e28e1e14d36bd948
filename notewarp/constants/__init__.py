"""Constants for notewarp.

This package contains the defaults shared by the expression engine and
the MIDI file host:

- ``notewarp.constants`` - Time signature, pitch range and file resolution defaults
- ``notewarp.constants.velocity`` - MIDI velocity and velocity deviation ranges
"""

# Time signature used when a host does not supply one.
DEFAULT_TIME_SIGNATURE_NUMERATOR = 4
DEFAULT_TIME_SIGNATURE_DENOMINATOR = 4

# MIDI pitch range (C-2 to G8 in the C3 = 60 convention)
MIN_PITCH = 0
MAX_PITCH = 127

# Trigger probability range
MIN_PROBABILITY = 0.0
MAX_PROBABILITY = 1.0
DEFAULT_PROBABILITY = 1.0

# Resolution used when writing Standard MIDI Files
DEFAULT_TICKS_PER_BEAT = 480

# Tempo used when a file carries no set_tempo meta message (120 BPM)
DEFAULT_TEMPO = 500000
