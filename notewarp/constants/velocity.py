"""MIDI velocity constants.

Velocity is the MIDI attack strength (0-127). Velocity deviation is the
random range a host adds to velocity on playback (-127 to 127).
"""

# Primary default
DEFAULT_VELOCITY = 100          # Notes read without an explicit velocity

# MIDI standard range
MIN_VELOCITY = 0
MAX_VELOCITY = 127

# Lowest velocity that still sounds; quieter notes are dropped on export
MIN_AUDIBLE_VELOCITY = 1

# Velocity deviation range
DEFAULT_DEVIATION = 0
MIN_DEVIATION = -127
MAX_DEVIATION = 127
