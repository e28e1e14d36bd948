import unittest

import notewarp.intervals


C_MAJOR = 0b101010110101


class IntervalTests (unittest.TestCase):

	"""
	Tests for scale lookup, pitch-class masks and mask quantization.
	"""

	def test_get_intervals (self) -> None:

		"""
		Interval lookup should return a known definition.
		"""

		self.assertEqual(notewarp.intervals.get_intervals("major_pentatonic"), [0, 2, 4, 7, 9])

		with self.assertRaises(ValueError):
			notewarp.intervals.get_intervals("not_a_scale")


	def test_scale_mask (self) -> None:

		"""
		C major packs into 2741, A minor shares its pitch classes.
		"""

		self.assertEqual(notewarp.intervals.scale_mask(0, "major"), C_MAJOR)
		self.assertEqual(notewarp.intervals.scale_mask(0, "major"), 2741)
		self.assertEqual(notewarp.intervals.scale_mask(9, "minor"), C_MAJOR)
		self.assertEqual(notewarp.intervals.mask_to_pitch_classes(C_MAJOR), [0, 2, 4, 5, 7, 9, 11])


	def test_parse_scale (self) -> None:

		"""
		Human-written scales resolve to masks; a bare key means major.
		"""

		self.assertEqual(notewarp.intervals.parse_scale("C major"), C_MAJOR)
		self.assertEqual(notewarp.intervals.parse_scale("C"), C_MAJOR)
		self.assertEqual(
			notewarp.intervals.parse_scale("D dorian"),
			notewarp.intervals.pitch_classes_to_mask([2, 4, 5, 7, 9, 11, 0])
		)

		with self.assertRaises(ValueError):
			notewarp.intervals.parse_scale("H major")

		with self.assertRaises(ValueError):
			notewarp.intervals.parse_scale("C bebop")


	def test_quantize_ties_break_upward (self) -> None:

		"""
		C# is equidistant from C and D; the higher note wins.
		"""

		self.assertEqual(notewarp.intervals.quantize_to_mask(61, C_MAJOR), 62)
		self.assertEqual(notewarp.intervals.quantize_to_mask(66, C_MAJOR), 67)
		self.assertEqual(notewarp.intervals.quantize_to_mask(60, C_MAJOR), 60)


	def test_quantize_rounds_before_snapping (self) -> None:

		"""
		Fractional input rounds half up, then snaps.
		"""

		self.assertEqual(notewarp.intervals.quantize_to_mask(59.6, C_MAJOR), 60)
		self.assertEqual(notewarp.intervals.quantize_to_mask(60.5, C_MAJOR), 62)


	def test_quantize_clamps_into_midi_range (self) -> None:

		"""
		Out-of-range results land on the nearest in-scale note inside 0-127.
		"""

		self.assertEqual(notewarp.intervals.quantize_to_mask(130, C_MAJOR), 127)
		self.assertEqual(notewarp.intervals.quantize_to_mask(-1, C_MAJOR), 0)

		# 127 is G; in C# major the highest note is 126 (F#)
		c_sharp_major = notewarp.intervals.scale_mask(1, "major")
		self.assertEqual(notewarp.intervals.quantize_to_mask(140, c_sharp_major), 126)


	def test_quantize_is_idempotent (self) -> None:

		"""
		Quantizing an already quantized pitch changes nothing.
		"""

		for pitch in range(-5, 135):
			once = notewarp.intervals.quantize_to_mask(pitch, C_MAJOR)
			self.assertEqual(notewarp.intervals.quantize_to_mask(once, C_MAJOR), once)
			self.assertTrue(0 <= once <= 127)
