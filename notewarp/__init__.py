
"""
notewarp - formula-driven transforms for MIDI notes.

Instead of editing notes one at a time, describe the change as a short
formula tied to musical time and let notewarp apply it to every note of a
clip:

    C3 1|1-2|4 velocity += 20 * cos(1t)

reads "for C3 notes in bars 1-2, add a cosine wave of depth 20 that cycles
once per beat to the velocity".

What it offers:

- **Musical time.** Positions are bars and beats, periods are written as
  ``1t`` (one beat), ``1:0t`` (one bar) or ``1/3t`` (a triplet), and the
  time signature does the arithmetic.
- **Cascading selectors.** Pitch and time selectors stay in effect for the
  following lines until replaced, like a style sheet.
- **Self-reference.** Each note sees its own ``note.velocity``,
  ``note.pitch``, ``note.index`` and friends, always as they were before
  the transform ran.
- **Waves, ramps and chance.** ``cos``, ``sin``, ``tri``, ``saw``,
  ``square``, ``ramp``, ``curve``, ``noise``, ``rand`` and ``choose``,
  plus ``quant`` to snap pitches into a scale.
- **Never breaks the clip.** Bad input is logged as a warning; good lines
  still apply.

Minimal example:

    ```python
    import notewarp

    notes = [notewarp.NoteEvent(pitch=60, start=beat, duration=0.5, velocity=90) for beat in range(8)]

    notewarp.apply_transforms(notes, '''
        velocity += 20 * saw(1:0t)       // accent builds across each bar
        5|1-8|4 probability = 0.5
    ''')
    ```

Package-level exports: ``NoteEvent``, ``EvaluationContext``, ``TimeSignature``,
``TimeRange``, ``ParseError``, ``EvaluationError``, ``parse``,
``evaluate_expression``, ``evaluate_transform``, ``evaluate_modulation``,
``apply_transforms``.
"""

import notewarp.applier
import notewarp.dispatch
import notewarp.evaluator
import notewarp.notes
import notewarp.parser


NoteEvent = notewarp.notes.NoteEvent
EvaluationContext = notewarp.evaluator.EvaluationContext
TimeSignature = notewarp.evaluator.TimeSignature
TimeRange = notewarp.evaluator.TimeRange
ParseError = notewarp.parser.ParseError
EvaluationError = notewarp.evaluator.EvaluationError
parse = notewarp.parser.parse
evaluate_expression = notewarp.evaluator.evaluate_expression
evaluate_transform = notewarp.dispatch.evaluate_transform
evaluate_modulation = notewarp.dispatch.evaluate_modulation
apply_transforms = notewarp.applier.apply_transforms
