from django.test import SimpleTestCase

from assembly.stages import (
    STAGE_SEQUENCE, first_stage, final_stage, is_final_stage, is_valid_stage,
    next_stage, serialize_stages, stage_index, stage_label,
)


class StageSequenceTests(SimpleTestCase):

    def test_sequence_has_eleven_unique_stages(self):
        self.assertEqual(len(STAGE_SEQUENCE), 11)
        self.assertEqual(len(set(STAGE_SEQUENCE)), 11)

    def test_first_and_final(self):
        self.assertEqual(first_stage(), "LAP_AND_CLEAN")
        self.assertEqual(final_stage(), "PACKAGE_AND_SERIALIZE")
        self.assertTrue(is_final_stage("PACKAGE_AND_SERIALIZE"))
        self.assertFalse(is_final_stage("FINAL_QC"))

    def test_next_stage_walks_the_sequence(self):
        for current, following in zip(STAGE_SEQUENCE, STAGE_SEQUENCE[1:]):
            self.assertEqual(next_stage(current), following)
        self.assertIsNone(next_stage(final_stage()))

    def test_stage_index(self):
        self.assertEqual(stage_index("LAP_AND_CLEAN"), 0)
        self.assertEqual(stage_index("FUNCTION_TEST"), 8)

    def test_unknown_stage(self):
        self.assertFalse(is_valid_stage("POLISH"))
        self.assertFalse(is_valid_stage(None))
        self.assertFalse(is_valid_stage(["LAP_AND_CLEAN"]))
        self.assertFalse(is_valid_stage({"a": 1}))
        with self.assertRaises(ValueError):
            stage_index("POLISH")
        with self.assertRaises(ValueError):
            next_stage("POLISH")

    def test_labels(self):
        self.assertEqual(stage_label("FIT_BARREL"), "Fit Barrel")
        self.assertEqual(stage_label("FINAL_QC"), "Final QC")

    def test_serialize_stages_positions(self):
        stages = serialize_stages()
        self.assertEqual([s["stage"] for s in stages], list(STAGE_SEQUENCE))
        self.assertEqual(stages[0]["position"], 1)
        self.assertEqual(stages[-1]["position"], 11)
