import unittest

from examtrack.core.errors import InvalidRecordError, UnknownFormatError, UnknownSubjectError
from examtrack.core.formats import ExamFormat, relevant_subjects
from examtrack.core.records import make_exam_record
from examtrack.core.scoring import (
    calculate_scores,
    exam_breakdown,
    placement_score,
    record_placement_score,
    score_bounds,
    score_record,
    tyt_contribution,
)

AYT_NETS = {
    "tyt_turkish": 30,
    "tyt_social": 10,
    "tyt_math": 25,
    "tyt_science": 10,
    "math": 30,
    "physics": 10,
    "chemistry": 8,
    "biology": 9,
}


class LGSScoreTests(unittest.TestCase):
    def test_full_marks_stay_under_ceiling(self):
        nets = {"turkish": 20, "math": 20, "science": 20, "inkilap": 10, "religion": 10, "foreign_lang": 10}
        self.assertAlmostEqual(calculate_scores("LGS", nets)["LGS"], 495.56, places=2)

    def test_zero_nets_give_base(self):
        self.assertAlmostEqual(placement_score(ExamFormat.LGS, {}), 194.76, places=2)

    def test_clamped_to_range(self):
        self.assertEqual(placement_score("LGS", {"math": 100}), 500)
        self.assertEqual(placement_score("LGS", {"math": -30}), 100)


class TYTScoreTests(unittest.TestCase):
    def test_diploma_score_added(self):
        nets = {"turkish": 30, "social": 15, "math": 20, "science": 10}
        self.assertAlmostEqual(calculate_scores("TYT", nets, 80)["TYT"], 398.0, places=3)

    def test_missing_nets_count_as_zero(self):
        self.assertEqual(calculate_scores("TYT", {}), {"TYT": 100.0})

    def test_capped_at_560(self):
        self.assertEqual(placement_score("TYT", {"math": 100, "turkish": 40}, 100), 560)

    def test_diploma_out_of_range(self):
        with self.assertRaises(InvalidRecordError):
            calculate_scores("TYT", {}, 120)


class AYTScoreTests(unittest.TestCase):
    def test_tyt_contribution(self):
        self.assertAlmostEqual(tyt_contribution(AYT_NETS), 79.92, places=6)
        self.assertAlmostEqual(tyt_contribution({}), 40.0, places=6)

    def test_all_four_scores_in_one_pass(self):
        scores = calculate_scores("AYT_SAY", AYT_NETS, 90)
        self.assertEqual(set(scores), {"SAY", "EA", "SOZ", "DIL"})
        self.assertAlmostEqual(scores["SAY"], 404.61, places=3)
        self.assertAlmostEqual(scores["EA"], 323.92, places=3)
        self.assertAlmostEqual(scores["SOZ"], 233.92, places=3)
        self.assertAlmostEqual(scores["DIL"], 233.92, places=3)

    def test_every_ayt_format_shares_the_calculation(self):
        expected = calculate_scores("AYT_SAY", AYT_NETS, 90)
        for name in ("AYT_EA", "AYT_SOZ", "AYT_DIL"):
            self.assertEqual(calculate_scores(name, AYT_NETS, 90), expected)
        self.assertAlmostEqual(placement_score("AYT_EA", AYT_NETS, 90), 323.92, places=3)

    def test_each_score_clamped_independently(self):
        scores = calculate_scores("AYT_DIL", {"foreign_lang": 150})
        self.assertEqual(scores["DIL"], 560)
        self.assertAlmostEqual(scores["SAY"], 140.0, places=3)


class FormatTests(unittest.TestCase):
    def test_general_scores_total_net(self):
        record = make_exam_record(
            "2024-03-01",
            "GENEL",
            {"turkish": {"correct": 10, "incorrect": 4}, "math": 5},
        )
        self.assertIs(record.format, ExamFormat.GENERAL)
        self.assertAlmostEqual(record_placement_score(record), 14.0, places=3)

    def test_unknown_format(self):
        with self.assertRaises(UnknownFormatError):
            calculate_scores("KPSS", {})

    def test_subject_outside_format_rejected(self):
        with self.assertRaises(UnknownSubjectError):
            calculate_scores("LGS", {"physics": 10})
        with self.assertRaises(UnknownSubjectError):
            placement_score("TYT", {"math": 20, "tyt_math": 20})

    def test_bounds(self):
        self.assertEqual(score_bounds("LGS"), (100, 500))
        self.assertEqual(score_bounds("AYT_SOZ"), (0, 560))

    def test_clamp_holds_for_range_of_nets(self):
        for value in range(0, 200, 7):
            for name in ExamFormat:
                floor, ceiling = score_bounds(name)
                nets = {subject: value for subject in relevant_subjects(name)}
                for score in calculate_scores(name, nets, 100).values():
                    self.assertGreaterEqual(score, floor)
                    self.assertLessEqual(score, ceiling)


class RecordScoreTests(unittest.TestCase):
    def test_score_record_uses_lgs_penalty(self):
        record = make_exam_record(
            "2024-03-01",
            "LGS",
            {"turkish": {"correct": 18, "incorrect": 3}, "math": 20},
        )
        self.assertAlmostEqual(score_record(record)["LGS"], 358.04, places=3)

    def test_breakdown_skips_empty_subjects(self):
        record = make_exam_record(
            "2024-03-01",
            "LGS",
            {"turkish": {"correct": 18, "incorrect": 3}, "math": {"correct": 0, "incorrect": 0}, "science": 5},
        )
        rows, total_correct, total_incorrect = exam_breakdown(record)
        self.assertEqual([row.subject for row in rows], ["turkish", "science"])
        self.assertEqual(rows[0].net, 17.0)
        self.assertEqual((total_correct, total_incorrect), (23, 3))


if __name__ == "__main__":
    unittest.main()
