import unittest
from datetime import date, datetime

from examtrack.core.aggregation import (
    active_subjects,
    aggregate,
    aggregate_exams,
    aggregate_practice,
    exam_summary,
    reaggregate,
    subject_averages,
)
from examtrack.core.errors import MixedRecordKindsError
from examtrack.core.records import SubjectAttempt, make_exam_record, make_practice_log


def practice_logs():
    return [
        make_practice_log("2024-03-04", "s1", {"math": {"correct": 30, "incorrect": 10}, "turkish": 20}),
        make_practice_log("2024-03-06", "s1", {"math": {"correct": 12, "incorrect": 3}}),
        make_practice_log("2024-03-12", "s1", {"physics": {"correct": 8, "incorrect": 8}}),
        make_practice_log("2024-04-01", "s1", {"turkish": {"correct": 40, "incorrect": 5}}),
    ]


def general_exam(day, correct):
    return make_exam_record(day, "GENERAL", {"turkish": correct})


class PracticeAggregationTests(unittest.TestCase):
    def test_weekly_sums(self):
        buckets = aggregate_practice(practice_logs(), "weekly")
        self.assertEqual([b.bucket.key for b in buckets], ["2024-03-04", "2024-03-11", "2024-04-01"])
        first = buckets[0]
        self.assertEqual(first.total, 75)
        self.assertEqual((first.total_correct, first.total_incorrect), (62, 13))
        self.assertEqual(first.per_subject["math"], SubjectAttempt(42, 13))
        self.assertEqual(first.per_subject["turkish"], SubjectAttempt(20, 0))
        self.assertEqual(first.record_count, 2)

    def test_total_is_correct_plus_incorrect(self):
        for bucket in aggregate_practice(practice_logs(), "daily"):
            self.assertEqual(bucket.total, bucket.total_correct + bucket.total_incorrect)

    def test_conservation(self):
        logs = practice_logs()
        expected = sum(log.total for log in logs)
        for granularity in ("daily", "weekly", "monthly"):
            buckets = aggregate_practice(logs, granularity)
            self.assertEqual(sum(b.total_correct + b.total_incorrect for b in buckets), expected)

    def test_permutation_gives_same_buckets(self):
        logs = practice_logs()
        self.assertEqual(aggregate(logs, "weekly"), aggregate(list(reversed(logs)), "weekly"))

    def test_no_gap_filling(self):
        buckets = aggregate_practice(practice_logs(), "daily")
        self.assertEqual(len(buckets), 4)

    def test_replacing_log_is_not_summed(self):
        first = make_practice_log("2024-03-04", "s1", {"math": {"correct": 10, "incorrect": 2}})
        second = make_practice_log("2024-03-04", "s1", {"math": {"correct": 5, "incorrect": 1}})
        [bucket] = aggregate_practice([first, second], "daily")
        self.assertEqual(bucket.total, 6)
        self.assertEqual(bucket.per_subject["math"], SubjectAttempt(5, 1))

    def test_mixed_saves_keep_the_latest_timestamp(self):
        logs = [
            make_practice_log("2024-03-04", "s1", {"math": 10}, saved_at=datetime(2024, 3, 4, 20, 0)),
            make_practice_log("2024-03-04", "s1", {"math": 20}),
            make_practice_log("2024-03-04", "s1", {"math": 30}, saved_at=datetime(2024, 3, 4, 8, 0)),
        ]
        self.assertEqual(aggregate_practice(logs, "daily")[0].total, 10)

    def test_empty_input(self):
        self.assertEqual(aggregate([], "weekly"), [])
        self.assertEqual(aggregate_practice([], "monthly"), [])


class ExamAggregationTests(unittest.TestCase):
    def test_scores_are_averaged(self):
        records = [general_exam("2024-03-02", 10), general_exam("2024-03-20", 15), general_exam("2024-04-02", 20)]
        buckets = aggregate_exams(records, "monthly")
        self.assertEqual([b.total for b in buckets], [12.5, 20.0])
        self.assertEqual(buckets[0].record_count, 2)
        self.assertEqual(buckets[0].per_subject["turkish"], SubjectAttempt(25, 0))

    def test_dashboard_rounding(self):
        records = [general_exam("2024-03-02", 10), general_exam("2024-03-20", 15)]
        [bucket] = aggregate_exams(records, "monthly", round_to=0)
        self.assertEqual(bucket.total, 13)
        self.assertIsInstance(bucket.total, int)

    def test_mixed_kinds_rejected(self):
        with self.assertRaises(MixedRecordKindsError):
            aggregate([practice_logs()[0], general_exam("2024-03-02", 10)], "daily")

    def test_summary(self):
        records = [general_exam("2024-03-02", 10), general_exam("2024-03-20", 15)]
        summary = exam_summary(records)
        self.assertEqual((summary.exam_count, summary.average_score), (2, 13))
        empty = exam_summary([])
        self.assertEqual((empty.exam_count, empty.average_score), (0, 0))

    def test_subject_averages(self):
        records = [
            make_exam_record("2024-03-01", "LGS", {"turkish": {"correct": 18, "incorrect": 3}}),
            make_exam_record("2024-03-08", "LGS", {"turkish": 20}),
        ]
        self.assertEqual(subject_averages(records, ("turkish", "math")), {"turkish": 18.5, "math": 0.0})
        self.assertEqual(subject_averages([]), {})


class ReaggregationTests(unittest.TestCase):
    def test_same_granularity_is_fixed_point(self):
        for granularity in ("daily", "weekly", "monthly"):
            buckets = aggregate(practice_logs(), granularity)
            self.assertEqual(aggregate(buckets, granularity), buckets)

    def test_exam_buckets_fixed_point(self):
        records = [general_exam("2024-03-02", 10), general_exam("2024-03-20", 15), general_exam("2024-04-02", 20)]
        buckets = aggregate(records, "monthly")
        self.assertEqual(reaggregate(buckets, "monthly"), buckets)

    def test_coarsening_matches_direct_aggregation(self):
        daily = aggregate(practice_logs(), "daily")
        self.assertEqual(reaggregate(daily, "monthly"), aggregate(practice_logs(), "monthly"))

    def test_coarsening_exams_weights_by_count(self):
        records = [general_exam("2024-03-04", 10), general_exam("2024-03-04", 20), general_exam("2024-03-06", 30)]
        daily = aggregate(records, "daily")
        [weekly] = reaggregate(daily, "weekly")
        self.assertEqual(weekly.total, 20.0)
        self.assertEqual(weekly.bucket.period_start, date(2024, 3, 4))


class ActiveSubjectTests(unittest.TestCase):
    def test_only_subjects_with_attempts(self):
        logs = [
            make_practice_log("2024-03-04", "s1", {"math": {"correct": 0, "incorrect": 0}, "turkish": 3}),
            make_practice_log("2024-03-05", "s1", {"biology": {"correct": 0, "incorrect": 2}}),
        ]
        self.assertEqual(active_subjects(logs), ["biology", "turkish"])

    def test_active_subjects_follow_practice_group_order(self):
        logs = [
            make_practice_log("2024-03-04", "s1", {"physics": 4, "turkish": 3, "astronomy": 1}),
            make_practice_log("2024-03-05", "s1", {"math": {"correct": 0, "incorrect": 2}}),
        ]
        self.assertEqual(active_subjects(logs, grade_level="11"), ["turkish", "math", "physics", "astronomy"])


if __name__ == "__main__":
    unittest.main()
