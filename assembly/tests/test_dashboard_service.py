from datetime import datetime, timedelta

import pytz
from django.test import SimpleTestCase, TestCase, override_settings

from assembly.models import SerializedItem, UnitStageLog
from assembly.stages import STAGE_SEQUENCE
from assembly.services import DashboardService, ValidationError, resolve_time_window
from main.models import User

from .helpers import make_user, make_batch


CHICAGO = pytz.timezone("America/Chicago")


def local(*args):
    return CHICAGO.localize(datetime(*args))


@override_settings(TIME_ZONE="America/Chicago")
class TimeWindowTests(SimpleTestCase):

    def test_today_runs_from_local_midnight_to_now(self):
        now = local(2026, 10, 14, 15, 30)
        window = resolve_time_window("today", now)

        self.assertEqual(window.start, local(2026, 10, 14))
        self.assertEqual(window.end, now)

    def test_midweek(self):
        window = resolve_time_window("this_week", local(2026, 10, 14, 15, 30))

        self.assertEqual(window.start, local(2026, 10, 12))
        self.assertEqual(window.end, local(2026, 10, 19))

    def test_monday_midnight_starts_a_new_week(self):
        window = resolve_time_window("this_week", local(2026, 10, 12, 0, 0))
        self.assertEqual(window.start, local(2026, 10, 12))

    def test_sunday_belongs_to_the_previous_monday(self):
        window = resolve_time_window("this_week", local(2026, 10, 18, 23, 59, 59))

        self.assertEqual(window.start, local(2026, 10, 12))
        self.assertEqual(window.end, local(2026, 10, 19))

    def test_utc_now_is_converted_to_local_time(self):
        # Monday 03:00 UTC is still Sunday evening in Chicago
        now = pytz.utc.localize(datetime(2026, 10, 19, 3, 0))
        window = resolve_time_window("this_week", now)
        self.assertEqual(window.start, local(2026, 10, 12))

    def test_all_time_is_unbounded(self):
        window = resolve_time_window("all_time")
        self.assertIsNone(window.start)
        self.assertIsNone(window.end)

    def test_unknown_period(self):
        with self.assertRaises(ValidationError):
            resolve_time_window("last_year")


@override_settings(TIME_ZONE="America/Chicago")
class DashboardSummaryTests(TestCase):

    def setUp(self):
        self.user = make_user(User.RoleChoices.SUPERVISOR)
        self.now = local(2026, 10, 14, 15, 30)
        make_batch(quantity=5, serials=["80001", "80002", "80003", "80004", "80005"])

    def set_unit(self, serial, status, stage, updated_at):
        SerializedItem.objects.filter(serial_number=serial).update(
            status=status, current_stage=stage, updated_at=updated_at
        )

    def reject(self, serial, stage, timestamp):
        UnitStageLog.objects.create(
            unit=SerializedItem.objects.get(serial_number=serial),
            stage=stage,
            status=UnitStageLog.LogStatus.REJECTED,
            completed_by=self.user,
            notes="Out of tolerance",
            timestamp=timestamp,
        )

    def test_production_summary_by_window(self):
        final = STAGE_SEQUENCE[-1]
        self.set_unit("80001", "COMPLETE", final, local(2026, 10, 14, 9, 0))
        self.set_unit("80002", "COMPLETE", final, local(2026, 10, 12, 8, 0))
        self.set_unit("80003", "COMPLETE", final, local(2026, 9, 1, 8, 0))
        self.set_unit("80004", "IN_PROGRESS", "FIT_BARREL", local(2026, 9, 1, 8, 0))

        today = DashboardService.get_production_summary("today", now=self.now)
        week = DashboardService.get_production_summary("this_week", now=self.now)
        ever = DashboardService.get_production_summary("all_time", now=self.now)

        self.assertEqual(today["units_completed"], 1)
        self.assertEqual(week["units_completed"], 2)
        self.assertEqual(ever["units_completed"], 3)
        for summary in (today, week, ever):
            self.assertEqual(summary["units_in_progress"], 1)

    def test_today_excludes_updates_after_now(self):
        self.set_unit("80001", "COMPLETE", STAGE_SEQUENCE[-1], self.now + timedelta(minutes=5))
        summary = DashboardService.get_production_summary("today", now=self.now)
        self.assertEqual(summary["units_completed"], 0)

    def test_rejection_summary_is_zero_filled(self):
        self.reject("80001", "FIT_BARREL", local(2026, 10, 13, 10, 0))
        self.reject("80002", "FIT_BARREL", local(2026, 10, 14, 10, 0))
        self.reject("80003", "FINAL_QC", local(2026, 10, 5, 10, 0))

        week = DashboardService.get_rejection_summary("this_week", now=self.now)
        by_stage = {row["stage"]: row["count"] for row in week["rejections_by_stage"]}

        self.assertEqual(week["total_rejections"], 2)
        self.assertEqual(len(week["rejections_by_stage"]), 11)
        self.assertEqual([row["stage"] for row in week["rejections_by_stage"]], list(STAGE_SEQUENCE))
        self.assertEqual(by_stage["FIT_BARREL"], 2)
        self.assertEqual(by_stage["FINAL_QC"], 0)

        ever = DashboardService.get_rejection_summary("all_time", now=self.now)
        self.assertEqual(ever["total_rejections"], 3)

    def test_completions_are_not_rejections(self):
        UnitStageLog.objects.create(
            unit=SerializedItem.objects.get(serial_number="80001"),
            stage="LAP_AND_CLEAN",
            status=UnitStageLog.LogStatus.COMPLETE,
            completed_by=self.user,
        )
        summary = DashboardService.get_rejection_summary()
        self.assertEqual(summary["total_rejections"], 0)

    def test_wip_by_stage_is_a_current_snapshot(self):
        self.set_unit("80001", "IN_PROGRESS", "FIT_BARREL", local(2020, 1, 1))
        self.set_unit("80002", "IN_PROGRESS", "FIT_BARREL", self.now)
        self.set_unit("80003", "IN_PROGRESS", "FINAL_QC", self.now)
        self.set_unit("80004", "COMPLETE", STAGE_SEQUENCE[-1], self.now)

        wip = DashboardService.get_wip_by_stage()
        by_stage = {row["stage"]: row["count"] for row in wip["wip_by_stage"]}

        self.assertEqual(len(wip["wip_by_stage"]), 11)
        self.assertEqual(by_stage["FIT_BARREL"], 2)
        self.assertEqual(by_stage["FINAL_QC"], 1)
        self.assertEqual(by_stage["PACKAGE_AND_SERIALIZE"], 0)
        self.assertEqual(wip["total_in_progress"], 3)

    def test_empty_dashboard(self):
        overview = DashboardService.get_overview("all_time")

        self.assertEqual(overview["production"]["units_completed"], 0)
        self.assertEqual(overview["rejections"]["total_rejections"], 0)
        self.assertTrue(all(row["count"] == 0 for row in overview["rejections"]["rejections_by_stage"]))
        self.assertTrue(all(row["count"] == 0 for row in overview["wip"]["wip_by_stage"]))

    def test_overview_window(self):
        overview = DashboardService.get_overview("this_week", now=self.now)
        self.assertEqual(overview["window"]["period"], "this_week")
        self.assertEqual(overview["window"]["start"], local(2026, 10, 12).isoformat())
