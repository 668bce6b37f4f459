"""Tests for weekly and milestone missions."""

from datetime import date, timedelta

from habit_rank import missions
from habit_rank.missions import (
    MILESTONES,
    Mission,
    days_left_in_week,
    fallback_template,
    get_active_missions,
    get_milestone_mission,
    get_reached_milestones,
    get_week_records,
    get_weekly_mission,
    is_mission_identity,
    milestone_identity,
    select_weekly_template,
    start_of_week,
    week_index,
    week_key,
    weekly_identity,
    weekly_templates,
)
from habit_rank.records import DailyRecord

MONDAY = date(2026, 1, 5)
SUNDAY = date(2026, 1, 11)


def _days(start: date, n: int, habits=2, focus=1, negative=0) -> list[DailyRecord]:
    return [
        DailyRecord((start + timedelta(days=i)).isoformat(), habits, focus, negative)
        for i in range(n)
    ]


def _templates():
    return {t.id: t for t in weekly_templates()}


class TestWeekArithmetic:
    def test_index_constant_within_week(self):
        assert week_index(MONDAY) == week_index(SUNDAY)

    def test_index_rolls_on_monday(self):
        assert week_index(SUNDAY + timedelta(days=1)) == week_index(MONDAY) + 1

    def test_index_steady_across_thursday(self):
        wednesday, thursday = date(2026, 1, 7), date(2026, 1, 8)
        # a Unix-epoch day count // 7 would roll over between these two
        epoch = date(1970, 1, 1)
        assert (wednesday - epoch).days // 7 != (thursday - epoch).days // 7
        assert week_index(wednesday) == week_index(thursday)

    def test_week_key(self):
        assert week_key(MONDAY) == "2026-W02"
        assert week_key(SUNDAY) == "2026-W02"

    def test_week_key_iso_year_boundary(self):
        # Thursday 2026-01-01 belongs to ISO week 1, which starts Monday 2025-12-29
        assert week_key(date(2025, 12, 29)) == "2026-W01"

    def test_start_of_week(self):
        assert start_of_week(date(2026, 1, 8)) == MONDAY

    def test_days_left(self):
        assert days_left_in_week(MONDAY) == 7
        assert days_left_in_week(date(2026, 1, 7)) == 5
        assert days_left_in_week(SUNDAY) == 1

    def test_week_records_filtered(self):
        records = _days(date(2026, 1, 1), 10)
        week = get_week_records(records, date(2026, 1, 8))
        assert [r.date for r in week] == ["2026-01-05", "2026-01-06", "2026-01-07", "2026-01-08"]


class TestTemplateSelection:
    def test_deterministic(self):
        first = select_weekly_template(12, 4)
        second = select_weekly_template(12, 4)
        assert first.id == second.id

    def test_all_templates_available_on_monday(self):
        ids = [select_weekly_template(i, 7).id for i in range(6)]
        assert ids == [t.id for t in weekly_templates()]

    def test_streak_builder_needs_full_week(self):
        for i in range(20):
            assert select_weekly_template(i, 6).id != "streak-builder"

    def test_rotation_wraps_over_achievable(self):
        # five candidates when fewer than 7 days remain
        assert select_weekly_template(5, 6).id == select_weekly_template(0, 6).id

    def test_fallback_when_nothing_achievable(self, monkeypatch):
        monkeypatch.setattr(missions, "weekly_templates", lambda habit_name="Habit": [])
        template = select_weekly_template(3, 2)
        assert template.id == "daily-boost"
        assert template.target == 4
        assert template.xp_reward == 300

    def test_fallback_target_capped(self):
        assert fallback_template(1).target == 2
        assert fallback_template(7).target == 10


class TestTemplateProgress:
    def test_habit_domination(self):
        assert _templates()["habit-domination"].calculate_progress(_days(MONDAY, 3, habits=4)) == 12

    def test_focus_mastery(self):
        assert _templates()["focus-mastery"].calculate_progress(_days(MONDAY, 3, focus=2)) == 6

    def test_clean_week(self):
        records = _days(MONDAY, 3) + _days(MONDAY + timedelta(days=3), 2, negative=1)
        assert _templates()["clean-week"].calculate_progress(records) == 3

    def test_consistency_king(self):
        records = _days(MONDAY, 4) + _days(MONDAY + timedelta(days=4), 1, habits=0, focus=1)
        assert _templates()["consistency-king"].calculate_progress(records) == 4

    def test_balance_caps_each_part(self):
        records = _days(MONDAY, 5, habits=10, focus=1)
        # min(50, 25) + min(5, 15)
        assert _templates()["habit-focus-combo"].calculate_progress(records) == 30

    def test_streak_builder_resets(self):
        records = (
            _days(MONDAY, 2)
            + _days(MONDAY + timedelta(days=2), 1, habits=0, focus=0)
            + _days(MONDAY + timedelta(days=3), 3)
        )
        assert _templates()["streak-builder"].calculate_progress(records) == 3

    def test_clean_week_mentions_habit_name(self):
        template = {t.id: t for t in weekly_templates("Snus")}["clean-week"]
        assert "snus" in template.description


class TestWeeklyMission:
    def test_identity_includes_week(self):
        mission = get_weekly_mission([], MONDAY)
        assert mission.identity == f"weekly-{mission.id}-2026-W02"
        assert mission.type == "weekly"

    def test_same_mission_all_week_when_achievable(self):
        monday = get_weekly_mission([], MONDAY)
        template = select_weekly_template(week_index(MONDAY), 7)
        assert monday.id == template.id

    def test_progress_from_this_week_only(self):
        records = _days(date(2026, 1, 1), 7)
        mission = get_weekly_mission(records, date(2026, 1, 7))
        template = select_weekly_template(week_index(date(2026, 1, 7)), 5)
        this_week = get_week_records(records, date(2026, 1, 7))
        assert mission.progress == template.calculate_progress(this_week)

    def test_next_week_has_new_identity(self):
        this_week = get_weekly_mission([], SUNDAY)
        next_week = get_weekly_mission([], SUNDAY + timedelta(days=1))
        assert this_week.identity != next_week.identity


class TestMission:
    def test_complete_and_remaining(self):
        mission = Mission("x", "X", "", progress=3, target=5, xp_reward=10,
                          type="weekly", category="habit", identity="weekly-x-2026-W02")
        assert not mission.is_complete
        assert mission.remaining == 2
        mission.progress = 7
        assert mission.is_complete
        assert mission.remaining == 0
        assert mission.to_dict()["complete"] is True


class TestIdentities:
    def test_weekly(self):
        assert weekly_identity("clean-week", MONDAY) == "weekly-clean-week-2026-W02"

    def test_milestone(self):
        assert milestone_identity("first-week-warrior", 7) == "milestone-first-week-warrior-target-7"

    def test_is_mission_identity(self):
        assert is_mission_identity("weekly-clean-week-2026-W02")
        assert is_mission_identity("milestone-habit-century-target-100")
        assert not is_mission_identity("starter-spark")


class TestMilestones:
    def test_priority_order(self):
        assert [m.id for m in MILESTONES] == [
            "first-week-warrior",
            "monthly-master",
            "habit-century",
            "focus-apprentice",
            "clean-days",
        ]

    def test_first_milestone_for_empty_log(self):
        mission = get_milestone_mission([], MONDAY)
        assert mission.id == "first-week-warrior"
        assert mission.progress == 0
        assert mission.target == 7
        assert mission.identity == "milestone-first-week-warrior-target-7"
        assert mission.description.startswith("7 days")

    def test_moves_to_monthly_after_week(self):
        records = _days(MONDAY, 7)
        mission = get_milestone_mission(records, SUNDAY)
        assert mission.id == "monthly-master"
        assert mission.progress == 7

    def test_habit_century_after_month(self):
        records = _days(date(2026, 1, 1), 30)
        mission = get_milestone_mission(records, date(2026, 1, 30))
        assert mission.id == "habit-century"
        assert mission.progress == 60

    def test_clean_days_uses_habit_name(self):
        records = _days(date(2026, 1, 1), 30, habits=4, focus=2, negative=1)
        mission = get_milestone_mission(records, date(2026, 1, 30), habit_name="Snus")
        assert mission.id == "clean-days"
        assert mission.title == "Clean Snus Days"
        assert "clean snus days" in mission.description

    def test_none_when_all_reached(self):
        records = _days(date(2026, 1, 1), 30, habits=4, focus=2)
        assert get_milestone_mission(records, date(2026, 1, 30)) is None

    def test_reached_milestones(self):
        records = _days(MONDAY, 7)
        reached = get_reached_milestones(records, SUNDAY)
        assert [m.id for m in reached] == ["first-week-warrior"]
        assert reached[0].is_complete

    def test_reached_excludes_active(self):
        records = _days(MONDAY, 7)
        active = get_milestone_mission(records, SUNDAY)
        assert active.id not in {m.id for m in get_reached_milestones(records, SUNDAY)}

    def test_active_missions(self):
        active = get_active_missions([], MONDAY)
        assert [m.type for m in active] == ["weekly", "milestone"]
