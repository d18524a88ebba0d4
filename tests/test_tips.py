"""Tests for daily tips and the reflection prompt."""

from datetime import date

from coach.core.tips import TIPS, daily_tip, reflection_messages


class TestDailyTip:
    def test_rotates_by_day_of_month(self):
        assert daily_tip(date(2025, 1, 7)) == TIPS[0]
        assert daily_tip(date(2025, 1, 8)) == TIPS[1]

    def test_same_day_same_tip(self):
        assert daily_tip(date(2025, 3, 15)) == daily_tip(date(2025, 4, 15))


class TestReflectionMessages:
    def test_with_feeling(self):
        messages = reflection_messages("energised")
        assert [role for role, _ in messages] == ["assistant", "user"]
        assert "I'm feeling energised today" in messages[1][1]

    def test_without_feeling(self):
        assert reflection_messages()[1] == ("user", "I would like to reflect on my day.")
