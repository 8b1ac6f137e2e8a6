"""Tests for recurring service date calculations and template management."""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from finsight.errors import InvalidDateRange, InvalidFrequency
from finsight.models.recurring import Frequency, TransactionType
from finsight.schemas.recurring import RecurringTransactionCreate, RecurringTransactionUpdate
from finsight.services.recurring_service import (
    calculate_next_occurrence,
    clean_tags,
    create_recurring_transaction,
    get_recurring_transactions,
    get_upcoming,
    reactivate,
    toggle_recurring_transaction,
    update_recurring_transaction,
)


class TestCalculateNextOccurrence:
    """Test next occurrence date calculations."""

    def test_daily(self):
        """Daily should add one day."""
        result = calculate_next_occurrence(datetime(2024, 1, 15), Frequency.daily)
        assert result == datetime(2024, 1, 16)

    def test_daily_month_rollover(self):
        result = calculate_next_occurrence(datetime(2024, 2, 29), Frequency.daily)
        assert result == datetime(2024, 3, 1)

    def test_weekly(self):
        """Weekly should add 7 days."""
        result = calculate_next_occurrence(datetime(2024, 1, 29), Frequency.weekly)
        assert result == datetime(2024, 2, 5)

    def test_monthly_normal(self):
        """Monthly should add one month."""
        result = calculate_next_occurrence(datetime(2024, 1, 15), Frequency.monthly)
        assert result == datetime(2024, 2, 15)

    def test_monthly_year_rollover(self):
        """Monthly in December should roll to January."""
        result = calculate_next_occurrence(datetime(2024, 12, 15), Frequency.monthly)
        assert result == datetime(2025, 1, 15)

    def test_monthly_end_of_month_clamps(self):
        """Monthly on the 31st should land on the last day of a shorter month."""
        result = calculate_next_occurrence(datetime(2024, 1, 31), Frequency.monthly)
        assert result == datetime(2024, 2, 29)

    def test_monthly_anchor_day_restored(self):
        """With an anchor day the schedule returns to the 31st after February."""
        feb = calculate_next_occurrence(datetime(2024, 1, 31), Frequency.monthly, anchor_day=31)
        mar = calculate_next_occurrence(feb, Frequency.monthly, anchor_day=31)
        apr = calculate_next_occurrence(mar, Frequency.monthly, anchor_day=31)
        assert feb == datetime(2024, 2, 29)
        assert mar == datetime(2024, 3, 31)
        assert apr == datetime(2024, 4, 30)

    def test_monthly_without_anchor_drifts(self):
        feb = calculate_next_occurrence(datetime(2024, 1, 31), Frequency.monthly)
        assert calculate_next_occurrence(feb, Frequency.monthly) == datetime(2024, 3, 29)

    def test_yearly(self):
        """Yearly should add one year."""
        result = calculate_next_occurrence(datetime(2024, 1, 15), Frequency.yearly)
        assert result == datetime(2025, 1, 15)

    def test_yearly_leap_day(self):
        """Yearly on Feb 29 should land on Feb 28 in non-leap years."""
        result = calculate_next_occurrence(datetime(2024, 2, 29), Frequency.yearly, anchor_day=29)
        assert result == datetime(2025, 2, 28)

    def test_yearly_leap_day_returns_to_29th(self):
        current = datetime(2024, 2, 29)
        for _ in range(4):
            current = calculate_next_occurrence(current, Frequency.yearly, anchor_day=29)
        assert current == datetime(2028, 2, 29)

    def test_preserves_time_of_day(self):
        result = calculate_next_occurrence(datetime(2024, 1, 15, 9, 30), Frequency.weekly)
        assert result == datetime(2024, 1, 22, 9, 30)

    def test_accepts_plain_string(self):
        assert calculate_next_occurrence(datetime(2024, 1, 1), "monthly") == datetime(2024, 2, 1)

    @pytest.mark.parametrize("frequency", ["biweekly", "Monthly", "", None])
    def test_unknown_frequency_raises(self, frequency):
        """Unknown frequencies must fail instead of returning the input."""
        with pytest.raises(InvalidFrequency):
            calculate_next_occurrence(datetime(2024, 1, 1), frequency)

    def test_invalid_frequency_is_value_error(self):
        with pytest.raises(ValueError):
            calculate_next_occurrence(datetime(2024, 1, 1), "hourly")

    def test_invalid_anchor_day(self):
        with pytest.raises(ValueError):
            calculate_next_occurrence(datetime(2024, 1, 1), Frequency.monthly, anchor_day=32)

    @pytest.mark.parametrize("frequency", list(Frequency))
    def test_always_strictly_advances(self, frequency):
        """Every date over two years moves strictly forward, with or without anchor."""
        current = datetime(2023, 1, 1, 8, 0)
        while current < datetime(2025, 1, 1):
            assert calculate_next_occurrence(current, frequency) > current
            assert calculate_next_occurrence(current, frequency, anchor_day=current.day) > current
            current += timedelta(days=1)


class TestCleanTags:

    def test_strips_and_dedupes(self):
        assert clean_tags([" rent ", "rent", "", "home"]) == ["rent", "home"]

    def test_none(self):
        assert clean_tags(None) == []


class TestTemplateManagement:
    """Test creating, listing and editing templates."""

    def test_create_sets_cursor_to_start(self, db_session):
        data = RecurringTransactionCreate(
            name="Salary",
            type=TransactionType.income,
            amount=Decimal("3000"),
            category="Salary",
            frequency=Frequency.monthly,
            start_date=datetime(2024, 3, 25),
            tags=["work", "work"],
        )
        template = create_recurring_transaction(db_session, "owner-1", data)

        assert template.next_occurrence == datetime(2024, 3, 25)
        assert template.is_active is True
        assert template.last_processed is None
        assert template.owner_id == "owner-1"
        assert template.tags == ["work"]

    def test_list_scoped_to_owner(self, db_session, template_factory):
        template_factory(owner_id="a", name="Rent")
        template_factory(owner_id="b", name="Gym")

        templates = get_recurring_transactions(db_session, "a")
        assert [t.name for t in templates] == ["Rent"]

    def test_list_filters_active(self, db_session, template_factory):
        template_factory(name="On")
        template_factory(name="Off", is_active=False)

        assert [t.name for t in get_recurring_transactions(db_session, "local", is_active=True)] == ["On"]
        assert [t.name for t in get_recurring_transactions(db_session, "local", is_active=False)] == ["Off"]
        assert len(get_recurring_transactions(db_session, "local")) == 2

    def test_list_sorted_by_next_occurrence(self, db_session, template_factory):
        template_factory(name="Later", start_date=datetime(2024, 5, 1))
        template_factory(name="Sooner", start_date=datetime(2024, 2, 1))

        names = [t.name for t in get_recurring_transactions(db_session, "local")]
        assert names == ["Sooner", "Later"]

    def test_upcoming_window(self, db_session, template_factory):
        now = datetime(2024, 1, 1)
        template_factory(name="Soon", start_date=datetime(2024, 1, 10))
        template_factory(name="Far", start_date=datetime(2024, 6, 1))
        template_factory(name="Paused", start_date=datetime(2024, 1, 5), is_active=False)

        upcoming = get_upcoming(db_session, "local", days=30, now=now)
        assert [t.name for t in upcoming] == ["Soon"]

    def test_frequency_change_keeps_cursor(self, db_session, sample_recurring):
        updated = update_recurring_transaction(
            db_session,
            sample_recurring,
            RecurringTransactionUpdate(frequency=Frequency.weekly)
        )
        assert updated.frequency == Frequency.weekly
        assert updated.next_occurrence == datetime(2024, 1, 1)

    def test_end_date_before_start_rejected(self, db_session, sample_recurring):
        with pytest.raises(InvalidDateRange):
            update_recurring_transaction(
                db_session,
                sample_recurring,
                RecurringTransactionUpdate(end_date=datetime(2023, 12, 31))
            )
        assert sample_recurring.end_date is None

    def test_null_tags_ignored(self, db_session, sample_recurring):
        updated = update_recurring_transaction(
            db_session,
            sample_recurring,
            RecurringTransactionUpdate(tags=None, category="Streaming")
        )
        assert updated.tags == ["subscription"]
        assert updated.category == "Streaming"

    def test_update_can_clear_end_date(self, db_session, template_factory):
        template = template_factory(end_date=datetime(2024, 12, 31))
        updated = update_recurring_transaction(
            db_session, template, RecurringTransactionUpdate(end_date=None)
        )
        assert updated.end_date is None

    def test_update_deactivates(self, db_session, sample_recurring):
        updated = update_recurring_transaction(
            db_session, sample_recurring, RecurringTransactionUpdate(is_active=False)
        )
        assert updated.is_active is False


class TestReactivation:
    """Test the reactivation policy for paused templates."""

    def test_stale_cursor_moves_to_today(self, template_factory):
        template = template_factory(is_active=False, start_date=datetime(2023, 1, 1))
        reactivate(template, now=datetime(2024, 6, 15, 14, 0))

        assert template.is_active is True
        assert template.next_occurrence == datetime(2024, 6, 15)

    def test_future_cursor_unchanged(self, template_factory):
        template = template_factory(is_active=False, start_date=datetime(2024, 7, 1, 9, 0))
        reactivate(template, now=datetime(2024, 6, 15))

        assert template.next_occurrence == datetime(2024, 7, 1, 9, 0)

    def test_expired_template_cannot_be_reactivated(self, template_factory):
        template = template_factory(is_active=False, end_date=datetime(2024, 1, 31))

        with pytest.raises(ValueError):
            reactivate(template, now=datetime(2024, 2, 1))
        assert template.is_active is False

    def test_toggle_round_trip(self, db_session, sample_recurring):
        now = datetime(2024, 3, 10)
        paused = toggle_recurring_transaction(db_session, sample_recurring, now=now)
        assert paused.is_active is False
        assert paused.next_occurrence == datetime(2024, 1, 1)

        resumed = toggle_recurring_transaction(db_session, paused, now=now)
        assert resumed.is_active is True
        assert resumed.next_occurrence == datetime(2024, 3, 10)
