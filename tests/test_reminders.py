from datetime import date
from decimal import Decimal

from services.reminder_service import day_label

USER = "user-1"
TODAY = date(2024, 3, 10)


def _seed(services, card):
    services.recurring.create(USER, card.id, "Gym", "£30", "Monthly", "Health & Fitness", 10,
                              ref_date=date(2024, 3, 9))
    services.recurring.create(USER, card.id, "Netflix", "£12.99", "Monthly", "Entertainment", 12,
                              ref_date=TODAY)
    services.recurring.create(USER, card.id, "Rent", "£850", "Monthly", "Mortgage/Rent", 30,
                              ref_date=TODAY)


def test_day_label():
    assert day_label(0) == "today"
    assert day_label(1) == "tomorrow"
    assert day_label(5) == "in 5 days"


def test_upcoming_window_soonest_first(services, debit_card):
    _seed(services, debit_card)
    month = services.reminders.upcoming(USER, TODAY, days=30)
    assert [(p.debit.name, p.days_until) for p in month] == [("Gym", 0), ("Netflix", 2), ("Rent", 20)]
    assert month[1].amount == Decimal("12.99")

    week = services.reminders.upcoming(USER, TODAY, days=7)
    assert [p.debit.name for p in week] == ["Gym", "Netflix"]


def test_upcoming_ignores_paused_debits(services, debit_card):
    _seed(services, debit_card)
    gym = services.recurring.get_all(USER)[0]
    services.recurring.toggle_pause(gym.id)
    assert [p.debit.name for p in services.reminders.upcoming(USER, TODAY)] == ["Netflix", "Rent"]


def test_reminders_put_payments_at_risk_first(services, debit_card):
    _seed(services, debit_card)
    reminders = services.reminders.get_reminders(USER, TODAY)
    assert [(r.type, r.title) for r in reminders] == [
        ("payment_at_risk", "Gym may fail today"),
        ("upcoming_payment", "Gym due today"),
        ("upcoming_payment", "Netflix due in 2 days"),
    ]
    assert reminders[0].severity == "warning"
    assert reminders[0].detail.startswith("Insufficient funds.")
    assert reminders[2].detail == "Due on 12 Mar · £12.99 · Entertainment"


def test_funded_card_has_no_risk_warning(services, debit_card):
    services.tx_dao.create(USER, debit_card.id, Decimal("1000"), "2024-03-01", "Salary", "Income")
    _seed(services, debit_card)
    reminders = services.reminders.get_reminders(USER, TODAY)
    assert {r.type for r in reminders} == {"upcoming_payment"}
