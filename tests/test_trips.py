from decimal import Decimal

import pytest

from models import Expense, Participant, Trip, TripStatus
from trips import (
    ExpenseNotFoundError,
    ExpenseValidationError,
    ParticipantNotFoundError,
    add_expense,
    add_participant,
    dashboard_summary,
    delete_expense,
    remove_participant,
    summarize_trip,
    update_expense,
    update_participant_balances,
    validate_expense,
)


def balances_of(trip):
    return {p.id: p.balance for p in trip.participants}


def test_update_participant_balances_returns_new_trip(trip):
    updated = update_participant_balances(trip)
    assert balances_of(updated) == {"A": Decimal("8500"), "B": Decimal("-6500"), "C": Decimal("-2000")}
    assert all(p.balance == 0 for p in trip.participants)
    assert updated.currency == "INR"


def test_add_expense_recomputes(trip, dinner):
    dinner.id = "e3"
    updated = add_expense(trip, dinner)
    assert len(updated.expenses) == 3
    assert len(trip.expenses) == 2
    assert balances_of(updated)["A"] == Decimal("8700")


def test_add_expense_rejects_invalid(trip):
    bad = Expense(id="e9", amount="100", paid_by="A", split_between=["A", "Z"])
    with pytest.raises(ExpenseValidationError, match="Unknown participants: Z"):
        add_expense(trip, bad)


def test_update_and_delete_expense(trip):
    changed = Expense(id="e2", name="Taxi", amount="3000", paid_by="C", split_between=["B", "C"])
    updated = update_expense(trip, changed)
    assert balances_of(updated) == {"A": Decimal("10000"), "B": Decimal("-6500"), "C": Decimal("-3500")}

    removed = delete_expense(updated, "e1")
    assert [e.id for e in removed.expenses] == ["e2"]
    assert balances_of(removed) == {"A": Decimal("0"), "B": Decimal("-1500"), "C": Decimal("1500")}


def test_unknown_expense(trip, dinner):
    dinner.id = "missing"
    with pytest.raises(ExpenseNotFoundError):
        update_expense(trip, dinner)
    with pytest.raises(ExpenseNotFoundError):
        delete_expense(trip, "missing")


def test_add_participant(trip):
    updated = add_participant(trip, Participant(id="D", name="Priya", balance=Decimal("42")))
    assert balances_of(updated)["D"] == Decimal("0")
    with pytest.raises(ValueError):
        add_participant(updated, Participant(id="D", name="Priya again"))


def test_remove_participant_scrubs_expenses():
    trip = Trip(
        id="g1",
        name="Flat",
        participants=[Participant(id="A", name="A"), Participant(id="B", name="B"), Participant(id="C", name="C")],
        expenses=[
            Expense(id="e1", amount="90", paid_by="B", split_between=["A", "B", "C"]),
            Expense(id="e2", amount="100", paid_by=["A", "B"], payer_amounts={"A": "40", "B": "60"},
                    split_between=["A", "B"], split_amounts={"A": "50", "B": "50"}),
        ],
    )
    updated = remove_participant(trip, "B")

    e1, e2 = updated.expenses
    assert e1.paid_by == "A"
    assert e1.split_between == ["A", "C"]
    assert e2.paid_by == ["A"]
    assert e2.payer_amounts == {"A": Decimal("40")}
    assert e2.split_amounts == {"A": Decimal("50")}
    assert [p.id for p in updated.participants] == ["A", "C"]
    assert balances_of(updated) == {"A": Decimal("35"), "C": Decimal("-45")}
    # input trip untouched
    assert trip.expenses[0].paid_by == "B"


def test_remove_unknown_participant(trip):
    with pytest.raises(ParticipantNotFoundError):
        remove_participant(trip, "nobody")


@pytest.mark.parametrize(
    "kwargs, message",
    [
        (dict(amount="0", paid_by="A", split_between=["A"]), "positive"),
        (dict(amount="10", paid_by=[], split_between=["A"]), "payer"),
        (dict(amount="10", paid_by=["A", "B"], payer_amounts={"A": "5", "B": "4"}, split_between=["A"]),
         "paid amounts"),
        (dict(amount="10", paid_by="A", split_between=[]), "split with"),
        (dict(amount="10", paid_by="A", split_between=["A", "B"], split_amounts={"A": "3", "B": "3"}),
         "split amount"),
    ],
)
def test_validate_expense_errors(kwargs, message):
    with pytest.raises(ExpenseValidationError, match=message):
        validate_expense(Expense(id="x", **kwargs))


def test_validate_expense_tolerates_rounding(participants):
    e = Expense(id="x", amount="100", paid_by="A", split_between=["A", "B", "C"],
                split_amounts={"A": "33.33", "B": "33.33", "C": "33.33"})
    validate_expense(e, participants)


def test_summarize_trip(trip):
    summary = summarize_trip(trip)
    assert summary.total_spent == Decimal("19500")
    assert summary.expense_count == 2
    assert summary.by_category == {"accommodation": Decimal("15000"), "transportation": Decimal("4500")}
    assert summary.paid_by_participant == {"A": Decimal("15000"), "B": Decimal("0"), "C": Decimal("4500")}
    assert summary.settlement_count == 2


def test_dashboard_summary(trip):
    other = Trip(id="t2", name="Manali Trek", status=TripStatus.COMPLETED,
                 participants=[Participant(id="A", name="Shiva"), Participant(id="D", name="Priya")])
    summary = dashboard_summary([trip, other])
    assert summary.total_trips == 2
    assert summary.active_trips == 1
    assert summary.total_expenses == 2
    assert summary.trip_friends == 4
