"""
Trip / group level operations. Every edit returns a new Trip with balances
recomputed from its expenses; the trip passed in is never modified.
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, List, Optional

from ledger import (
    EPSILON,
    calculate_total_expenses,
    compute_balances,
    expense_contributions,
    generate_settlements,
    round2,
    to_dec,
)
from models import DashboardSummary, Expense, Participant, Trip, TripStatus, TripSummary

logger = logging.getLogger(__name__)


class ExpenseValidationError(ValueError):
    pass


class ExpenseNotFoundError(LookupError):
    pass


class ParticipantNotFoundError(LookupError):
    pass


def _copy_trip(trip: Trip, **changes) -> Trip:
    data = trip.model_dump()
    data.update(changes)
    return Trip.model_validate(data)

def update_participant_balances(trip: Trip) -> Trip:
    participants = compute_balances(trip.participants, trip.expenses)
    return _copy_trip(trip, participants=[p.model_dump() for p in participants])

def validate_expense(expense: Expense, participants: Optional[List[Participant]] = None) -> None:
    """Raise ExpenseValidationError when the expense cannot be booked as given."""
    amount = to_dec(expense.amount)
    if amount <= 0:
        raise ExpenseValidationError("Expense amount must be positive.")

    payers = expense.payer_ids()
    if not payers:
        raise ExpenseValidationError("Please select at least one payer.")
    if len(payers) > 1 and expense.payer_amounts is not None:
        paid = sum((to_dec(v) for v in expense.payer_amounts.values()), Decimal("0"))
        if abs(paid - amount) > EPSILON:
            raise ExpenseValidationError(
                f"Total paid amounts ({paid}) do not match the expense amount ({amount})."
            )

    if not expense.split_ids():
        raise ExpenseValidationError("Please select at least one participant to split with.")
    if expense.split_amounts is not None:
        owed = sum((to_dec(v) for v in expense.split_amounts.values()), Decimal("0"))
        if abs(owed - amount) > EPSILON:
            raise ExpenseValidationError(
                f"Total split amount ({owed}) does not match the expense amount ({amount})."
            )

    if participants is not None:
        known = {p.id for p in participants}
        unknown = sorted((set(payers) | set(expense.split_ids())) - known)
        if unknown:
            raise ExpenseValidationError(f"Unknown participants: {', '.join(unknown)}")

def add_expense(trip: Trip, expense: Expense) -> Trip:
    validate_expense(expense, trip.participants)
    logger.info("Adding expense %s (%s) to trip %s", expense.id, expense.amount, trip.id)
    expenses = [e.model_dump() for e in trip.expenses] + [expense.model_dump()]
    return update_participant_balances(_copy_trip(trip, expenses=expenses))

def update_expense(trip: Trip, expense: Expense) -> Trip:
    if not any(e.id == expense.id for e in trip.expenses):
        raise ExpenseNotFoundError(f"Expense {expense.id} not found in trip {trip.id}")
    validate_expense(expense, trip.participants)
    expenses = [expense.model_dump() if e.id == expense.id else e.model_dump() for e in trip.expenses]
    return update_participant_balances(_copy_trip(trip, expenses=expenses))

def delete_expense(trip: Trip, expense_id: str) -> Trip:
    if not any(e.id == expense_id for e in trip.expenses):
        raise ExpenseNotFoundError(f"Expense {expense_id} not found in trip {trip.id}")
    expenses = [e.model_dump() for e in trip.expenses if e.id != expense_id]
    return update_participant_balances(_copy_trip(trip, expenses=expenses))

def add_participant(trip: Trip, participant: Participant) -> Trip:
    if any(p.id == participant.id for p in trip.participants):
        raise ValueError(f"Participant {participant.id} already belongs to trip {trip.id}")
    participants = [p.model_dump() for p in trip.participants]
    participants.append({**participant.model_dump(), "balance": Decimal("0")})
    return update_participant_balances(_copy_trip(trip, participants=participants))

def _scrub_expense(expense: Expense, participant_id: str, remaining: List[Participant]) -> dict:
    data = expense.model_dump()
    data["split_between"] = [pid for pid in expense.split_between if pid != participant_id]
    if isinstance(expense.paid_by, str):
        if expense.paid_by == participant_id:
            # single payer left the trip: hand the expense to the first remaining participant
            data["paid_by"] = remaining[0].id if remaining else ""
    else:
        data["paid_by"] = [pid for pid in expense.paid_by if pid != participant_id]
    for key in ("payer_amounts", "split_amounts"):
        if data[key] is not None:
            data[key] = {pid: v for pid, v in data[key].items() if pid != participant_id}
    return data

def remove_participant(trip: Trip, participant_id: str) -> Trip:
    """
    Drop a participant and remove every reference to them from the expenses,
    then recompute balances for whoever is left.
    """
    if not any(p.id == participant_id for p in trip.participants):
        raise ParticipantNotFoundError(f"Participant {participant_id} not found in trip {trip.id}")
    remaining = [p for p in trip.participants if p.id != participant_id]
    expenses = [_scrub_expense(e, participant_id, remaining) for e in trip.expenses]
    logger.info("Removing participant %s from trip %s", participant_id, trip.id)
    return update_participant_balances(
        _copy_trip(trip, participants=[p.model_dump() for p in remaining], expenses=expenses)
    )

def summarize_trip(trip: Trip) -> TripSummary:
    by_category = defaultdict(lambda: Decimal("0"))
    paid = {p.id: Decimal("0") for p in trip.participants}
    for e in trip.expenses:
        by_category[e.category.value] += to_dec(e.amount)
        for pid, amt in expense_contributions(e).items():
            if pid in paid:
                paid[pid] += amt

    participants = compute_balances(trip.participants, trip.expenses)
    return TripSummary(
        trip_id=trip.id,
        currency=trip.currency,
        total_spent=round2(calculate_total_expenses(trip.expenses)),
        expense_count=len(trip.expenses),
        by_category={k: round2(v) for k, v in by_category.items()},
        paid_by_participant={k: round2(v) for k, v in paid.items()},
        settlement_count=len(generate_settlements(participants)),
    )

def dashboard_summary(trips: Iterable[Trip]) -> DashboardSummary:
    trips = list(trips)
    friends = {p.id for t in trips for p in t.participants}
    return DashboardSummary(
        total_trips=len(trips),
        active_trips=sum(1 for t in trips if t.status == TripStatus.ACTIVE),
        total_expenses=sum(len(t.expenses) for t in trips),
        trip_friends=len(friends),
    )
