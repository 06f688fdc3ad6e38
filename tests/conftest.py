import pytest

from models import Expense, Participant, Trip


@pytest.fixture
def participants():
    """Three participants, nobody owes anything yet."""
    return [
        Participant(id="A", name="Shiva"),
        Participant(id="B", name="Anu"),
        Participant(id="C", name="Rahul"),
    ]


@pytest.fixture
def dinner():
    """A paid 300 for everyone, equal split."""
    return Expense(id="e1", name="Dinner", amount="300", category="food", paid_by="A", split_between=["A", "B", "C"])


@pytest.fixture
def trip(participants, dinner):
    """Goa trip with a hotel paid by A and a taxi paid by C."""
    return Trip(
        id="t1",
        name="Goa Beach Vacation",
        currency="INR",
        participants=participants,
        expenses=[
            Expense(id="e1", name="Hotel", amount="15000", category="accommodation",
                    paid_by="A", split_between=["A", "B", "C"]),
            Expense(id="e2", name="Taxi", amount="4500", category="transportation",
                    paid_by="C", split_between=["A", "B", "C"]),
        ],
    )
