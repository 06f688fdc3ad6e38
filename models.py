import enum
from typing import Dict, List, Optional, Union
from sqlmodel import SQLModel, Field
import datetime
from decimal import Decimal

from settings import settings


class Category(str, enum.Enum):
    FOOD = "food"
    ACCOMMODATION = "accommodation"
    TRANSPORTATION = "transportation"
    ACTIVITIES = "activities"
    SHOPPING = "shopping"
    OTHER = "other"


class TripStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


# ============== Participants ==============
class ParticipantBase(SQLModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None

class Participant(ParticipantBase):
    id: str
    balance: Decimal = Field(default=Decimal("0"))  # derived, recomputed from expenses

# ============== Expenses ==============
class ExpenseBase(SQLModel):
    name: str = ""
    amount: Decimal
    category: Category = Category.OTHER
    date: Optional[datetime.date] = None
    notes: Optional[str] = None

class Expense(ExpenseBase):
    id: str
    # Right side: who paid. A single id, or several ids with optional explicit amounts
    paid_by: Union[str, List[str]]
    payer_amounts: Optional[Dict[str, Decimal]] = None
    # Left side: who shares the cost. Equal split unless split_amounts is given
    split_between: List[str] = Field(default_factory=list)
    split_amounts: Optional[Dict[str, Decimal]] = None

    def has_multiple_payers(self) -> bool:
        return not isinstance(self.paid_by, str)

    def payer_ids(self) -> List[str]:
        if isinstance(self.paid_by, str):
            return [self.paid_by] if self.paid_by else []
        return list(dict.fromkeys(self.paid_by))

    def split_ids(self) -> List[str]:
        return list(dict.fromkeys(self.split_between))

# ============== Settlements ==============
class Settlement(SQLModel):
    from_id: str  # debtor
    to_id: str  # creditor
    amount: Decimal
    settled: bool = False

# ============== Trips / groups ==============
class TripBase(SQLModel):
    name: str
    description: Optional[str] = None
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    status: TripStatus = TripStatus.ACTIVE
    currency: str = Field(default_factory=lambda: settings.default_currency)

class Trip(TripBase):
    id: str
    participants: List[Participant] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)

class TripSummary(SQLModel):
    trip_id: str
    currency: str
    total_spent: Decimal
    expense_count: int
    by_category: Dict[str, Decimal]
    paid_by_participant: Dict[str, Decimal]
    settlement_count: int

class DashboardSummary(SQLModel):
    total_trips: int
    active_trips: int
    total_expenses: int
    trip_friends: int

# ============== Request bodies ==============
class LedgerIn(SQLModel):
    participants: List[Participant]
    expenses: List[Expense] = Field(default_factory=list)

class BalancesIn(SQLModel):
    participants: List[Participant]

class ExpenseCheckIn(SQLModel):
    expense: Expense
    participants: Optional[List[Participant]] = None
