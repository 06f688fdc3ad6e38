import logging
from typing import Dict, List, Optional, Union
from decimal import Decimal, ROUND_HALF_UP

from models import Expense, Participant, Settlement
from settings import settings

logger = logging.getLogger(__name__)

EPSILON = Decimal("0.01")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "AUD": "A$",
    "CAD": "C$",
    "JPY": "¥",
    "CNY": "¥",
    "SGD": "S$",
    "AED": "د.إ",
}

ZERO_DECIMAL_CURRENCIES = {"JPY", "CNY"}


def to_dec(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))

def round2(d: Decimal) -> Decimal:
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def is_settled(d: Decimal) -> bool:
    return abs(d) < EPSILON

def _with_balance(p: Participant, balance: Decimal) -> Participant:
    data = p.model_dump()
    data["balance"] = balance
    return Participant.model_validate(data)

def expense_contributions(expense: Expense) -> Dict[str, Decimal]:
    """
    Right side of an expense: how much each payer put in.
    Single payer -> full amount.
    Several payers with payer_amounts -> the mapped amounts (missing ids pay 0).
    Several payers without payer_amounts -> even split across the payers.
    """
    amount = to_dec(expense.amount)
    payers = expense.payer_ids()
    if not payers:
        return {}
    if not expense.has_multiple_payers():
        return {payers[0]: amount}
    if expense.payer_amounts is not None:
        return {pid: to_dec(expense.payer_amounts.get(pid, 0)) for pid in payers}
    per = amount / len(payers)
    return {pid: per for pid in payers}

def expense_shares(expense: Expense) -> Dict[str, Decimal]:
    """
    Left side of an expense: how much each participant owes.
    split_amounts present -> the mapped amounts (missing ids owe 0).
    Otherwise the amount is divided evenly across split_between.
    Empty split_between -> nobody owes anything.
    """
    amount = to_dec(expense.amount)
    split = expense.split_ids()
    if not split:
        return {}
    if expense.split_amounts is not None:
        return {pid: to_dec(expense.split_amounts.get(pid, 0)) for pid in split}
    per = amount / len(split)
    return {pid: per for pid in split}

def compute_net(participants: List[Participant], expenses: List[Expense]) -> Dict[str, Decimal]:
    """
    returns net: participant_id -> net (positive means they are owed money; negative means they owe)
    Ids that are not participants are ignored.
    """
    net = {p.id: Decimal("0") for p in participants}
    for e in expenses:
        for pid, paid in expense_contributions(e).items():
            if pid in net:
                net[pid] += paid
        shares = expense_shares(e)
        if not shares:
            logger.warning("Expense %s has nobody to split between, skipping its shares", e.id)
        for pid, owed in shares.items():
            if pid in net:
                net[pid] -= owed
    # round nets
    for k in net:
        net[k] = round2(net[k])
    return net

def compute_balances(participants: List[Participant], expenses: List[Expense]) -> List[Participant]:
    """Return new participants whose balance is recomputed from expenses. Inputs are left untouched."""
    net = compute_net(participants, expenses)
    logger.debug("Computed balances for %d participants over %d expenses", len(participants), len(expenses))
    return [_with_balance(p, net[p.id]) for p in participants]

def generate_settlements(participants: List[Participant]) -> List[Settlement]:
    """
    Given participants with computed balances, produce transfers (debtor -> creditor)
    that bring every balance to zero, using the greedy two-pointer walk over
    balances sorted ascending. Residual imbalance (balances not summing to zero)
    is left unsettled.
    """
    working = [[p.id, to_dec(p.balance)] for p in participants]
    working.sort(key=lambda x: x[1])

    settlements = []
    i = 0
    j = len(working) - 1
    while i < j:
        d_id, d_bal = working[i]
        c_id, c_bal = working[j]
        if is_settled(d_bal):
            i += 1
            continue
        if is_settled(c_bal):
            j -= 1
            continue
        if d_bal > 0 or c_bal < 0:
            # no debtor or no creditor left on one side
            break

        amount = min(abs(d_bal), c_bal)
        if amount > 0:
            settlements.append(Settlement(from_id=d_id, to_id=c_id, amount=round2(amount)))
            working[i][1] = d_bal + amount
            working[j][1] = c_bal - amount

        if is_settled(working[i][1]):
            i += 1
        if is_settled(working[j][1]):
            j -= 1

    logger.debug("Generated %d settlements for %d participants", len(settlements), len(participants))
    return settlements

def format_currency(amount, currency_code: Optional[str] = None) -> str:
    """
    Format amount for display. JPY and CNY have no decimals, every other
    currency has exactly two. Unknown codes are printed as-is before the amount.
    """
    code = (currency_code or settings.default_currency).upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    value = to_dec(amount)
    if code in ZERO_DECIMAL_CURRENCIES:
        value = value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    else:
        value = round2(value)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value)}"

def supported_currencies() -> Dict[str, str]:
    return dict(CURRENCY_SYMBOLS)

def calculate_total_expenses(expenses: List[Expense]) -> Decimal:
    return sum((to_dec(e.amount) for e in expenses), Decimal("0"))

def calculate_total_paid(participant_id: str, expenses: List[Expense]) -> Decimal:
    total = Decimal("0")
    for e in expenses:
        total += expense_contributions(e).get(participant_id, Decimal("0"))
    return round2(total)

def calculate_total_share(participant_id: str, expenses: List[Expense]) -> Decimal:
    total = Decimal("0")
    for e in expenses:
        total += expense_shares(e).get(participant_id, Decimal("0"))
    return round2(total)

def get_participant_name(participant_id: str, participants: List[Participant]) -> str:
    for p in participants:
        if p.id == participant_id:
            return p.name
    return "Unknown"

def describe_payers(paid_by: Union[str, List[str]], participants: List[Participant]) -> str:
    ids = [paid_by] if isinstance(paid_by, str) else paid_by
    return ", ".join(get_participant_name(pid, participants) for pid in ids)
