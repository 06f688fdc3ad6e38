import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import FastAPI, HTTPException

from ledger import compute_balances, format_currency, generate_settlements, supported_currencies
from log import configure_logging
from models import BalancesIn, ExpenseCheckIn, LedgerIn, Participant, Settlement, Trip
from settings import settings
from trips import ExpenseValidationError, summarize_trip, validate_expense

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_title)

@app.on_event("startup")
def on_startup():
    configure_logging(settings.log_level)
    logger.info("Starting %s (default currency %s)", settings.app_title, settings.default_currency)

# Friendly format: amounts as strings so no precision is lost on the way out
def participant_out(p: Participant) -> dict:
    return {"id": p.id, "name": p.name, "balance": str(p.balance)}

def settlement_out(s: Settlement) -> dict:
    return {"from": s.from_id, "to": s.to_id, "amount": str(s.amount), "settled": s.settled}

# ========== Health ==========
@app.get("/api")
def health_check():
    return {"status": "healthy", "message": "Backend is running!"}

# ========== Currency endpoints ==========
@app.get("/currencies")
def list_currencies():
    return supported_currencies()

@app.get("/format")
def format_amount(amount: Decimal, currency: Optional[str] = None):
    return {"formatted": format_currency(amount, currency)}

# ========== Balance endpoints ==========
@app.post("/balances")
def balances(payload: LedgerIn):
    participants = compute_balances(payload.participants, payload.expenses)
    return {"participants": [participant_out(p) for p in participants]}

@app.post("/settlements")
def settlements(payload: BalancesIn) -> List[dict]:
    return [settlement_out(s) for s in generate_settlements(payload.participants)]

# ========== Settlement endpoint ==========
@app.post("/settlement")
def settlement(payload: LedgerIn):
    participants = compute_balances(payload.participants, payload.expenses)
    result = {
        "net": {p.id: str(p.balance) for p in participants},
        "settlements": [settlement_out(s) for s in generate_settlements(participants)],
    }
    return result

# ========== Expense validation ==========
@app.post("/expenses/validate")
def check_expense(payload: ExpenseCheckIn):
    try:
        validate_expense(payload.expense, payload.participants)
    except ExpenseValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"valid": True}

# ========== Trip summary ==========
@app.post("/trips/summary")
def trip_summary(trip: Trip):
    summary = summarize_trip(trip)
    return {
        "trip_id": summary.trip_id,
        "currency": summary.currency,
        "total_spent": str(summary.total_spent),
        "total_spent_display": format_currency(summary.total_spent, summary.currency),
        "expense_count": summary.expense_count,
        "by_category": {k: str(v) for k, v in summary.by_category.items()},
        "paid_by_participant": {k: str(v) for k, v in summary.paid_by_participant.items()},
        "settlement_count": summary.settlement_count,
    }

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
