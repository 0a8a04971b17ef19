from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from roulette_engine.config import settings
from roulette_engine.core.controller import TableController
from roulette_engine.core.exceptions import InvalidBetError, InvalidPocketError
from roulette_engine.core.layout import bet_targets
from roulette_engine.core.logger import get_logger

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit.enabled)

logger = get_logger("api")

router = APIRouter()

# ==================== Request Models ====================

class ChipRequest(BaseModel):
    chip: int

class PlaceBetRequest(BaseModel):
    category: str
    pockets: List[Union[int, str]] = []
    index: Optional[int] = None

# ==================== Helpers ====================

def get_table(request: Request) -> TableController:
    return request.app.state.table


def rejected(reason: str):
    """Ledger refusals: the request was well formed but the table said no."""
    raise HTTPException(status_code=409, detail=reason)

# ==================== Table ====================

@router.get("/table")
async def table_state(request: Request):
    return get_table(request).snapshot()

@router.post("/table/chip")
async def select_chip(request: Request, data: ChipRequest):
    table = get_table(request)
    if not table.select_chip(data.chip):
        rejected(f"Chip {data.chip} cannot be selected now")
    return table.snapshot()

@router.post("/table/bets")
async def place_bet(request: Request, data: PlaceBetRequest):
    table = get_table(request)
    try:
        targets = bet_targets(table.wheel, data.category, data.pockets, data.index)
    except (InvalidBetError, InvalidPocketError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not table.place_bet(data.category, targets):
        rejected("Bet not accepted: betting is closed or the balance is too low")
    return table.snapshot()

@router.delete("/table/bets")
async def clear_bets(request: Request):
    table = get_table(request)
    if not table.clear_bets():
        rejected("Betting is closed")
    return table.snapshot()

@router.post("/table/bets/undo")
async def undo_bet(request: Request):
    table = get_table(request)
    if not table.undo_last_bet():
        rejected("Nothing to undo")
    return table.snapshot()

@router.post("/table/bets/repeat")
async def repeat_bets(request: Request):
    table = get_table(request)
    if not table.repeat_bets():
        rejected("Last round's bets cannot be repeated")
    return table.snapshot()

@router.post("/table/spin")
@limiter.limit(settings.rate_limit.game_requests)
async def spin(request: Request):
    table = get_table(request)
    result = await table.spin()
    if result is None:
        rejected("No spin allowed: place a bet during the betting phase first")
    return {**result.to_dict(), "table": table.snapshot()}

@router.post("/table/new-game")
async def new_game(request: Request):
    table = get_table(request)
    await table.new_game()
    return table.snapshot()

# ==================== History & Stats ====================

@router.get("/history")
async def history(request: Request):
    table = get_table(request)
    return {"entries": [entry.to_dict() for entry in table.history.entries]}

@router.get("/stats")
async def stats(request: Request):
    return get_table(request).stats.summary()
