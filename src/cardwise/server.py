import logging
import time
from contextlib import asynccontextmanager
from zoneinfo import ZoneInfoNotFoundError

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from cardwise.application.config import load_timezone
from cardwise.application.due import select_due
from cardwise.application.scheduler import compute_next_state
from cardwise.application.utils.dates import now_ms
from cardwise.consts import VERSION
from cardwise.domain.constants import MAX_TIMESTAMP_MS
from cardwise.domain.errors import CorruptRecordError, InvalidOutcome
from cardwise.infrastructure.codecs import decode_card, encode_card

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cardwise.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"cardwise server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("cardwise server shutting down...")


app = FastAPI(
    title="cardwise",
    description="Stateless SM-2 scheduling API.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


# Cards travel in their persisted camelCase form
class ScheduleRequest(BaseModel):
    card: dict
    outcome: int | str
    now: int | None = Field(default=None, ge=0, le=MAX_TIMESTAMP_MS)  # server clock if omitted
    timezone: str = "UTC"


class DueRequest(BaseModel):
    cards: list[dict] = Field(default_factory=list)
    now: int | None = Field(default=None, ge=0, le=MAX_TIMESTAMP_MS)
    timezone: str = "UTC"


def _tz(name: str):
    try:
        return load_timezone(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Unknown timezone: {name}") from e


def _decode(raw: dict, index: int = 0):
    try:
        return decode_card(str(raw.get("id", index)), raw)
    except CorruptRecordError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.post("/schedule")
async def schedule(req: ScheduleRequest):
    """
    Compute a card's next scheduling state after a review.
    """
    tz = _tz(req.timezone)
    card = _decode(req.card)
    now = req.now if req.now is not None else now_ms()

    try:
        updated = compute_next_state(card, req.outcome, now, tz)
    except InvalidOutcome as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    logger.info(f"Scheduled {card.id}: interval {updated.interval} day(s)")
    return {"card": encode_card(updated)}


@app.post("/due")
async def due(req: DueRequest):
    """
    Filter cards down to those due at `now`, preserving order.
    """
    tz = _tz(req.timezone)
    cards = [_decode(raw, i) for i, raw in enumerate(req.cards)]
    now = req.now if req.now is not None else now_ms()
    return {"cards": [encode_card(c) for c in select_due(cards, now, tz)]}
