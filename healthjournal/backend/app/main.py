from __future__ import annotations

import json
import logging
import os
import random
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sqlalchemy import Boolean, Column, DateTime, Integer, String, create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .checkins import CheckIn, checkin_from_document, to_utc
from .quick_stats_engine import DEFAULT_PERIOD_DAYS, calculate_quick_stats
from .streak_engine import calculate_streak
from .summary_engine import generate_summary
from .symptom_engine import analyze_symptoms
from .trend_engine import DEFAULT_TREND_DAYS, analyze_trend

APP_VERSION = "1.0.0"
REPO_ROOT = Path(__file__).resolve().parents[3]
load_dotenv(REPO_ROOT / ".env")

LOG_LEVEL = (os.getenv("HEALTHJOURNAL_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def resolve_db_path() -> str:
    db_env = (os.getenv("HEALTHJOURNAL_DB_PATH") or os.getenv("DB_PATH") or "").strip()
    db_path = Path(db_env) if db_env else (REPO_ROOT / "healthjournal.db")
    if not db_path.is_absolute():
        db_path = REPO_ROOT / db_path
    return str(db_path)


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


DB_PATH = resolve_db_path()
DATABASE_URL = f"sqlite:///{DB_PATH}"
BAD_DAY_AVG_SEVERITY = env_float("HEALTHJOURNAL_BAD_DAY_AVG", 6.0)
BAD_DAY_MAX_SEVERITY = env_float("HEALTHJOURNAL_BAD_DAY_MAX", 7.0)

engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


class CheckInRecord(Base):
    __tablename__ = "checkins"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    timestamp = Column(DateTime, index=True, nullable=False)
    structured_json = Column(String, nullable=False, default="{}")
    raw_transcript = Column(String, nullable=False, default="manual entry")
    flagged_for_doctor = Column(Boolean, default=False, nullable=False)
    is_demo = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AnalysisResponse(BaseModel):
    success: bool = True
    data: dict


class SeedDemoResponse(BaseModel):
    user_id: str
    inserted: int
    removed: int


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", DB_PATH)
    yield


app = FastAPI(title="Health Journal Analysis API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_dev_mode() -> bool:
    value = os.getenv("HEALTHJOURNAL_DEV_MODE", "").strip().lower()
    alt = os.getenv("DEV_MODE", "").strip().lower()
    return value in {"1", "true", "yes"} or alt in {"1", "true", "yes"}


def record_to_document(record: CheckInRecord) -> dict:
    return {
        "userId": record.user_id,
        "timestamp": record.timestamp,
        "structured": json.loads(record.structured_json or "{}"),
        "flaggedForDoctor": record.flagged_for_doctor,
        "rawTranscript": record.raw_transcript,
    }


def to_storage_time(value: datetime) -> datetime:
    # SQLite keeps naive datetimes; everything stored is UTC
    return to_utc(value).replace(tzinfo=None)


def fetch_checkins(
    user_id: str,
    db: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[CheckIn]:
    query = db.query(CheckInRecord).filter(CheckInRecord.user_id == user_id)
    if start is not None:
        query = query.filter(CheckInRecord.timestamp >= to_storage_time(start))
    if end is not None:
        query = query.filter(CheckInRecord.timestamp <= to_storage_time(end))
    records = query.order_by(CheckInRecord.timestamp.desc()).all()
    return [checkin_from_document(record_to_document(record)) for record in records]


@app.get("/health")
def health() -> dict:
    db_status = "ok"
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        db_status = "error"
    return {
        "status": "ok",
        "version": APP_VERSION,
        "db": db_status,
        "dev_mode": is_dev_mode(),
    }


@app.get("/meta")
def meta() -> dict:
    return {"version": APP_VERSION, "dev_mode": is_dev_mode(), "db_path": DB_PATH}


@app.get("/analysis/{user_id}/symptoms", response_model=AnalysisResponse)
def symptoms_analysis(user_id: str, db: Session = Depends(get_db)) -> AnalysisResponse:
    logger.info("Fetching symptoms analysis for user %s", user_id)
    analysis = analyze_symptoms(fetch_checkins(user_id, db))
    logger.info(
        "Symptoms analysis completed for user %s: %s symptoms over %s check-ins",
        user_id,
        len(analysis["symptoms"]),
        analysis["totalCheckins"],
    )
    return AnalysisResponse(data=analysis)


@app.get("/analysis/{user_id}/trends/{symptom}", response_model=AnalysisResponse)
def symptom_trend(
    user_id: str,
    symptom: str,
    days: int = Query(DEFAULT_TREND_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
) -> AnalysisResponse:
    now = utc_now()
    logger.info("Fetching %s-day trend of %s for user %s", days, symptom, user_id)
    checkins = fetch_checkins(user_id, db, start=now - timedelta(days=days), end=now)
    trend = analyze_trend(checkins, symptom, days, now)
    if trend is None:
        raise HTTPException(
            status_code=404,
            detail="No numeric data found for this symptom in the specified time period",
        )
    return AnalysisResponse(data=trend)


@app.get("/analysis/{user_id}/streak", response_model=AnalysisResponse)
def streak(user_id: str, db: Session = Depends(get_db)) -> AnalysisResponse:
    logger.info("Fetching streak for user %s", user_id)
    return AnalysisResponse(data=calculate_streak(fetch_checkins(user_id, db), utc_now()))


@app.get("/analysis/{user_id}/quick-stats", response_model=AnalysisResponse)
def quick_stats(
    user_id: str,
    days: int = Query(DEFAULT_PERIOD_DAYS, ge=1, le=90),
    db: Session = Depends(get_db),
) -> AnalysisResponse:
    now = utc_now()
    logger.info("Fetching %s-day quick stats for user %s", days, user_id)
    # two full periods of UTC dates, starting at midnight
    window_start = datetime.combine(
        now.date() - timedelta(days=2 * days - 1),
        datetime.min.time(),
        tzinfo=timezone.utc,
    )
    checkins = fetch_checkins(user_id, db, start=window_start)
    return AnalysisResponse(data=calculate_quick_stats(checkins, days, now))


@app.get("/analysis/{user_id}/summary", response_model=AnalysisResponse)
def doctor_summary(
    user_id: str,
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    flagged_only: bool = Query(False),
    db: Session = Depends(get_db),
) -> AnalysisResponse:
    start = to_utc(start_date)
    end = to_utc(end_date)
    if start > end:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    logger.info(
        "Generating summary for user %s from %s to %s (flagged_only=%s)",
        user_id,
        start.isoformat(),
        end.isoformat(),
        flagged_only,
    )
    summary = generate_summary(
        fetch_checkins(user_id, db, start=start, end=end),
        start,
        end,
        flagged_only=flagged_only,
        bad_day_avg_threshold=BAD_DAY_AVG_SEVERITY,
        bad_day_max_threshold=BAD_DAY_MAX_SEVERITY,
    )
    return AnalysisResponse(data=summary)


DEMO_SYMPTOMS = {
    "headache": lambda rng: {"severity": rng.randint(2, 8), "location": "forehead"},
    "fatigue": lambda rng: rng.randint(3, 9),
    "nausea": lambda rng: rng.random() < 0.5,
    "mood": lambda rng: rng.choice(["good", "okay", "bad", "tired"]),
}
DEMO_ACTIVITIES = ["walking", "yoga", "work", "gardening"]
DEMO_TRIGGERS = ["stress", "poor sleep", "caffeine", "weather"]


def clear_demo_rows(user_id: str, db: Session) -> int:
    removed = (
        db.query(CheckInRecord)
        .filter(CheckInRecord.user_id == user_id, CheckInRecord.is_demo.is_(True))
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed


def build_demo_records(user_id: str, now: datetime, days: int = 21) -> List[CheckInRecord]:
    rng = random.Random(f"{user_id}:{now.date().isoformat()}")
    records = []
    for offset in range(days, 0, -1):
        if rng.random() < 0.2:
            continue
        timestamp = to_storage_time(now) - timedelta(days=offset, hours=rng.randint(0, 6))
        names = rng.sample(sorted(DEMO_SYMPTOMS), k=rng.randint(1, 3))
        structured = {
            "symptoms": {name: DEMO_SYMPTOMS[name](rng) for name in names},
            "activities": rng.sample(DEMO_ACTIVITIES, k=rng.randint(0, 2)),
            "triggers": rng.sample(DEMO_TRIGGERS, k=rng.randint(0, 2)),
            "notes": "",
        }
        records.append(CheckInRecord(
            user_id=user_id,
            timestamp=timestamp,
            structured_json=json.dumps(structured),
            raw_transcript="demo entry",
            flagged_for_doctor=rng.random() < 0.15,
            is_demo=True,
        ))
    return records


@app.post("/dev/seed_demo/{user_id}", response_model=SeedDemoResponse)
def seed_demo_data(user_id: str, db: Session = Depends(get_db)) -> SeedDemoResponse:
    if not is_dev_mode():
        raise HTTPException(status_code=404, detail="Not found")
    removed = clear_demo_rows(user_id, db)
    records = build_demo_records(user_id, utc_now())
    db.add_all(records)
    db.commit()
    logger.info("Seeded %s demo check-ins for user %s", len(records), user_id)
    return SeedDemoResponse(user_id=user_id, inserted=len(records), removed=removed)
