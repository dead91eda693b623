from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agridoctor.core.database import get_db
from agridoctor.core.stats import visit_counter
from agridoctor.models.models import User
from agridoctor.schema.stats import StatsResponse

stats_router = APIRouter()


@stats_router.get("/", response_model=StatsResponse)
def get_stats(db: Session = Depends(get_db)):
    return {**visit_counter.snapshot(), "users": db.query(User).count()}
