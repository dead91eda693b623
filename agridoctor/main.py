"""AgriDoctor API.

Run with:
    uvicorn agridoctor.main:app --reload --port 5000
"""
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from agridoctor.core import config
from agridoctor.core.database import Base, engine
from agridoctor.core.errors import register_exception_handlers
from agridoctor.core.logger import configure_logging
from agridoctor.core.stats import visit_counter
from agridoctor.models import models  # noqa: F401  registers tables on Base
from agridoctor.routes.category_routes import category_router
from agridoctor.routes.diseases_routers import diseases_router
from agridoctor.routes.message_routes import comment_router, feedback_router, message_router, review_router
from agridoctor.routes.stats_router import stats_router
from agridoctor.routes.user_routes import auth_router, user_router

configure_logging()

app = FastAPI(title="AgriDoctor API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

Base.metadata.create_all(bind=engine)


@app.middleware("http")
async def track_visit(request: Request, call_next):
    if not request.url.path.startswith(config.UPLOAD_URL_PREFIX):
        client = request.client.host if request.client else "unknown"
        visit_counter.record_visit(client)
    return await call_next(request)


app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(user_router, prefix="/users", tags=["users"])
app.include_router(category_router, prefix="/categories", tags=["categories"])
app.include_router(diseases_router, prefix="/diseases", tags=["diseases"])
app.include_router(feedback_router, prefix="/feedback", tags=["feedback"])
app.include_router(review_router, prefix="/reviews", tags=["reviews"])
app.include_router(comment_router, prefix="/comments", tags=["comments"])
app.include_router(message_router, prefix="/messages", tags=["messages"])
app.include_router(stats_router, prefix="/stats", tags=["stats"])

# Uploaded images are served back under the same prefix stored on records
os.makedirs(config.UPLOAD_DIR, exist_ok=True)
app.mount(config.UPLOAD_URL_PREFIX, StaticFiles(directory=config.UPLOAD_DIR), name="uploads")


@app.get("/")
def read_root():
    return {"message": "Welcome to AgriDoctor API"}
