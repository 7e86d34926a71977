# main.py
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import init_db
from errors import register_exception_handlers
from routes import auth, batches, courses, email, enrollments, health, lessons, pages, progress, quizzes, seed

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="CourseMaster")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(courses.router)
app.include_router(lessons.router)
app.include_router(batches.router)
app.include_router(enrollments.router)
app.include_router(progress.router)
app.include_router(quizzes.router)
app.include_router(email.router)
app.include_router(seed.router)
app.include_router(health.router)
app.include_router(pages.router)


@app.on_event("startup")
async def startup_event():
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET environment variable is not set")
    await init_db()
    logger.info(f"CourseMaster started in {settings.APP_ENV} mode")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
