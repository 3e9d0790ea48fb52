from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables from .env file in project root
# backend/teamfinder/main.py -> backend -> project root
env_path = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(env_path)

from teamfinder.core.config import get_settings  # noqa: E402
from teamfinder.api.routes import router as api_router  # noqa: E402
from teamfinder.api.team_routes import router as team_router  # noqa: E402
from teamfinder.core.exceptions import TeamFinderError  # noqa: E402
from teamfinder.core.logging import get_logger, setup_logging  # noqa: E402

settings = get_settings()
setup_logging().setLevel(settings.log_level)
logger = get_logger("teamfinder.main")

app = FastAPI(title="TeamFinder API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TeamFinderError)
async def teamfinder_error_handler(request: Request, exc: TeamFinderError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.kind}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind, "details": exc.details},
    )


app.include_router(api_router)
app.include_router(team_router)
