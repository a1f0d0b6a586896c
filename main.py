# main.py
import uuid
from time import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from app.scripts.logging_config import setup_logging, get_logger, set_request_id

# 1) logging first
setup_logging(json_fmt=settings.LOG_JSON)
logger = get_logger(__name__)

# 2) oracle configuration check (requests still start; selections will report the error)
if settings.ORACLE_PROVIDER == "openai" and not settings.OPENAI_API_KEY:
    logger.warning("OPENAI_API_KEY not set. Match searches will fail with a configuration error.")
elif settings.ORACLE_PROVIDER == "gemini" and not settings.GOOGLE_API_KEY:
    logger.warning("GOOGLE_API_KEY not set. Match searches will fail with a configuration error.")
else:
    logger.info("Oracle provider=%s", settings.ORACLE_PROVIDER)

# 3) FastAPI app
app = FastAPI(title="Campus Lost & Found Matching API")

# 4) request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    set_request_id(rid)

    start = time()
    path = request.url.path
    method = request.method
    client_ip = getattr(request.client, 'host', '-') if request.client else '-'
    logger.info("REQ start %s %s ip=%s", method, path, client_ip)

    status = 'NA'
    try:
        response = await call_next(request)
        status = response.status_code
        response.headers["X-Request-ID"] = rid
        return response
    finally:
        duration = (time() - start) * 1000
        logger.info("REQ end %s %s status=%s %.1fms", method, path, status, duration)

# 5) CORS for the dashboard front-end
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "https://localhost:3000",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 6) routers
from app.api import reports, matching

app.include_router(reports.router)
app.include_router(matching.router)

# 7) endpoints
@app.get("/")
def root():
    return {"message": "Campus lost & found matching", "routes": [
        "/reports/lost",
        "/reports/found",
        "/matching/session",
        "/matching/{session_id}",
        "/matching/{session_id}/select",
        "/matching/{session_id}/dismiss",
        "/matching/{session_id}/notify/{lost_id}",
    ]}
