import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from probescan.core.config import load_settings
from probescan.core.engine import run_scan
from probescan.core.http import base_url_resolver
from probescan.models.schemas import ScanRequest, ScanReport

settings = load_settings()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="ProbeScan API", version="0.4.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health():
    return {"status": "ok"}

@app.post("/scan", response_model=ScanReport)
async def start_scan(req: ScanRequest):
    logger.info("scan requested for %s", req.url)
    return await run_scan(
        base_url_resolver(str(req.url)),
        req.admin_token,
        settings=settings,
        session_cookies=req.session_cookies,
    )
