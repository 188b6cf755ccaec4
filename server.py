from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from agents.rubric_scorer import RubricScorer
from agents.rubric import RubricConfig
from tools.audit_sink import build_audit_sink
from tools.export import result_to_dict
from tools.llm_client import LLMClient, UpstreamBillingRequired, UpstreamRateLimited, UpstreamUnavailable
from utils.config import load_config
from utils.logging import get_logger, setup_logging


API_VERSION = "0.1.0"

RATE_LIMIT_MESSAGE = "Rate limits exceeded, please try again later."
BILLING_MESSAGE = "Payment required, please add funds to your workspace."
UNAVAILABLE_MESSAGE = "AI gateway error"


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    scorer = app.state.scorer
    if scorer is not None:
        await scorer.aclose()
        logger.info("Scorer closed")


app = FastAPI(title="Prompt Rubric Scorer", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

_config = load_config()
setup_logging(_config.log_level)
logger = get_logger("server")
app.state.start_time = time.time()
app.state.scorer = None


class ScoreReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    prompt: str = ""
    model_answer: Optional[str] = Field(default="", alias="modelAnswer")


class ScoreResp(BaseModel):
    score: Union[int, float]
    goal_score: Union[int, float]
    context_score: Union[int, float]
    source_score: Union[int, float]
    expectation_score: Union[int, float]
    feedback: str
    enhanced_prompt: str


class HealthResp(BaseModel):
    status: str
    uptime_seconds: float
    evaluations: int


class VersionResp(BaseModel):
    version: str
    api: str


def get_scorer() -> RubricScorer:
    scorer = app.state.scorer
    if scorer is None:
        config = load_config()
        scorer = RubricScorer(
            config=RubricConfig(feedback_max_chars=config.feedback_max_chars),
            llm=LLMClient(config),
            audit_sink=build_audit_sink(config),
        )
        app.state.scorer = scorer
    return scorer


@app.get("/health", response_model=HealthResp)
async def health() -> HealthResp:
    scorer = app.state.scorer
    return HealthResp(
        status="ok",
        uptime_seconds=round(time.time() - app.state.start_time, 3),
        evaluations=scorer.telemetry.count("evaluations") if scorer else 0,
    )


@app.get("/version", response_model=VersionResp)
async def version() -> VersionResp:
    return VersionResp(version=API_VERSION, api="v1")


@app.post("/api/score-prompt", response_model=ScoreResp)
async def score_prompt(req: ScoreReq) -> dict:
    if not req.prompt.strip():
        raise HTTPException(status_code=400, detail="prompt must not be empty")

    scorer = get_scorer()
    try:
        result = await scorer.evaluate(req.prompt, req.model_answer or "")
    except UpstreamRateLimited:
        raise HTTPException(status_code=429, detail=RATE_LIMIT_MESSAGE)
    except UpstreamBillingRequired:
        raise HTTPException(status_code=402, detail=BILLING_MESSAGE)
    except UpstreamUnavailable as e:
        logger.error(f"Scoring failed: {e}")
        raise HTTPException(status_code=500, detail=UNAVAILABLE_MESSAGE)
    return result_to_dict(result)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
