import logging
from typing import AsyncIterator, Dict, List, Optional
from datetime import datetime
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import config
from core.errors import PlanningError
from core.events import Event
from core.llm import create_model_adapter
from core.models import list_models
from core.search import WebSearch
from core.types import AggregateResult, ResearchTask
from orchestration.planner import default_assignments, duplicate_task_ids, resolve_location_name
from orchestration.supervisor import ResearchSupervisor
from storage.memory import SavedResearchStore, memory_store

logger = logging.getLogger(__name__)

# Initialized lazily so importing the app never needs API keys
supervisor = None


def get_supervisor() -> ResearchSupervisor:
    global supervisor
    if supervisor is None:
        supervisor = ResearchSupervisor(
            adapter=create_model_adapter(config),
            search=WebSearch(
                api_key=config.tavily_api_key,
                max_results=config.search_max_results,
                search_depth=config.search_depth,
            ),
            synthesis_model=config.synthesis_model,
            planner_model=config.planner_model,
            timeout_seconds=config.model_timeout_seconds,
            default_models=config.default_models,
        )
    return supervisor


def get_store() -> SavedResearchStore:
    return memory_store


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Identity comes from the auth layer in front of this service."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


# Request/Response Models
class QueryRequest(BaseModel):
    prompt: str = Field(..., min_length=1, description="The research question")
    models: Optional[List[str]] = Field(default=None, description="Model identifiers; defaults apply when omitted")


class TaskModel(BaseModel):
    id: str = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    prompt: str = Field(..., min_length=1, description="Directive prompt for the assigned models")

    def to_task(self) -> ResearchTask:
        return ResearchTask(id=self.id, title=self.title, description=self.description, prompt=self.prompt)


class QueryTasksRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tasks: List[TaskModel] = Field(..., min_length=1)
    task_assignments: Dict[str, List[str]] = Field(default_factory=dict, alias="taskAssignments")
    original_query: str = Field(..., min_length=1, alias="originalQuery")

    @field_validator("tasks")
    @classmethod
    def task_ids_unique(cls, tasks: List[TaskModel]) -> List[TaskModel]:
        duplicates = duplicate_task_ids(tasks)
        if duplicates:
            raise ValueError(f"Duplicate task ids: {', '.join(duplicates)}")
        return tasks


class QuestionsRequest(BaseModel):
    query: str = Field(..., min_length=1)


class ResearchPlanRequest(BaseModel):
    query: str = Field(..., min_length=1)
    answers: List[str] = Field(default_factory=list)
    models: Optional[List[str]] = Field(default=None, description="If given, a default round-robin assignment is returned")


class IdeasRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location: Optional[str] = None
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    industry: Optional[str] = None

    # Globe pick; used when no free-text location is given
    city: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)


class ModelResponseModel(BaseModel):
    name: str
    text: Optional[str] = None
    error: Optional[str] = None


class SaveResearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    responses: List[ModelResponseModel] = Field(default_factory=list)
    synthesis: Optional[str] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Research Orchestrator API starting (provider: %s)", config.llm_provider)
    if not config.validate():
        logger.warning("No model backend key configured; model calls will fail")
    yield
    logger.info("Research Orchestrator API shutting down")


app = FastAPI(
    title="Multi-Model Research Orchestrator",
    description="""
    Fans a research question out to several LLMs at once and merges their answers:
    - **Query**: stream every model's answer live, then a synthesized report
    - **Clarify & Plan**: split a question into complementary research tasks
    - **Task Query**: run each task on its assigned models, then synthesize across tasks
    - **Collection**: keep finished runs per user
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _event_stream(events: AsyncIterator[Event]) -> StreamingResponse:
    async def frames() -> AsyncIterator[str]:
        async for event in events:
            yield event.to_sse()

    return StreamingResponse(
        frames(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


# API Endpoints
@app.get("/")
async def root():
    return {
        "name": "Multi-Model Research Orchestrator",
        "version": "1.0.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "llm_provider": config.llm_provider,
        "gateway_configured": bool(config.ai_gateway_api_key),
        "anthropic_configured": bool(config.anthropic_api_key),
        "openai_configured": bool(config.openai_api_key),
        "tavily_configured": bool(config.tavily_api_key),
    }


@app.get("/api/models")
async def get_models():
    return {
        "models": [m.to_dict() for m in list_models()],
        "defaults": config.default_models,
        "synthesis_model": config.synthesis_model,
    }


@app.post("/api/query")
async def query(request: QueryRequest, supervisor: ResearchSupervisor = Depends(get_supervisor)):
    """Stream every model's answer, then the synthesis, as server-sent events."""
    return _event_stream(supervisor.stream_query(request.prompt, request.models))


@app.post("/api/query-tasks")
async def query_tasks(request: QueryTasksRequest, supervisor: ResearchSupervisor = Depends(get_supervisor)):
    """Stream a task-based run as server-sent events."""
    tasks = [t.to_task() for t in request.tasks]
    return _event_stream(
        supervisor.stream_task_query(tasks, request.task_assignments, request.original_query)
    )


@app.post("/api/questions")
async def questions(request: QuestionsRequest, supervisor: ResearchSupervisor = Depends(get_supervisor)):
    return {"questions": await supervisor.generate_clarifying_questions(request.query)}


@app.post("/api/research-plan")
async def research_plan(request: ResearchPlanRequest, supervisor: ResearchSupervisor = Depends(get_supervisor)):
    """
    Generate a research plan.

    Planning failures return 502 so the client can retry or go back to
    the clarifying step; they never fall back to a plain query.
    """
    try:
        tasks = await supervisor.generate_research_plan(request.query, request.answers)
    except PlanningError as e:
        raise HTTPException(status_code=502, detail=str(e))

    body = {"tasks": [t.to_dict() for t in tasks]}
    if request.models is not None:
        body["assignments"] = default_assignments(tasks, request.models)
    return body


@app.post("/api/ideas")
async def ideas(request: IdeasRequest, supervisor: ResearchSupervisor = Depends(get_supervisor)):
    """Suggest research topics; a picked place (city/country or lat/lng) tailors them."""
    location = request.location or resolve_location_name(
        request.city, request.country, request.lat, request.lng
    )
    try:
        suggestions = await supervisor.generate_ideas(
            location=location,
            job_title=request.job_title,
            industry=request.industry,
        )
    except PlanningError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"ideas": suggestions, "location": location}


@app.get("/api/collection")
async def list_collection(
    user_id: str = Depends(get_user_id),
    store: SavedResearchStore = Depends(get_store),
):
    return {"research": [r.to_dict() for r in store.list_for_user(user_id)]}


@app.post("/api/collection", status_code=201)
async def save_to_collection(
    request: SaveResearchRequest,
    user_id: str = Depends(get_user_id),
    store: SavedResearchStore = Depends(get_store),
):
    research = store.save(
        user_id=user_id,
        query=request.query,
        responses=[AggregateResult(name=r.name, text=r.text, error=r.error) for r in request.responses],
        synthesis=request.synthesis,
    )
    return research.to_dict()


@app.delete("/api/collection/{research_id}")
async def delete_from_collection(
    research_id: str,
    user_id: str = Depends(get_user_id),
    store: SavedResearchStore = Depends(get_store),
):
    if not store.delete(user_id, research_id):
        raise HTTPException(status_code=404, detail="Research not found")
    return {"status": "deleted", "id": research_id}


# Run with: uvicorn api.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.api_host, port=config.api_port)
