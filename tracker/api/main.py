from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tracker.api.deps import SimilarQuery, db_session, similar_query
from tracker.core.normalize import COMPANY, SOURCE, normalizer_for
from tracker.db import crud
from tracker.db.session import ping
from tracker.errors import DuplicateEntity, TrackerError

# -------------------------
# FastAPI setup
# -------------------------
app = FastAPI(title="Job Tracker API", version="0.1.0")
LOGGER = logging.getLogger(__name__)

# CORS (open for now; tighten before public deploy)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    if isinstance(exc, DuplicateEntity):
        content = exc.to_dict()
    else:
        content = {"detail": exc.message}
    return JSONResponse(status_code=exc.status_code, content=content)


# -------------------------
# Pydantic request/response models
# -------------------------
SourceCategory = Literal[
    "job_board",
    "aggregator",
    "company_site",
    "government",
    "recruiter",
    "referral",
    "community",
    "other",
]


COMPANY_NAME_MAX = 255
SOURCE_NAME_MAX = 100


class CompanyIn(BaseModel):
    name: str = Field(min_length=1, max_length=COMPANY_NAME_MAX)
    website: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=255)


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=COMPANY_NAME_MAX)
    website: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=255)


class CompanyOut(BaseModel):
    id: int
    name: str
    normalized_name: str
    website: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # pydantic v2


class SourceIn(BaseModel):
    name: str = Field(min_length=1, max_length=SOURCE_NAME_MAX)
    url: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = Field(None, max_length=500)
    category: Optional[SourceCategory] = None
    region: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None


class SourceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=SOURCE_NAME_MAX)
    url: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = Field(None, max_length=500)
    category: Optional[SourceCategory] = None
    region: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None


class SourceOut(BaseModel):
    id: int
    name: str
    normalized_name: str
    url: Optional[str] = None
    logo_url: Optional[str] = None
    category: Optional[str] = None
    region: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    usage_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # pydantic v2


class CompanyNameIn(BaseModel):
    name: str = Field(min_length=1, max_length=COMPANY_NAME_MAX)


class SourceNameIn(BaseModel):
    name: str = Field(min_length=1, max_length=SOURCE_NAME_MAX)


class SimilarItem(BaseModel):
    id: int
    name: str
    score: float


class SimilarResponse(BaseModel):
    query: str
    normalized_query: str
    items: List[SimilarItem]


# -------------------------
# Helpers
# -------------------------
def _require_canonical_name(kind: str, name: str) -> None:
    """Names must keep at least one letter/digit once normalized."""
    if not normalizer_for(kind)(name):
        raise HTTPException(
            status_code=422,
            detail=f"{kind.capitalize()} name must contain letters or digits",
        )


def _optional_fields(payload: BaseModel) -> dict:
    # Blank strings from forms clear the column.
    fields = payload.model_dump(exclude_unset=True, exclude={"name"})
    return {key: (value if value != "" else None) for key, value in fields.items()}


def _similar(session: Session, kind: str, query: SimilarQuery) -> SimilarResponse:
    matches = crud.find_similar(session, kind, query.name, threshold=query.threshold, limit=query.limit)
    return SimilarResponse(
        query=query.name,
        normalized_query=normalizer_for(kind)(query.name),
        items=[SimilarItem(id=entity.id, name=entity.name, score=round(score, 4)) for entity, score in matches],
    )


# -------------------------
# Routes
# -------------------------
@app.get("/", tags=["meta"])  # small friendly root
async def root():
    return {"message": "Job Tracker API is running"}


@app.get("/healthz", tags=["meta"])  # k8s/Render probes
async def healthz():
    return {"status": "ok", "database": ping()}


# --- companies ---------------------------------------------------------------
@app.get("/companies", response_model=List[CompanyOut], tags=["companies"])
def list_companies(
    q: Optional[str] = Query(None, description="Case-insensitive substring match on name"),
    session: Session = Depends(db_session),
):
    if q:
        return crud.search_entities(session, COMPANY, q)
    return crud.list_entities(session, COMPANY)


@app.get("/companies/similar", response_model=SimilarResponse, tags=["companies"])
def similar_companies(
    query: SimilarQuery = Depends(similar_query),
    session: Session = Depends(db_session),
):
    return _similar(session, COMPANY, query)


@app.get("/companies/{company_id}", response_model=CompanyOut, tags=["companies"])
def get_company(company_id: int, session: Session = Depends(db_session)):
    return crud.get_entity_or_raise(session, COMPANY, company_id)


@app.post("/companies", response_model=CompanyOut, status_code=201, tags=["companies"])
def create_company(payload: CompanyIn, session: Session = Depends(db_session)):
    _require_canonical_name(COMPANY, payload.name)
    return crud.create_entity(session, COMPANY, payload.name, **_optional_fields(payload))


@app.post("/companies/find-or-create", response_model=CompanyOut, tags=["companies"])
def find_or_create_company(payload: CompanyNameIn, session: Session = Depends(db_session)):
    _require_canonical_name(COMPANY, payload.name)
    return crud.find_or_create_entity(session, COMPANY, payload.name)


@app.patch("/companies/{company_id}", response_model=CompanyOut, tags=["companies"])
def update_company(company_id: int, payload: CompanyUpdate, session: Session = Depends(db_session)):
    if payload.name is not None:
        _require_canonical_name(COMPANY, payload.name)
    return crud.update_entity(session, COMPANY, company_id, name=payload.name, **_optional_fields(payload))


# --- sources -----------------------------------------------------------------
@app.get("/sources", response_model=List[SourceOut], tags=["sources"])
def list_sources(
    q: Optional[str] = Query(None, description="Case-insensitive substring match on name"),
    session: Session = Depends(db_session),
):
    if q:
        return crud.search_entities(session, SOURCE, q)
    return crud.list_entities(session, SOURCE)


@app.get("/sources/similar", response_model=SimilarResponse, tags=["sources"])
def similar_sources(
    query: SimilarQuery = Depends(similar_query),
    session: Session = Depends(db_session),
):
    return _similar(session, SOURCE, query)


@app.get("/sources/{source_id}", response_model=SourceOut, tags=["sources"])
def get_source(source_id: int, session: Session = Depends(db_session)):
    return crud.get_entity_or_raise(session, SOURCE, source_id)


@app.post("/sources", response_model=SourceOut, status_code=201, tags=["sources"])
def create_source(payload: SourceIn, session: Session = Depends(db_session)):
    _require_canonical_name(SOURCE, payload.name)
    return crud.create_entity(session, SOURCE, payload.name, **_optional_fields(payload))


@app.post("/sources/find-or-create", response_model=SourceOut, tags=["sources"])
def find_or_create_source(payload: SourceNameIn, session: Session = Depends(db_session)):
    _require_canonical_name(SOURCE, payload.name)
    return crud.find_or_create_entity(session, SOURCE, payload.name)


@app.patch("/sources/{source_id}", response_model=SourceOut, tags=["sources"])
def update_source(source_id: int, payload: SourceUpdate, session: Session = Depends(db_session)):
    if payload.name is not None:
        _require_canonical_name(SOURCE, payload.name)
    return crud.update_entity(session, SOURCE, source_id, name=payload.name, **_optional_fields(payload))


@app.post("/sources/{source_id}/usage", status_code=204, tags=["sources"])
def record_source_usage(source_id: int, session: Session = Depends(db_session)):
    crud.increment_source_usage(session, source_id)
    return Response(status_code=204)


@app.delete("/sources/{source_id}", status_code=204, tags=["sources"])
def delete_source(source_id: int, session: Session = Depends(db_session)):
    crud.deactivate_source(session, source_id)
    LOGGER.info("source deactivated via api id=%s", source_id)
    return Response(status_code=204)
