import os

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from . import analytics
from .models import (
    AnalyticsOut,
    DefaultLabelUpdate,
    LabelCreate,
    LabelPerformanceOut,
    LabelsOut,
    PlacementPointOut,
    SaveSessionRequest,
    SessionStatusOut,
    SummaryLabelsUpdate,
    SummaryOut,
    SummaryPageOut,
    ThrowCreate,
)
from .settings import PracticeSettings
from .storage import DEFAULT_PAGE_SIZE, PracticeStore, StoreError, SummaryRecord
from .tracker import SessionTracker

app = FastAPI(title="Cornhole Practice", version="0.1.0")
store = PracticeStore(db_path=os.getenv("CORNHOLE_DB_PATH", "cornhole.db"))
settings = PracticeSettings(store)
tracker = SessionTracker(store=store, settings=settings)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def _summary_out(record: SummaryRecord) -> SummaryOut:
    placement = analytics.session_placement(record)
    return SummaryOut(
        id=record.id,
        saved_at=record.saved_at,
        points_per_round=record.points_per_round,
        total_bags_in_hole=record.total_bags_in_hole,
        bags_on_board=record.bags_on_board,
        bags_off_board=record.bags_off_board,
        four_baggers=record.four_baggers,
        bag_type=record.bag_type,
        throwing_style=record.throwing_style,
        in_hole_percentage=placement["in_hole"],
        on_board_percentage=placement["on_board"],
        off_board_percentage=placement["off_board"],
    )


def _history_snapshot() -> list[SummaryRecord]:
    return store.snapshot_summaries()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/session", response_model=SessionStatusOut)
def session_status() -> SessionStatusOut:
    return SessionStatusOut(**tracker.status())


@app.post("/session/new", response_model=SessionStatusOut)
def new_session() -> SessionStatusOut:
    return SessionStatusOut(**tracker.setup_new_session())


@app.post("/session/throw", response_model=SessionStatusOut)
def record_throw(payload: ThrowCreate) -> SessionStatusOut:
    return SessionStatusOut(**tracker.record_throw(payload.result))


@app.post("/session/undo", response_model=SessionStatusOut)
def undo_throw() -> SessionStatusOut:
    return SessionStatusOut(**tracker.undo_last_throw())


@app.post("/session/discard", response_model=SessionStatusOut)
def discard_session() -> SessionStatusOut:
    return SessionStatusOut(**tracker.discard_session())


@app.post("/session/save", response_model=SummaryOut)
def save_session(payload: SaveSessionRequest) -> SummaryOut:
    try:
        record = tracker.save_session(bag_type=payload.bag_type, throwing_style=payload.throwing_style)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _summary_out(record)


@app.get("/summaries", response_model=SummaryPageOut)
def list_summaries(page: int = Query(default=0, ge=0)) -> SummaryPageOut:
    records = store.list_summaries(page=page, page_size=DEFAULT_PAGE_SIZE)
    total = store.count_summaries()
    return SummaryPageOut(
        page=page,
        page_size=DEFAULT_PAGE_SIZE,
        total=total,
        has_more=total > (page + 1) * DEFAULT_PAGE_SIZE,
        summaries=[_summary_out(r) for r in records],
    )


@app.get("/summaries/{summary_id}", response_model=SummaryOut)
def get_summary(summary_id: str) -> SummaryOut:
    record = store.get_summary(summary_id)
    if record is None:
        raise HTTPException(status_code=404, detail="session not found")
    return _summary_out(record)


@app.patch("/summaries/{summary_id}", response_model=SummaryOut)
def update_summary(summary_id: str, payload: SummaryLabelsUpdate) -> SummaryOut:
    # An explicit null throwing_style clears it; an omitted one leaves it alone.
    clear_style = "throwing_style" in payload.model_fields_set and payload.throwing_style is None
    record = store.update_summary_labels(
        summary_id,
        bag_type=payload.bag_type,
        throwing_style=payload.throwing_style,
        clear_throwing_style=clear_style,
    )
    if record is None:
        raise HTTPException(status_code=404, detail="session not found")
    return _summary_out(record)


@app.delete("/summaries/{summary_id}")
def delete_summary(summary_id: str) -> dict[str, str]:
    deleted = store.delete_summary(summary_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="session not found")
    return {"deleted": summary_id}


@app.get("/analytics", response_model=AnalyticsOut)
def analytics_overview() -> AnalyticsOut:
    return AnalyticsOut(**analytics.overview(_history_snapshot()))


@app.get("/analytics/placements", response_model=list[PlacementPointOut])
def analytics_placements() -> list[PlacementPointOut]:
    return [PlacementPointOut(**point) for point in analytics.placement_series(_history_snapshot())]


@app.get("/analytics/compare", response_model=list[LabelPerformanceOut])
def analytics_compare(by: str = "bag_type") -> list[LabelPerformanceOut]:
    try:
        rows = analytics.compare_by(_history_snapshot(), field=by)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [LabelPerformanceOut(**row) for row in rows]


@app.get("/settings/bag-types", response_model=LabelsOut)
def bag_types() -> LabelsOut:
    return LabelsOut(labels=settings.bag_types(), default=settings.default_bag_type())


@app.post("/settings/bag-types", response_model=LabelsOut)
def add_bag_type(payload: LabelCreate) -> LabelsOut:
    try:
        labels = settings.add_bag_type(payload.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return LabelsOut(labels=labels, default=settings.default_bag_type())


@app.put("/settings/bag-types/default", response_model=LabelsOut)
def set_default_bag_type(payload: DefaultLabelUpdate) -> LabelsOut:
    if payload.name is None:
        raise HTTPException(status_code=400, detail="a default bag type is required")
    try:
        settings.set_default_bag_type(payload.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return LabelsOut(labels=settings.bag_types(), default=settings.default_bag_type())


@app.delete("/settings/bag-types/{name}", response_model=LabelsOut)
def remove_bag_type(name: str) -> LabelsOut:
    try:
        labels = settings.remove_bag_type(name)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="bag type not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return LabelsOut(labels=labels, default=settings.default_bag_type())


@app.get("/settings/throwing-styles", response_model=LabelsOut)
def throwing_styles() -> LabelsOut:
    return LabelsOut(labels=settings.throwing_styles(), default=settings.default_throwing_style())


@app.post("/settings/throwing-styles", response_model=LabelsOut)
def add_throwing_style(payload: LabelCreate) -> LabelsOut:
    try:
        labels = settings.add_throwing_style(payload.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return LabelsOut(labels=labels, default=settings.default_throwing_style())


@app.put("/settings/throwing-styles/default", response_model=LabelsOut)
def set_default_throwing_style(payload: DefaultLabelUpdate) -> LabelsOut:
    try:
        settings.set_default_throwing_style(payload.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return LabelsOut(labels=settings.throwing_styles(), default=settings.default_throwing_style())


@app.delete("/settings/throwing-styles/{name}", response_model=LabelsOut)
def remove_throwing_style(name: str) -> LabelsOut:
    try:
        labels = settings.remove_throwing_style(name)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="throwing style not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return LabelsOut(labels=labels, default=settings.default_throwing_style())
