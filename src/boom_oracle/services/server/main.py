"""Server service: FastAPI + WebSocket for ticks, predictions and history."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Set

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from boom_oracle import __version__
from boom_oracle.core.config import Config, load_config
from boom_oracle.core.log import get_logger, setup_logging
from boom_oracle.core.types import Analysis, PredictionOutcome, TickSource
from boom_oracle.core.validation import InvalidTickError
from boom_oracle.data.repository import SqlRepository
from boom_oracle.data.store import TickStore
from boom_oracle.db.session import init_db, make_engine, make_session_factory
from boom_oracle.feed.simulator import TickSimulator
from boom_oracle.patterns.index import top_patterns
from boom_oracle.session import AppendResult, TickSession

logger = get_logger(__name__)


class TickIn(BaseModel):
    value: Any


class HistoryIn(BaseModel):
    predicted_value: int = Field(ge=0)
    actual_value: int = Field(ge=0)
    is_correct: bool
    pattern: str = Field(min_length=1)
    confidence: int = Field(ge=0, le=100)
    predicted_range: str


class SettingsIn(BaseModel):
    pattern_length: Optional[int] = None
    confidence_threshold: Optional[float] = None


class Broadcaster:
    """Fan-out of feed ticks to connected WebSocket clients."""

    def __init__(self):
        self.connections: Set[WebSocket] = set()

    async def send(self, message: dict) -> None:
        stale = []
        for ws in list(self.connections):
            try:
                await ws.send_json(message)
            except Exception:
                stale.append(ws)
        for ws in stale:
            self.connections.discard(ws)


def _format_ts(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.isoformat()


def _outcome_to_dict(outcome: PredictionOutcome) -> dict:
    data = outcome.to_dict()
    data["timestamp"] = _format_ts(outcome.timestamp)
    return data


def _append_to_dict(result: AppendResult) -> dict:
    return {
        "value": result.value,
        "source": result.source.value,
        "persisted": result.persisted,
        "outcome": _outcome_to_dict(result.outcome) if result.outcome else None,
    }


def _analysis_to_dict(analysis: Analysis) -> dict:
    return {
        "length": analysis.length,
        "pattern_length": analysis.pattern_length,
        "confidence_threshold": analysis.confidence_threshold,
        "window": list(analysis.window),
        "status": analysis.status.value,
        "prediction": analysis.prediction.to_dict() if analysis.prediction else None,
        "historical_ranges": [b.to_dict() for b in analysis.historical_ranges],
        "predicted_ranges": [b.to_dict() for b in analysis.predicted_ranges],
    }


def _session(request: Request) -> TickSession:
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=500, detail="Session not initialized")
    return session


def _analyze(session: TickSession, pattern_length: Optional[int], confidence: Optional[float]) -> Analysis:
    try:
        return session.analyze(pattern_length, confidence)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def create_app(config: Optional[Config] = None, store: Optional[TickStore] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        config: configuration; ``config/default.yaml`` or defaults if omitted
        store: tick store; a SQL repository on ``storage.database_url`` if omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = config or load_config(Path("config/default.yaml"))
        setup_logging(
            level=cfg.logging.level,
            structured=cfg.logging.structured,
            log_file=Path(cfg.logging.log_file) if cfg.logging.log_file else None,
        )

        tick_store = store
        if tick_store is None:
            engine = make_engine(cfg.storage.database_url)
            init_db(engine)
            tick_store = SqlRepository(make_session_factory(engine))

        session = TickSession.from_config(cfg, tick_store)
        session.load()

        app.state.config = cfg
        app.state.session = session
        app.state.simulator = TickSimulator(cfg.feed)
        app.state.broadcaster = Broadcaster()

        writer = asyncio.create_task(session.run_writer())
        logger.info(f"API server started ({len(session.ticks)} ticks loaded)")
        try:
            yield
        finally:
            await app.state.simulator.stop()
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
            session.close()
            logger.info("API server stopped")

    app = FastAPI(title="Boom Oracle API", version=__version__, lifespan=lifespan)

    @app.get("/health")
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/ticks")
    async def get_ticks(request: Request):
        session = _session(request)
        return {
            "ticks": list(session.ticks),
            "initial_length": session.initial_length,
            "series": session.chart_series(),
        }

    @app.post("/api/ticks")
    async def add_tick(request: Request, body: TickIn):
        session = _session(request)
        try:
            result = await session.submit(body.value, TickSource.MANUAL)
        except InvalidTickError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _append_to_dict(result)

    @app.delete("/api/ticks/all")
    async def delete_ticks(request: Request):
        session = _session(request)
        deleted = await asyncio.to_thread(session.delete_ticks)
        return {"msg": "All ticks deleted successfully", "deleted": deleted}

    @app.get("/api/history")
    async def get_history(request: Request):
        session = _session(request)
        return {
            "history": [_outcome_to_dict(o) for o in session.history],
            "metrics": session.metrics().to_dict(),
        }

    @app.post("/api/history")
    async def add_history(request: Request, body: HistoryIn):
        session = _session(request)
        outcome = PredictionOutcome(**body.model_dump())
        saved = await asyncio.to_thread(session.add_history, outcome)
        return _outcome_to_dict(saved)

    @app.delete("/api/history/all")
    async def delete_history(request: Request):
        session = _session(request)
        deleted = await asyncio.to_thread(session.delete_history)
        return {"msg": "All prediction history deleted successfully", "deleted": deleted}

    @app.get("/api/analysis")
    async def get_analysis(
        request: Request,
        pattern_length: Optional[int] = None,
        confidence: Optional[float] = None,
        top: int = 10,
    ):
        session = _session(request)
        analysis = _analyze(session, pattern_length, confidence)
        data = _analysis_to_dict(analysis)
        index = session.index(analysis.pattern_length)
        data["pattern_count"] = len(index)
        data["top_patterns"] = [
            {
                "pattern": list(e.pattern),
                "occurrences": e.count,
                "avg_next": round(e.avg_next, 2),
                "confidence": round(e.confidence, 2),
            }
            for e in top_patterns(index, top)
        ]
        return data

    @app.get("/api/prediction")
    async def get_prediction(
        request: Request,
        pattern_length: Optional[int] = None,
        confidence: Optional[float] = None,
    ):
        analysis = _analyze(_session(request), pattern_length, confidence)
        return {
            "status": analysis.status.value,
            "window": list(analysis.window),
            "prediction": analysis.prediction.to_dict() if analysis.prediction else None,
            "predicted_ranges": [b.to_dict() for b in analysis.predicted_ranges],
        }

    @app.get("/api/settings")
    async def get_settings(request: Request):
        session = _session(request)
        return {
            "pattern_length": session.pattern_length,
            "confidence_threshold": session.confidence_threshold,
            "allowed_pattern_lengths": session.config.engine.allowed_pattern_lengths,
        }

    @app.put("/api/settings")
    async def update_settings(request: Request, body: SettingsIn):
        session = _session(request)
        try:
            session.configure(body.pattern_length, body.confidence_threshold)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"pattern_length": session.pattern_length, "confidence_threshold": session.confidence_threshold}

    @app.get("/api/metrics")
    async def get_metrics(request: Request):
        return _session(request).metrics().to_dict()

    @app.post("/api/reset")
    async def reset(request: Request):
        await asyncio.to_thread(_session(request).reset)
        return {"msg": "All data deleted"}

    @app.websocket("/ws/ticks")
    async def ticks_ws(websocket: WebSocket):
        await websocket.accept()
        state = websocket.app.state
        broadcaster: Broadcaster = state.broadcaster
        simulator: TickSimulator = state.simulator
        cfg: Config = state.config
        session: TickSession = state.session

        broadcaster.connections.add(websocket)
        await websocket.send_json({"type": "initial", "values": list(simulator.emitted)})

        async def on_tick(value: int) -> None:
            await broadcaster.send({"type": "tick", "value": value})
            if cfg.feed.auto_append:
                await session.submit(value, TickSource.FEED)

        if cfg.feed.enabled and not simulator.running:
            simulator.start(on_tick)

        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            broadcaster.connections.discard(websocket)
            if not broadcaster.connections:
                await simulator.stop()

    return app


app = create_app()


def main():
    """Entry point for the API server."""
    import uvicorn

    config = load_config(Path("config/default.yaml"))
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
