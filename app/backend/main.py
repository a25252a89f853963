from __future__ import annotations

import asyncio
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from fsm_core.errors import DuplicateNodeError, UnknownNodeError

from .engine import InMemoryPlaybackEngine, frame_payload


app = FastAPI(title="FSM Replay API", version="0.1.0")

# Allow local dev frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

engine = InMemoryPlaybackEngine()


class ClockRequest(BaseModel):
    t: float = Field(ge=0)


class NodeRequest(BaseModel):
    id: Optional[str] = None
    label: Optional[str] = None


class PositionRequest(BaseModel):
    x: float
    y: float


class TransitionRequest(BaseModel):
    source: str
    dest: str
    trigger: str


class ControlRequest(BaseModel):
    cmd: Literal["reset"]


@app.get("/fsm/graph")
async def get_graph():
    return engine.graph()


@app.get("/fsm/state")
async def get_state():
    return jsonable_encoder(engine.state())


@app.post("/fsm/clock")
async def post_clock(body: ClockRequest):
    try:
        frame = await engine.tick(body.t)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return frame_payload(frame)


@app.post("/fsm/nodes")
async def post_node(body: NodeRequest):
    try:
        frame = await engine.add_node(body.id, label=body.label)
    except DuplicateNodeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return frame_payload(frame)


@app.post("/fsm/nodes/{node_id}/position")
async def post_position(node_id: str, body: PositionRequest):
    try:
        frame = await engine.move_node(node_id, body.x, body.y)
    except UnknownNodeError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return frame_payload(frame)


@app.post("/fsm/transitions")
async def post_transition(body: TransitionRequest):
    try:
        added, frame = await engine.add_transition(body.source, body.dest, body.trigger)
    except UnknownNodeError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"added": added, **frame_payload(frame)}


@app.post("/fsm/control")
async def post_control(body: ControlRequest):
    frame = await engine.reset()
    return {"ok": True, **frame_payload(frame)}


@app.websocket("/fsm/stream")
async def ws_stream(ws: WebSocket):
    await ws.accept()

    # Send the current frame so late joiners start in sync
    await ws.send_json({"type": "init", **frame_payload(engine.session.frame())})

    q = engine.subscribe()
    try:
        while True:
            try:
                frame = await q.get()
            except asyncio.CancelledError:
                break
            await ws.send_json({"type": "frame", **frame_payload(frame)})
    except WebSocketDisconnect:
        pass
    finally:
        engine.unsubscribe(q)


@app.get("/")
async def root():
    return {"service": "fsm-replay", "status": "ok"}
