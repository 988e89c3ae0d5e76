"""
Web driver for the flocking simulation.

Steps the flock on an asyncio timer and streams snapshots to browser clients
over a WebSocket. Run with ``uvicorn flocking.app.server:app``.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from ..sim.core.config import SimulationConfig
from ..sim.core.world import FlockingSystem
from ..sim.utils.math2d import _fits_float32
from .controls import ControlEvent, apply_event, handle_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.system = FlockingSystem(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._broadcast_task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self.system.tick

    async def start(self) -> None:
        if self._broadcast_task is None:
            self._broadcast_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self.system = FlockingSystem(self.config)
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        logger.info("simulation reset with %d boids", self.system.boid_count)
        await self._broadcast_snapshot()

    async def control(self, event: ControlEvent, *args: float) -> None:
        if event is ControlEvent.STOP:
            await self.stop()
            return
        async with self._lock:
            apply_event(self.system, event, *args)

    async def handle_client_message(self, payload: dict) -> None:
        if payload.get("type") == "ack":
            tick = payload.get("tick")
            if isinstance(tick, int):
                await self.acknowledge(tick)
            return
        async with self._lock:
            event = handle_message(self.system, payload)
        if event is ControlEvent.STOP:
            await self.stop()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                continue
            async with self._lock:
                metrics = self.system.update()
            if metrics.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.system.snapshot()
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "boids": snapshot.boids,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)
        if stale:
            logger.info("dropped %d disconnected clients", len(stale))


def load_server_config() -> SimulationConfig:
    path = os.environ.get("FLOCKING_CONFIG")
    if path:
        logger.info("loading config from %s", path)
        return SimulationConfig.from_yaml(Path(path))
    return SimulationConfig()


app = FastAPI(title="Flocking Simulation")
controller = SimulationController(load_server_config())
static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=static_dir), name="static")


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/")
async def index() -> FileResponse:
    return FileResponse(static_dir / "index.html")


@app.get("/api/status")
async def status() -> JSONResponse:
    snapshot = controller.system.snapshot()
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "population": controller.system.boid_count,
            "world": asdict(snapshot.world),
            "metrics": asdict(snapshot.metrics),
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    controller.running = True
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/control/randomise")
async def randomise_flock() -> JSONResponse:
    await controller.control(ControlEvent.RANDOMISE)
    return JSONResponse({"tick": controller.tick})


@app.post("/api/control/centralise")
async def centralise_flock() -> JSONResponse:
    await controller.control(ControlEvent.CENTRALISE)
    return JSONResponse({"tick": controller.tick})


@app.post("/api/control/zeroise")
async def zeroise_flock() -> JSONResponse:
    await controller.control(ControlEvent.ZEROISE)
    return JSONResponse({"tick": controller.tick})


@app.post("/api/control/resize")
async def resize_world(payload: dict) -> JSONResponse:
    width = float(payload.get("width", controller.system.width))
    height = float(payload.get("height", controller.system.height))
    if not (_fits_float32(width) and _fits_float32(height)) or width <= 0 or height <= 0:
        return JSONResponse({"error": "width and height must be finite and positive"}, status_code=400)
    await controller.control(ControlEvent.RESIZE, width, height)
    return JSONResponse({"width": controller.system.width, "height": controller.system.height})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                logger.debug("ignoring malformed message %r", message)
                continue
            if isinstance(payload, dict):
                await controller.handle_client_message(payload)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


__all__ = ["app", "controller"]
