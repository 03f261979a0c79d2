import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import BaseModel, Field

from services.device_sim.app.core.faults import FaultConfig
from services.device_sim.app.core.protocol import SimModel
from services.device_sim.app.core.udp import start_udp

HTTP_HOST = os.getenv("SIM_HTTP_HOST", "127.0.0.1")
HTTP_PORT = int(os.getenv("SIM_HTTP_PORT", "8000"))

UDP_HOST = os.getenv("SIM_UDP_HOST", "127.0.0.1")
UDP_PORT = int(os.getenv("SIM_UDP_PORT", "12345"))

# about a 10% chance a request goes unanswered
DROP_RATE = float(os.getenv("SIM_DROP_RATE", "0.1"))

MODEL = SimModel(faults=FaultConfig(drop_rate=DROP_RATE))


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.udp_transport = await start_udp(MODEL, UDP_HOST, UDP_PORT)
    try:
        yield
    finally:
        app.state.udp_transport.close()


app = FastAPI(title="Device Simulator", version="0.3.0", lifespan=lifespan)


class FaultsIn(BaseModel):
    drop_rate: float = Field(0.0, ge=0.0, le=1.0)
    delay_ms: int = Field(0, ge=0, le=10000)
    burst_size: int = Field(0, ge=0, le=4096)
    burst_gap_ms: int = Field(0, ge=0, le=1000)


@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/status")
def status():
    return {
        "counters": MODEL.counters(),
        "faults": MODEL.faults.as_dict(),
        "last_requests": MODEL.requests[-16:],
    }

@app.post("/control/reset")
def reset():
    MODEL.reset()
    return {"status": "reset", "reset_count": MODEL.reset_count}

@app.get("/control/faults")
def get_faults():
    return MODEL.faults.as_dict()

@app.post("/control/faults")
def set_faults(f: FaultsIn):
    MODEL.faults.drop_rate = f.drop_rate
    MODEL.faults.delay_ms = f.delay_ms
    MODEL.faults.burst_size = f.burst_size
    MODEL.faults.burst_gap_ms = f.burst_gap_ms
    return {"status": "faults_updated", "faults": f.model_dump()}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    uvicorn.run(
        app,
        host=HTTP_HOST,
        port=HTTP_PORT,
        reload=False)
