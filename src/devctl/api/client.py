from __future__ import annotations
import httpx

class SimApiClient:
    """HTTP control plane of the device simulator (health, counters, fault injection)."""

    def __init__(self, base_url: str = "", timeout_s: float = 2.0, client: httpx.Client | None = None):
        # an existing client (e.g. a TestClient) can be handed in instead of a URL
        self._client = client if client is not None else httpx.Client(base_url=base_url, timeout=timeout_s)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SimApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def health(self) -> dict:
        r = self._client.get("/health")
        r.raise_for_status()
        return r.json()

    def status(self) -> dict:
        r = self._client.get("/status")
        r.raise_for_status()
        return r.json()

    def reset(self) -> dict:
        r = self._client.post("/control/reset")
        r.raise_for_status()
        return r.json()

    def get_faults(self) -> dict:
        r = self._client.get("/control/faults")
        r.raise_for_status()
        return r.json()

    def set_faults(
        self,
        *,
        drop_rate: float = 0.0,
        delay_ms: int = 0,
        burst_size: int = 0,
        burst_gap_ms: int = 0,
    ) -> dict:
        r = self._client.post("/control/faults", json={
            "drop_rate": drop_rate,
            "delay_ms": delay_ms,
            "burst_size": burst_size,
            "burst_gap_ms": burst_gap_ms,
        })
        r.raise_for_status()
        return r.json()
