"""
Shared fixtures: a fake upstream behind httpx.MockTransport, a fixed
calendar day, and a small site registry. No test touches the network.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from damwatch.sites.models import Site

TODAY = date(2024, 7, 15)  # July: seasonal baseline 45 %


# ═══════════════════════════════════════════════════════════════════════════
# Upstream payload builders
# ═══════════════════════════════════════════════════════════════════════════

def _dates(n: int, start_day: int = 1) -> List[str]:
    return [f"2024-07-{start_day + i:02d}" for i in range(n)]


def forecast_payload(precip: List[Optional[float]]) -> Dict[str, Any]:
    n = len(precip)
    return {
        "daily": {
            "time": _dates(n, 15),
            "precipitation_sum": precip,
            "rain_sum": precip,
            "temperature_2m_max": [31.0] * n,
            "temperature_2m_min": [24.0] * n,
            "precipitation_probability_max": [80] * n,
        }
    }


def historical_payload(precip: List[Optional[float]]) -> Dict[str, Any]:
    return {"daily": {"time": _dates(len(precip), 8), "precipitation_sum": precip}}


def soil_payload(**bands: List[Optional[float]]) -> Dict[str, Any]:
    hourly: Dict[str, Any] = {"time": [f"t{i}" for i in range(72)]}
    for name, values in bands.items():
        hourly[f"soil_moisture_{name}"] = values
    hourly.setdefault("soil_temperature_0cm", [27.5] * 72)
    return {"hourly": hourly}


def healthy_soil_payload() -> Dict[str, Any]:
    return soil_payload(
        **{
            "0_to_1cm": [0.32] * 72,
            "1_to_3cm": [0.30] * 72,
            "3_to_9cm": [0.28] * 72,
            "9_to_27cm": [0.26] * 72,
            "27_to_81cm": [0.25] * 72,
        }
    )


def discharge_payload(values: List[Optional[float]]) -> Dict[str, Any]:
    return {"daily": {"time": _dates(len(values), 15), "river_discharge": values}}


def nasa_payload(series: Dict[str, Any]) -> Dict[str, Any]:
    return {"properties": {"parameter": {"PRECTOTCORR": series}}}


def usgs_feature(
    event_id: str, mag: Optional[float], lat: float, lon: float, time_ms: int, depth: float = 10.0,
) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "id": event_id,
        "properties": {"mag": mag, "place": f"near {event_id}", "time": time_ms},
        "geometry": {"type": "Point", "coordinates": [lon, lat, depth]},
    }


def usgs_payload(features: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": features}


def healthy_responses() -> Dict[str, Any]:
    return {
        "forecast": forecast_payload([5.0, 10.0, 20.0, 45.0, 30.0, 12.0, 8.0]),
        "historical": historical_payload([2.0, 4.0, 6.0, 10.0, 20.0, 30.0, 40.0]),
        "soil_moisture": healthy_soil_payload(),
        "river_discharge": discharge_payload([100.0, 200.0, 300.0, 400.0, 600.0, 700.0, 650.0]),
        "satellite": nasa_payload({"20240701": 5.0, "20240702": -999, "20240703": 3.0}),
        "seismic": usgs_payload([
            usgs_feature("us1", 4.0, 30.5, 78.5, 1_720_000_000_000),
            usgs_feature("us2", 3.0, 30.2, 78.2, 1_719_000_000_000),
        ]),
    }


# ═══════════════════════════════════════════════════════════════════════════
# Fake upstream
# ═══════════════════════════════════════════════════════════════════════════

class FakeUpstream:
    """
    Routes requests to the six sources by host / query parameters.

    A response entry may be a JSON-able object (200), an int (that HTTP
    status), a str (200 with that raw body), or an httpx exception class
    (raised by the transport).
    """

    def __init__(self, responses: Dict[str, Any]):
        self.responses = responses
        self.calls: List[Tuple[str, httpx.Request]] = []

    @staticmethod
    def route(request: httpx.Request) -> str:
        host = request.url.host
        params = request.url.params
        if host.startswith("flood-api"):
            return "river_discharge"
        if "nasa" in host:
            return "satellite"
        if "usgs" in host:
            return "seismic"
        if "start_date" in params:
            return "historical"
        if "soil_moisture_1_to_3cm" in params.get("hourly", ""):
            return "soil_moisture"
        return "forecast"

    def handler(self, request: httpx.Request) -> httpx.Response:
        source = self.route(request)
        self.calls.append((source, request))
        response = self.responses.get(source, 503)
        if isinstance(response, type) and issubclass(response, Exception):
            raise response("simulated failure", request=request)
        if isinstance(response, int):
            return httpx.Response(response, json={"error": True, "reason": "simulated"})
        if isinstance(response, str):
            return httpx.Response(200, text=response)
        return httpx.Response(200, json=response)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def count(self, source: Optional[str] = None) -> int:
        return sum(1 for s, _ in self.calls if source is None or s == source)

    def requests_for(self, source: str) -> List[httpx.Request]:
        return [r for s, r in self.calls if s == source]


# ═══════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream(healthy_responses())


@pytest.fixture
def failing_upstream() -> FakeUpstream:
    return FakeUpstream({})


@pytest.fixture
def today():
    return lambda: TODAY


@pytest.fixture
def tehri() -> Site:
    return Site(
        id="tehri", name="Tehri", state="Uttarakhand",
        latitude=30.3778, longitude=78.4808, capacity=50, river="Bhagirathi",
    )


@pytest.fixture
def registry() -> List[Site]:
    return [
        Site(id=f"site-{i:02d}", name=f"Site {i}", state="Kerala",
             latitude=10.0 + i * 0.1, longitude=76.0 + i * 0.1, capacity=50)
        for i in range(1, 13)
    ]


@pytest.fixture
def payloads():
    """Payload builders, for tests that replace one upstream response."""
    class _Payloads:
        forecast = staticmethod(forecast_payload)
        historical = staticmethod(historical_payload)
        soil = staticmethod(soil_payload)
        discharge = staticmethod(discharge_payload)
        nasa = staticmethod(nasa_payload)
        usgs = staticmethod(usgs_payload)
        feature = staticmethod(usgs_feature)
    return _Payloads


@pytest.fixture
def root_logging():
    """Restore the root logger after a test that calls setup_logging()."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
