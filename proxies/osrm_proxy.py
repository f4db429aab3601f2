#!/usr/bin/env python3
import enum
import logging
from typing import Any, Dict, Optional

import requests
from dotenv import load_dotenv
from flask import Blueprint, Flask, current_app, jsonify, request

from proxies.config import ProxyConfig, resolve_osrm_url

logger = logging.getLogger("osrm_proxy")

ROUTE_PATH = (
    "/route/v1/driving/"
    "{start_lng},{start_lat};{end_lng},{end_lat}"
    "?overview=full&geometries=geojson"
)

COORDINATE_PARAMS = ("startLat", "startLng", "endLat", "endLng")

# Whatever OSRM puts in routes[0]; forwarded without reshaping.
RouteResult = Dict[str, Any]

bp = Blueprint("osrm_proxy", __name__)


class ErrorKind(enum.Enum):
    CLIENT = "client"
    UPSTREAM = "upstream"
    TRANSPORT = "transport"


class RouteProxyError(Exception):
    """A failed /route request, already carrying the HTTP status and JSON body to send."""

    def __init__(self, kind: ErrorKind, status_code: int, body: Dict[str, Any]):
        super().__init__(body.get("error"))
        self.kind = kind
        self.status_code = status_code
        self.body = body


def build_route_url(base_url: str, start_lat, start_lng, end_lat, end_lng) -> str:
    # OSRM wants lon,lat pairs
    return base_url + ROUTE_PATH.format(
        start_lat=start_lat,
        start_lng=start_lng,
        end_lat=end_lat,
        end_lng=end_lng,
    )


def _response_body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def fetch_route(
    config: ProxyConfig, start_lat, start_lng, end_lat, end_lng
) -> RouteResult:
    """
    Ask the OSRM backend for a driving route and return its first route entry.

    Coordinates are forwarded exactly as given. Raises RouteProxyError with
    ErrorKind.UPSTREAM when the backend answers with an HTTP error or a
    non-"Ok" payload, and ErrorKind.TRANSPORT when no response arrives.
    """
    url = build_route_url(
        resolve_osrm_url(config), start_lat, start_lng, end_lat, end_lng
    )
    logger.info("OSRM request URL: %s", url)

    headers = {}
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"

    try:
        r = requests.get(url, headers=headers, timeout=config.timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        resp = e.response
        if resp is not None:
            body = _response_body(resp)
            logger.error("OSRM backend error: %s %s", resp.status_code, body)
            raise RouteProxyError(
                ErrorKind.UPSTREAM, resp.status_code, {"error": body}
            ) from e
        logger.error("OSRM request failed: %s", e)
        raise RouteProxyError(
            ErrorKind.TRANSPORT, 500, {"error": "OSRM service unavailable"}
        ) from e

    data = _response_body(r)
    routes = data.get("routes") if isinstance(data, dict) else None
    if not routes or not isinstance(routes, list) or data.get("code") != "Ok":
        logger.error("OSRM returned error: %s", data)
        raise RouteProxyError(
            ErrorKind.UPSTREAM,
            500,
            {"error": "OSRM route not found", "details": data},
        )

    return routes[0]


def _require_coordinates():
    values = [request.args.get(name, "") for name in COORDINATE_PARAMS]
    if not all(values):
        logger.warning("Missing coordinates: %s", dict(request.args))
        raise RouteProxyError(ErrorKind.CLIENT, 400, {"error": "Missing coordinates"})
    return values


@bp.route("/route", methods=["GET", "OPTIONS"])
def route():
    # CORS preflight
    if request.method == "OPTIONS":
        return ("", 204)

    start_lat, start_lng, end_lat, end_lng = _require_coordinates()
    config: ProxyConfig = current_app.config["PROXY_CONFIG"]

    result = fetch_route(config, start_lat, start_lng, end_lat, end_lng)
    return jsonify(result)


@bp.route("/health")
def health():
    config: ProxyConfig = current_app.config["PROXY_CONFIG"]
    return jsonify(
        {
            "status": "ok",
            "backend": resolve_osrm_url(config),
            "endpoints": ["GET /route"],
        }
    )


@bp.app_errorhandler(RouteProxyError)
def handle_route_error(e: RouteProxyError):
    return jsonify(e.body), e.status_code


@bp.after_app_request
def add_cors_headers(resp):
    resp.headers["Access-Control-Allow-Origin"] = "*"
    resp.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
    resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return resp


def create_app(config: Optional[ProxyConfig] = None) -> Flask:
    if config is None:
        config = ProxyConfig.from_env()

    app = Flask(__name__)
    app.config["PROXY_CONFIG"] = config
    app.register_blueprint(bp, url_prefix=config.url_prefix or None)
    return app


def main():
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    config = ProxyConfig.from_env()
    app = create_app(config)

    logger.info(
        "OSRM proxy listening on http://%s:%d%s/route (backend %s)",
        config.host,
        config.port,
        config.url_prefix,
        resolve_osrm_url(config),
    )
    app.run(host=config.host, port=config.port, debug=config.development)


if __name__ == "__main__":
    main()
