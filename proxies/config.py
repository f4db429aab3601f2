import os
from dataclasses import dataclass
from typing import Mapping, Optional

# Public OSRM demo server
DEFAULT_OSRM_URL = "https://router.project-osrm.org"

# Android emulator maps the host's 5001 to 10.0.2.2
ANDROID_EMULATOR_OSRM_URL = "http://10.0.2.2:5001"
LOCAL_OSRM_URL = "http://localhost:5000"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5003


def _optional(env, name):
    value = env.get(name, "").strip()
    return value or None


@dataclass(frozen=True)
class ProxyConfig:
    osrm_url: Optional[str] = None
    environment: str = "production"
    platform: Optional[str] = None
    timeout: Optional[float] = None
    api_key: Optional[str] = None
    url_prefix: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProxyConfig":
        """
        Read the proxy settings once from the environment.

        OSRM_TIMEOUT and PORT must be numeric when set; a bad value raises
        ValueError so the process fails at startup rather than per request.
        """
        env = os.environ if environ is None else environ

        timeout = _optional(env, "OSRM_TIMEOUT")
        port = _optional(env, "PORT")

        return cls(
            osrm_url=_optional(env, "OSRM_URL"),
            environment=_optional(env, "FLASK_ENV") or "production",
            platform=_optional(env, "PLATFORM"),
            timeout=float(timeout) if timeout is not None else None,
            api_key=_optional(env, "OSRM_API_KEY"),
            url_prefix=(_optional(env, "ROUTE_PREFIX") or "").rstrip("/"),
            host=_optional(env, "HOST") or DEFAULT_HOST,
            port=int(port) if port is not None else DEFAULT_PORT,
        )


def resolve_osrm_url(config: ProxyConfig) -> str:
    """Pick the OSRM base URL: explicit override, then dev-mode local, then public."""
    if config.osrm_url:
        url = config.osrm_url
    elif config.development:
        if config.platform == "android":
            url = ANDROID_EMULATOR_OSRM_URL
        else:
            url = LOCAL_OSRM_URL
    else:
        url = DEFAULT_OSRM_URL
    return url.rstrip("/")
