from proxies.config import ProxyConfig, resolve_osrm_url
from proxies.osrm_proxy import create_app

__all__ = ["ProxyConfig", "create_app", "resolve_osrm_url"]
