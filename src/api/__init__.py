"""API接口模块"""

from src.api.upstream_client import UpstreamClient
from src.api.routes import BuildRequest, create_app, stream_derived_events

__all__ = [
    'BuildRequest',
    'UpstreamClient',
    'create_app',
    'stream_derived_events',
]
