"""HTTP backends for the entity gateway and object storage."""

from listingwizard.gateway.http import (
    PHOTOS_PATH,
    PROPERTIES_PATH,
    HttpEntityGateway,
    HttpObjectStorage,
    RestClient,
    build_http_backends,
)

__all__ = [
    "PHOTOS_PATH",
    "PROPERTIES_PATH",
    "HttpEntityGateway",
    "HttpObjectStorage",
    "RestClient",
    "build_http_backends",
]
