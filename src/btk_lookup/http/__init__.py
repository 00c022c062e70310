"""HTTP transport package."""

from .transport import HttpResponse, HttpTransport, decompress_body

__all__ = ["HttpResponse", "HttpTransport", "decompress_body"]
