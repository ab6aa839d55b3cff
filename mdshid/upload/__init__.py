# upload/__init__.py

from .auth import parse_auth_header
from .http import HttpChunkUploader
from .stats import UploadStats

__all__ = ["parse_auth_header", "HttpChunkUploader", "UploadStats"]
