"""
Archive Layer.

Streaming download of release archives and their extraction to disk.
"""

from .downloader import ArchiveDownloader, ResponseReader
from .extractor import extract_tgz, extract_zip

__all__ = ["ArchiveDownloader", "ResponseReader", "extract_tgz", "extract_zip"]
