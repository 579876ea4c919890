"""Repository discovery and retrieval."""

from certifier.repository.descriptor import build_descriptor, load_metadata
from certifier.repository.fetch import RepositoryFetcher, extract_archive, find_content_root
from certifier.repository.models import ApiEntry, RepositoryDescriptor

__all__ = [
    "ApiEntry",
    "RepositoryDescriptor",
    "RepositoryFetcher",
    "build_descriptor",
    "extract_archive",
    "find_content_root",
    "load_metadata",
]
