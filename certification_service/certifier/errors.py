"""Error taxonomy for the certification pipeline.

Errors local to one API entry are converted into error records by the
validators. Errors raised before discovery (fetch, extract, metadata) abort
the whole run and reach the caller.
"""

from __future__ import annotations


class CertificationError(Exception):
    """Base class for all certification failures."""


class MetadataParseError(CertificationError):
    """The repository metadata descriptor exists but cannot be read or parsed."""


class FileResolutionError(CertificationError):
    """No specification file name could be derived for an API entry."""


class SpecNotFoundError(CertificationError):
    """The resolved specification file is not present where expected."""


class EngineFailure(CertificationError):
    """A rule engine crashed, is missing, or produced unusable output."""


class UnknownSeverityError(EngineFailure):
    """A rule engine reported a severity with no canonical mapping."""


class FetchError(CertificationError):
    """The repository archive could not be downloaded."""


class ExtractError(CertificationError):
    """The repository archive could not be extracted."""


class UnsupportedProtocolError(CertificationError, ValueError):
    """An API protocol tag is not one of the supported protocols."""
