"""
Error taxonomy for the ROM import pipeline.

Every error carries the HTTP status the web layer answers with, so request
handlers can convert any of them into a JSON error envelope in one place.
"""


class RomLibraryError(Exception):
    """Base class for all pipeline errors"""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def to_dict(self) -> dict:
        return {'error': self.message}


class PathSecurityViolation(RomLibraryError):
    """A user supplied path tried to leave the sandbox root"""
    status_code = 400


class ValidationError(RomLibraryError):
    """Missing or malformed input"""
    status_code = 400


class NotFoundError(RomLibraryError):
    status_code = 404


class PermissionDenied(RomLibraryError):
    """The operating system refused access to a path"""
    status_code = 403


class ConfigurationError(RomLibraryError):
    """The process is not configured for the requested operation"""
    status_code = 500


class ProviderTimeout(RomLibraryError):
    """An upstream service did not answer in time"""
    status_code = 504


class ProviderError(RomLibraryError):
    """An upstream service answered with an error"""
    status_code = 502


class ParseError(RomLibraryError):
    """An upstream success response could not be understood"""
    status_code = 502
