"""Error taxonomy for the clip creation pipeline"""

from typing import Optional


class ClipCreatorError(Exception):
    """Base class for every error raised by clip_creator"""


class ConfigurationError(ClipCreatorError):
    """Missing or invalid configuration, detected before any network or engine call"""


class ScriptGenerationError(ClipCreatorError):
    """The language model did not produce a usable script"""


class ResponseValidationError(ClipCreatorError):
    """A model response failed JSON parsing or schema validation (retryable)"""


class AudioGenerationError(ClipCreatorError):
    """No usable audio track could be fetched and processed"""


class AudioSearchError(ClipCreatorError):
    """A single audio search or download attempt failed"""


class NoSuitableMediaError(ClipCreatorError):
    """Every stock video query was exhausted without an acceptable match"""


class MediaDownloadError(ClipCreatorError):
    """A stock media binary could not be downloaded"""


class StitchInputError(ClipCreatorError):
    """Clip and segment lists handed to the stitcher are empty or mismatched"""


class FilterGraphError(ClipCreatorError):
    """A filter graph was malformed before it reached the engine"""


class InvalidMediaFormatError(ClipCreatorError):
    """An input file does not carry the expected extension"""


class MediaNotFoundError(ClipCreatorError):
    """An input file does not exist on disk"""


class EngineError(ClipCreatorError):
    """The media engine exited with a nonzero status"""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class MuxError(ClipCreatorError):
    """Combining the stitched video with the audio track failed"""
