"""Exception hierarchy for qrbench.

Input errors are fatal and stop the run before any file is processed.
File processing errors are caught by the pipeline and recorded on the
failing file's result.
"""


class QrBenchError(Exception):
    """Base class for all qrbench errors."""


class InputError(QrBenchError):
    """The input path could not be resolved into candidates."""


class InputNotFoundError(InputError):
    pass


class InputAccessDeniedError(InputError):
    pass


class FileProcessingError(QrBenchError):
    """A single file could not be processed."""


class LoadFailure(FileProcessingError):
    """The file could not be read or decoded into pixels."""


class DetectionFailure(FileProcessingError):
    """The QR backend raised while detecting or decoding."""
