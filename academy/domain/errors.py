class AcademyError(Exception):
    """Base class for failures raised by the academy service."""


class StorageAccessError(AcademyError):
    """Local key-value storage could not be read or written."""


class AuthenticationRequired(AcademyError):
    """The operation needs a signed-in identity and there is none."""


class RemoteReadError(AcademyError):
    pass


class RemoteWriteError(AcademyError):
    pass


class RecordNotFound(AcademyError):
    pass


class InvalidTransition(AcademyError):
    """A status change would move a record backwards."""


class DuplicateRecord(RemoteWriteError):
    """The insert lost a race against another write of the same record."""


class InvalidInput(AcademyError):
    pass


class ModuleLocked(AcademyError):
    """The previous module in the curriculum is not completed yet."""
