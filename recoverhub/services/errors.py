"""Domain errors raised by the recovery engine.

Each error carries the HTTP status code the API answers with when it reaches
a router.
"""


class RecoveryError(Exception):
    status_code = 400


class RetryPreconditionError(RecoveryError):
    """A retry could not run because the stored data does not allow it."""

    status_code = 409


class CaseNotFoundError(RetryPreconditionError):
    status_code = 404


class CaseNotActiveError(RetryPreconditionError):
    status_code = 409


class AttemptNotFoundError(RetryPreconditionError):
    status_code = 404


class AttemptNotPendingError(RetryPreconditionError):
    status_code = 409


class MissingInvoiceError(RetryPreconditionError):
    status_code = 422


class MissingConnectionError(RetryPreconditionError):
    status_code = 422


class CredentialDecryptionError(RetryPreconditionError):
    status_code = 500


class CaseNotOwnedError(RecoveryError):
    status_code = 403


class CaseNotRetryableError(RecoveryError):
    status_code = 409


class ManualRetryLimitError(RecoveryError):
    status_code = 429


class InvalidTransitionError(RecoveryError):
    status_code = 409


class TemplateNotFoundError(RecoveryError):
    status_code = 404


class TemplateSequenceConflictError(RecoveryError):
    status_code = 409


class GatewayTransportError(RecoveryError):
    """The payment provider could not be reached or failed server-side."""

    status_code = 502


class EmailTransportError(RecoveryError):
    """The email provider could not be reached or failed server-side."""

    status_code = 502


class EmailRejectedError(RecoveryError):
    """The email provider refused the message."""

    status_code = 422


class SignatureVerificationError(RecoveryError):
    """An inbound webhook could not be authenticated or decoded."""

    status_code = 400


class MissingSignatureError(SignatureVerificationError):
    pass


class MalformedSignatureError(SignatureVerificationError):
    pass


class TimestampOutsideToleranceError(SignatureVerificationError):
    pass


class SignatureMismatchError(SignatureVerificationError):
    pass


class MalformedEventError(SignatureVerificationError):
    pass
