"""
Errors raised by the host while executing instructions and transactions.
"""

from typing import List, Optional


class InstructionError(Exception):
    """Base class for failures raised while executing one instruction."""


class ProgramError(InstructionError):
    """Base class for errors defined by an on-chain program."""
    code: int = 0


# =============================================================================
# Host errors
# =============================================================================

class MissingRequiredSignature(InstructionError):
    pass


class AccountAlreadyInUse(InstructionError):
    pass


class InsufficientLamports(InstructionError):
    """An account would end up with negative lamports."""


class InvalidArgument(InstructionError):
    pass


class InvalidSystemInstruction(InstructionError):
    pass


class NotEnoughAccountKeys(InstructionError):
    pass


class UnknownProgram(InstructionError):
    pass


class CallDepthExceeded(InstructionError):
    pass


class PrivilegeEscalation(InstructionError):
    """A cross-program call asked for a writable account the caller only reads."""


# Post-execution verification failures

class UnbalancedInstruction(InstructionError):
    pass


class ExternalAccountLamportSpend(InstructionError):
    pass


class ExternalAccountDataModified(InstructionError):
    pass


class ReadonlyLamportChange(InstructionError):
    pass


class ReadonlyDataModified(InstructionError):
    pass


class ModifiedProgramId(InstructionError):
    pass


# =============================================================================
# Transaction errors
# =============================================================================

class TransactionError(Exception):
    """
    A transaction was rejected.

    index is the position of the failing instruction (None when the
    transaction failed before any instruction ran), error the underlying
    InstructionError and logs the log lines produced up to the failure.
    """

    def __init__(self, index: Optional[int], error: Optional[Exception],
                 logs: Optional[List[str]] = None, message: str = ""):
        self.index = index
        self.error = error
        self.logs = list(logs or [])
        if not message:
            message = f"instruction {index} failed: {type(error).__name__}: {error}"
        super().__init__(message)

    @property
    def error_name(self) -> str:
        """Name of the underlying error class."""
        if self.error is None:
            return type(self).__name__
        return type(self.error).__name__


class SignatureFailure(TransactionError):
    """A required signature is missing or does not verify."""

    def __init__(self, message: str):
        super().__init__(None, None, message=message)


HOST_ERRORS = {
    cls.__name__: cls
    for cls in (
        MissingRequiredSignature,
        AccountAlreadyInUse,
        InsufficientLamports,
        InvalidArgument,
        InvalidSystemInstruction,
        NotEnoughAccountKeys,
        UnknownProgram,
        CallDepthExceeded,
        PrivilegeEscalation,
        UnbalancedInstruction,
        ExternalAccountLamportSpend,
        ExternalAccountDataModified,
        ReadonlyLamportChange,
        ReadonlyDataModified,
        ModifiedProgramId,
    )
}
