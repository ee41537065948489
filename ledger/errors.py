class LedgerServiceError(Exception):
    pass


class LedgerContractError(LedgerServiceError):
    """A transaction handed to the aggregator does not involve the subject exactly once."""


class UserNotFoundError(LedgerServiceError):
    pass


class InvalidTransferError(LedgerServiceError):
    pass
