"""Domain errors raised by the service layer.

The account-link workflow raises one ``LinkError`` subclass per stage; the
orchestrator turns them into a ``LinkResult`` instead of letting them reach
the API layer.
"""


class LinkError(Exception):
    """Base class for failures of the account-link workflow."""

    pass


class ExchangeError(LinkError):
    """The public token could not be exchanged (invalid, expired or reused)."""

    pass


class NoAccountError(LinkError):
    """The aggregator returned no usable account for the Item."""

    pass


class ProcessorTokenError(LinkError):
    """The aggregator refused to create a processor token."""

    pass


class FundingSourceError(LinkError):
    """Authorizing or creating the payment-network funding source failed."""

    pass


class EncodingError(LinkError):
    """The account id could not be turned into a shareable id."""

    pass


class PersistenceError(LinkError):
    """Writing the bank link to the ledger failed."""

    pass


class LedgerIntegrityError(Exception):
    """A lookup expected to be unique matched more than one bank link."""

    def __init__(self, message: str, match_count: int):
        self.match_count = match_count
        super().__init__(message)


class InvalidAmountError(ValueError):
    """A transfer amount is not a positive dollar value."""

    pass


class TransferError(Exception):
    """A transfer could not be initiated."""

    pass


class AuthenticationError(Exception):
    """Email/password did not match an identity."""

    pass


class SignUpError(Exception):
    """A new user could not be registered."""

    pass


class BankLinkNotFoundError(LookupError):
    """No bank link matches the given id for this user."""

    pass


class TransferNotFoundError(LookupError):
    """The transfer does not exist or moves money between none of the user's banks."""

    pass
