"""Domain-specific exceptions

The analysis engine absorbs data anomalies itself; these are raised only at
the service edge, around the ledger normalizer.
"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NormalizerAPIError(DomainException):
    """Ledger normalizer returned an error or is unavailable"""

    pass


class InvalidLedgerDataError(DomainException):
    """Normalized ledger payload is malformed"""

    pass
