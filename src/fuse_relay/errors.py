"""
Exceptions for the OPC to Fuse relay.

Configuration problems are fatal at startup; everything else is recovered
locally by the schedulers, which skip the current cycle and try again on the
next tick.
"""


class RelayError(Exception):
    """Base error for the relay."""

    pass


class ConfigurationError(RelayError):
    """Missing, empty, out-of-range or unparseable configuration."""

    pass


class ConnectivityError(RelayError):
    """Store or gateway unreachable, timed out or answered with a non-2xx status."""

    pass


class DataError(RelayError):
    """Malformed payload or a response that could not be parsed."""

    pass


def map_db_error(e: Exception) -> RelayError:
    import psycopg
    import psycopg_pool

    if isinstance(e, RelayError):
        return e
    if isinstance(e, psycopg.errors.QueryCanceled):
        return ConnectivityError(f"statement timeout: {e}")
    if isinstance(e, (psycopg.OperationalError, psycopg_pool.PoolTimeout)):
        return ConnectivityError(str(e))
    if isinstance(e, (psycopg.DataError, psycopg.IntegrityError)):
        return DataError(str(e))
    return RelayError(str(e))
