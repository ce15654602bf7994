import logging
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, OperationalError

from ..errors import TransientStoreError

logger = logging.getLogger(__name__)


@contextmanager
def store_call(session, action: str):
    """
    Roll back and translate connectivity failures into TransientStoreError.
    Domain errors and other exceptions roll back and propagate unchanged.
    """
    try:
        yield
    except OperationalError as e:
        session.rollback()
        logger.warning("Store unavailable during %s: %s", action, e.orig)
        raise TransientStoreError() from e
    except DBAPIError as e:
        session.rollback()
        if e.connection_invalidated:
            logger.warning("Store connection lost during %s", action)
            raise TransientStoreError() from e
        raise
    except Exception:
        session.rollback()
        raise
