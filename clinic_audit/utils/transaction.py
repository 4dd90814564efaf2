"""
Single commit-or-rollback boundary for multi-step database work
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from clinic_audit.extensions import db
from clinic_audit.errors import ClinicAuditError, TransientStorageError, ValidationError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(action, on_integrity_error=ValidationError, integrity_message=None):
    """
    Run a block inside one transaction on ``db.session``.

    Commits when the block finishes. On any failure the session is rolled
    back, so nothing written inside the block survives, and the error is
    re-raised as one of the service error kinds:

    - service errors raised inside the block pass through unchanged
    - constraint violations / bad values -> ``on_integrity_error``
    - any other SQLAlchemy error -> TransientStorageError
    """
    try:
        yield db.session
        db.session.commit()
    except ClinicAuditError:
        db.session.rollback()
        raise
    except (IntegrityError, DataError) as e:
        db.session.rollback()
        logger.warning("%s rejected by database constraints: %s", action, e.orig)
        raise on_integrity_error(integrity_message or f'Invalid data for {action}') from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Database error during %s: %s", action, e, exc_info=True)
        raise TransientStorageError(f'Failed to {action}. Please retry.') from e
    except Exception:
        db.session.rollback()
        raise
