import logging

from sqlalchemy.orm import Session

from medbook.core import config
from medbook.core.errors import InvalidInputError
from medbook.models.id_counter import IdCounter

logger = logging.getLogger(__name__)

# Largest value a BigInteger id column can hold.
MAX_ID = 2**63 - 1


def id_in_range(value: int) -> bool:
    return 0 <= value <= MAX_ID


def require_id_in_range(field: str, value: int) -> None:
    if not id_in_range(value):
        raise InvalidInputError(f'{field}={value} is out of range')


class IdAllocator:
    """Hands out identifiers from one persisted, monotonically increasing counter.

    Every record type draws from the same counter, so an id is unique across
    doctors, patients, availability and appointments. The value returned is the
    one stored before the increment, which makes the first id of a fresh
    deployment ``0``.

    The increment is issued on the caller's session and becomes durable with
    the caller's commit; a rolled back operation gives its id back.
    """

    def __init__(self, counter_name: str | None = None):
        self.counter_name = counter_name or config.ID_COUNTER_NAME

    def ensure_counter(self, db: Session) -> None:
        exists = db.query(IdCounter.name).filter(IdCounter.name == self.counter_name).first()
        if exists is None:
            db.add(IdCounter(name=self.counter_name, value=0))
            db.commit()
            logger.info('Initialized id counter %r', self.counter_name)

    def next_id(self, db: Session) -> int:
        # Write first so the row lock is taken before the value is read.
        updated = db.query(IdCounter).filter(
            IdCounter.name == self.counter_name,
        ).update({IdCounter.value: IdCounter.value + 1}, synchronize_session=False)

        if not updated:
            db.add(IdCounter(name=self.counter_name, value=1))
            db.flush()
            return 0

        value = db.query(IdCounter.value).filter(IdCounter.name == self.counter_name).scalar()
        return value - 1
