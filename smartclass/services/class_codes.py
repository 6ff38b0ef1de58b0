import logging
import secrets

from sqlalchemy.orm import Session

from smartclass.models.classroom import Classroom

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
FALLBACK_CODE_LENGTH = 10


class CodeSpaceExhausted(RuntimeError):
    pass


def generate_code(length: int = CODE_LENGTH) -> str:
    # token_hex yields two chars per byte
    return secrets.token_hex((length + 1) // 2)[:length].upper()


def _code_taken(db: Session, code: str) -> bool:
    return db.query(Classroom.id).filter(Classroom.code == code).first() is not None


def generate_unique_code(db: Session, attempts: int) -> str:
    """
    Try `attempts` 6-char codes, then `attempts` 10-char codes.

    The UNIQUE index on classes.code still guards the insert itself.
    """
    for length in (CODE_LENGTH, FALLBACK_CODE_LENGTH):
        for _ in range(attempts):
            code = generate_code(length)
            if not _code_taken(db, code):
                return code
        logger.warning("No free %d-char class code after %d attempts", length, attempts)

    raise CodeSpaceExhausted("could not generate a unique class code")
