from contextlib import contextmanager

from fastapi import HTTPException

from errors import InvalidIdentifier, MessageNotFound, RoomNotFound, StoreError
from logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def http_errors(action: str):
    """Map store and lookup errors raised inside the block to HTTP errors."""
    try:
        yield
    except InvalidIdentifier as e:
        logger.warning(f"{action} failed: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid {e.kind} id")
    except RoomNotFound as e:
        logger.warning(f"{action} failed: {e}")
        raise HTTPException(status_code=404, detail="Room not found")
    except MessageNotFound as e:
        logger.warning(f"{action} failed: {e}")
        raise HTTPException(status_code=404, detail="Message not found")
    except StoreError as e:
        logger.error(f"{action} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Something went wrong")
