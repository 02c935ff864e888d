# marketplace/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from marketplace.domain.exceptions import (
    ConflictRetryExhausted,
    SerializationConflict,
    TransientStoreError,
)
from marketplace.utils.settings import TX_RETRY_ATTEMPTS, TX_RETRY_WAIT_MIN, TX_RETRY_WAIT_MAX
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def _log_retry(retry_state):
    exc = retry_state.outcome.exception()
    logger.warning(
        f"{retry_state.fn.__qualname__} attempt {retry_state.attempt_number} failed: {exc}, retrying"
    )


def _give_up(retry_state):
    exc = retry_state.outcome.exception()
    if isinstance(exc, SerializationConflict):
        raise ConflictRetryExhausted(retry_state.attempt_number) from exc
    # TransientStoreError po wyczerpaniu prob idzie do wolajacego bez zmian
    raise exc


#tenacity retry calej jednostki pracy (kazda proba = nowa transakcja)
def tx_retry(attempts: int = TX_RETRY_ATTEMPTS):
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=TX_RETRY_WAIT_MIN, min=TX_RETRY_WAIT_MIN, max=TX_RETRY_WAIT_MAX),
        retry=retry_if_exception_type((SerializationConflict, TransientStoreError)),
        before_sleep=_log_retry,
        retry_error_callback=_give_up,
    )
