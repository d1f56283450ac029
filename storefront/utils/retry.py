# storefront/utils/retry.py
from tenacity import retry, stop_after_attempt, retry_if_exception_type

from storefront.domain.errors import TicketCodeCollision


def unique_code_retry(max_attempts: int):
    #no wait between attempts, a fresh candidate is generated each time
    return retry(
        reraise=True,
        stop=stop_after_attempt(max_attempts),
        retry=retry_if_exception_type(TicketCodeCollision),
    )
