import logging

from tenacity import after_log, before_log, retry, stop_after_attempt, wait_fixed

from sqlroutes.core.config import settings
from sqlroutes.core.pool import ConnectionPool, health_check

logger = logging.getLogger(__name__)


@retry(
    stop=stop_after_attempt(settings.DB_STARTUP_MAX_TRIES),
    wait=wait_fixed(settings.DB_STARTUP_WAIT_SECONDS),
    before=before_log(logger, logging.INFO),
    after=after_log(logger, logging.WARN),
    reraise=True,
)
def init(pool: ConnectionPool) -> None:
    try:
        with pool.connection() as conn:
            # Database must answer before any rule is compiled
            if not health_check(conn):
                raise ConnectionError("database did not answer SELECT 1")
    except Exception as e:
        logger.error(e)
        raise e


def main(pool: ConnectionPool) -> None:
    logger.info("Initializing service")
    init(pool)
    logger.info("Service finished initializing")
