"""
Command-line entry point.

    sqlroutes CONFIG [--host HOST] [--port PORT]

Loads the rule file, waits for the database, compiles every rule and serves
them with uvicorn. Nothing is served if any rule fails to compile.
"""

import logging
import sys

import click
import uvicorn

from sqlroutes import pre_start
from sqlroutes.core.config import load_config, settings
from sqlroutes.core.errors import ConfigError, GatewayError
from sqlroutes.core.gateway import RouterContext
from sqlroutes.core.pool import ConnectionPool
from sqlroutes.main import create_app

_log = logging.getLogger(__name__)


@click.command()
@click.argument("config_path", type=click.Path(dir_okay=False))
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind.")
@click.option("--port", type=int, default=None, help="Overrides `port` from the config file.")
def main(config_path: str, host: str, port: int | None) -> None:
    """Serve the SQL rules defined in CONFIG_PATH over HTTP."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"invalid configuration: {e}", err=True)
        sys.exit(1)

    _log.info("Connecting to %s (%s)", config.db.dsn(mask=True), config.db.driver.value)
    pool = ConnectionPool(config.db)
    try:
        pre_start.main(pool)
        context = RouterContext.build(pool, config.rules)
    except (GatewayError, ConfigError) as e:
        pool.dispose()
        click.echo(f"failed to compile query: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        pool.dispose()
        click.echo(f"failed to connect to database: {e}", err=True)
        sys.exit(1)

    uvicorn.run(create_app(context), host=host, port=port or config.port)


if __name__ == "__main__":
    main()
