"""Entry point: vlt <host>"""

import asyncio
import logging
import sys

from vlt.config import Config, load_config
from vlt.dispatcher import Dispatcher, build_client
from vlt.driver import ReplayDriver
from vlt.errors import ConfigError, StreamError
from vlt.sources import file_lines, varnishlog_lines
from vlt.stats import ReplayStats, StatsReporter, format_summary

logger = logging.getLogger("vlt")


async def replay(config: Config) -> dict:
    stats = ReplayStats()
    if config.input_path is not None:
        lines = file_lines(config.input_path)
    else:
        lines = varnishlog_lines(config.varnishlog_command, limit=config.line_limit)

    async with build_client(config.timeout, config.verify_tls) as client:
        driver = ReplayDriver(config.target_host, Dispatcher(client, stats), stats=stats)
        reporter = StatsReporter(stats, config.metrics_interval)
        reporter.start()
        try:
            summary = await driver.run(lines)
        finally:
            await reporter.stop()

    logger.info("Replay finished: %s", format_summary(summary))
    return summary


def main(argv: list[str] | None = None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(argv)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(2)
    logging.getLogger().setLevel(config.log_level)
    # httpx logs every request at INFO, which duplicates our result lines
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.info("Replaying %s to %s",
                config.input_path or " ".join(config.varnishlog_command),
                config.target_host)

    try:
        asyncio.run(replay(config))
    except StreamError as e:
        logger.error("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, abandoning in-flight requests")
        sys.exit(130)


if __name__ == "__main__":
    main()
