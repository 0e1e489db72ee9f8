"""Import tick values from a file (or the default seed) into the database."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from boom_oracle.core.config import load_config
from boom_oracle.core.log import get_logger, setup_logging
from boom_oracle.core.validation import InvalidTickError, parse_tick
from boom_oracle.data.repository import SqlRepository
from boom_oracle.data.seed import DEFAULT_SEED_TICKS
from boom_oracle.db.session import init_db, make_engine, make_session_factory


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Import ticks into the Boom Oracle database")
    parser.add_argument("file", nargs="?", help="File of ticks (whitespace or comma separated)")
    parser.add_argument("--seed", action="store_true", help="Import the default seed sequence")
    parser.add_argument("--user", type=str, default=None, help="Owner id (default: server.user_id)")
    parser.add_argument("--config", type=str, default="config/default.yaml", help="Config file")

    args = parser.parse_args()
    if not args.file and not args.seed:
        parser.error("give a file or --seed")

    config = load_config(Path(args.config))
    setup_logging(level=config.logging.level, structured=config.logging.structured)
    logger = get_logger(__name__)

    if args.seed:
        ticks = list(DEFAULT_SEED_TICKS)
    else:
        text = Path(args.file).read_text(encoding="utf-8")
        try:
            ticks = [parse_tick(v) for v in text.replace(",", " ").split()]
        except InvalidTickError as e:
            logger.error(f"Import aborted: {e}")
            sys.exit(1)

    engine = make_engine(config.storage.database_url)
    init_db(engine)
    repo = SqlRepository(make_session_factory(engine))

    user_id = args.user or config.server.user_id
    for tick in ticks:
        repo.add_tick(user_id, tick)
    logger.info(f"Imported {len(ticks)} ticks for {user_id}")


if __name__ == "__main__":
    main()
