"""Entry point: build the ledger, settle pending revenue and print a report"""
import logging
import sys
import traceback

from fangov_ledger.config import settings
from fangov_ledger.db import Database
from fangov_ledger.engine import GovernanceEngine
from fangov_ledger.seed import seed_demo_data
from fangov_ledger.utils.json_encoder import json_dumps

logging.basicConfig(level=settings.LOG_LEVEL, format='%(message)s')
logger = logging.getLogger(__name__)

def build_report(engine: GovernanceEngine) -> dict:
    """Read projections for every artist"""
    report = {'artists': []}
    for artist in engine.artist_directory():
        report['artists'].append({
            'id': artist.artist_id,
            'name': artist.name,
            'token_symbol': artist.token_symbol,
            'profile': engine.artist_profile(artist.artist_id),
            'proposals': engine.artist_proposals(artist.artist_id),
            'revenue': engine.summarize(artist.artist_id),
        })
    return report


def run() -> None:
    """Initialize the ledger and print the report as JSON."""
    database = Database(settings)
    try:
        database.init()

        logger.info("Using configuration:")
        safe_config = settings.model_dump(exclude={'DB_PASSWORD', 'DATABASE_URL'})
        logger.info(json_dumps(safe_config, indent=2))

        engine = GovernanceEngine(database, settings)
        if settings.SEED_DEMO_DATA:
            demo = seed_demo_data(engine)
            distributions = engine.distribute_pending()
            report = build_report(engine)
            report['distributions'] = [
                {
                    'revenue_id': result.revenue_id,
                    'amount': result.amount,
                    'artist': result.artist_earning.amount,
                    'treasury': result.treasury_earning.amount,
                    'token_holders': {e.holder_user_id: e.amount for e in result.token_holder_earnings},
                    'unallocated': result.unallocated,
                }
                for result in distributions
            ]
            report['portfolios'] = {
                name: engine.portfolio(user_id) for name, user_id in demo.user_ids.items()
            }
        else:
            report = build_report(engine)

        print(json_dumps(report, indent=2))

    except Exception as e:
        logger.error(f"Error while building ledger report: {e}")
        traceback.print_exc()
        sys.exit(1)
    finally:
        database.dispose()

if __name__ == "__main__":
    run()
