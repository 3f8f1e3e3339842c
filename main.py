import argparse
import json
import logging
import signal
import sys
import threading

from core.app_context import AppContext
from core.config_loader import load_config
from core.exceptions import InvalidInputError
from core.feedback.learner import record_pricing_outcome
from core.feedback.models import PricingOutcome
from database.database import make_session_factory
from database.init_db import init_db
from database.uow import uow_factory

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Set by SIGINT/SIGTERM; the orchestrator stops between quotes
stop_event = threading.Event()


def signal_handler(sig, frame):
    logger.info("Shutdown signal received")
    stop_event.set()


def _print_result(result) -> None:
    payload = {
        'processed': result.processed,
        'matches_created': result.matches_created,
        'cancelled': result.cancelled,
        'errors': result.errors,
        'execution_time': round(result.execution_time, 3),
        'match_details': [
            {
                'quote_id': d.quote_id,
                'match_count': d.match_count,
                'best_score': d.best_score,
                'suggested_price': d.suggested_price,
                'price_range': list(d.price_range) if d.price_range else None,
                'price_confidence': d.price_confidence,
                'oracle_status': d.oracle_status,
                'weight_version': d.weight_version,
            }
            for d in result.match_details
        ],
    }
    if result.learning_report is not None:
        payload['learning'] = {
            'ran': result.learning_report.ran,
            'reason': result.learning_report.reason,
            'adjusted_count': result.learning_report.adjusted_count,
            'new_version': result.learning_report.new_version,
        }
    print(json.dumps(payload, indent=2, default=str))


def cmd_match(ctx: AppContext, args) -> int:
    result = ctx.orchestrator.process_enhanced_matches(
        args.quote_ids,
        use_ai=not args.no_ai,
        min_score=args.min_score,
        max_matches=args.max_matches,
        stop_event=stop_event,
    )
    _print_result(result)
    return 0 if not result.errors else 1


def cmd_rematch(ctx: AppContext, args) -> int:
    result = ctx.orchestrator.rematch(
        args.quote_id,
        use_ai=not args.no_ai,
        min_score=args.min_score,
        max_matches=args.max_matches,
    )
    _print_result(result)
    return 0 if not result.errors else 1


def cmd_learn(ctx: AppContext, args) -> int:
    report = ctx.learner.learn_from_feedback()
    print(json.dumps({
        'ran': report.ran,
        'reason': report.reason,
        'samples': report.samples,
        'adjusted_count': report.adjusted_count,
        'previous_version': report.previous_version,
        'new_version': report.new_version,
        'adjustments': [
            {
                'criterion': a.criterion,
                'old': a.old_weight,
                'new': a.new_weight,
                'delta': round(a.delta, 6),
                'correlation': a.correlation,
            }
            for a in report.adjustments
        ],
    }, indent=2))
    return 0


def cmd_record_outcome(ctx: AppContext, args) -> int:
    outcome = PricingOutcome(
        actual_price_quoted=args.quoted,
        actual_price_accepted=args.accepted,
        job_won=args.won,
    )
    row_id = record_pricing_outcome(ctx.uow_factory, args.quote_id, outcome)
    return 0 if row_id is not None else 1


def cmd_stats(ctx: AppContext, args) -> int:
    with ctx.uow_factory() as repo:
        stats = repo.feedback.get_feedback_statistics({
            'user_id': args.user_id,
            'service_type': args.service_type,
        })
        stats['by_reason'] = repo.feedback.get_feedback_by_reason()
    print(json.dumps(stats, indent=2, default=str))
    return 0


def _won(value: str) -> bool:
    return value.lower() in ('1', 'true', 'yes', 'won')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Freight Quote Matcher")
    parser.add_argument('--config', default='config.yaml', help='Path to config.yaml')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('init-db', help='Create tables and seed the default weight vector')

    match = sub.add_parser('match', help='Match and price a batch of quotes')
    match.add_argument('quote_ids', nargs='+', type=int)

    rematch = sub.add_parser('rematch', help='Recompute matches for one quote')
    rematch.add_argument('quote_id', type=int)

    for p in (match, rematch):
        p.add_argument('--no-ai', action='store_true', help='Skip the pricing oracle')
        p.add_argument('--min-score', type=float, default=None)
        p.add_argument('--max-matches', type=int, default=None)

    sub.add_parser('learn', help='Recalibrate weights from feedback now')

    outcome = sub.add_parser('record-outcome', help='Record the real price for a quote')
    outcome.add_argument('quote_id', type=int)
    outcome.add_argument('--quoted', type=float, default=None)
    outcome.add_argument('--accepted', type=float, default=None)
    outcome.add_argument('--won', type=_won, default=None)

    stats = sub.add_parser('feedback-stats', help='Summarize reviewer feedback')
    stats.add_argument('--user-id', default=None)
    stats.add_argument('--service-type', default=None)

    return parser


COMMANDS = {
    'match': cmd_match,
    'rematch': cmd_rematch,
    'learn': cmd_learn,
    'record-outcome': cmd_record_outcome,
    'feedback-stats': cmd_stats,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    config = load_config(args.config)
    session_factory = make_session_factory(config.database.url)

    if args.command == 'init-db':
        # Retries while the database container comes up
        init_db(bind=session_factory.kw['bind'])
        return 0

    ctx = AppContext.build(config, uow_factory=uow_factory(session_factory))

    try:
        return COMMANDS[args.command](ctx, args)
    except InvalidInputError as e:
        logger.error(f"Invalid input: {e.message}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
