"""Generate frequently-bought-together suggestions from an orders CSV."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from fbt_bundles.config import LoaderConfig, MiningConfig, PipelineConfig
from fbt_bundles.errors import InsufficientData, InvalidParameter
from fbt_bundles.models.apriori import AprioriEngine
from fbt_bundles.validation.metrics import evaluate_suggestions, split_holdout
from fbt_bundles.workflows.pipeline import run_pipeline


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--orders",
        type=Path,
        default=Path("data/orders.csv"),
        help="Path to the raw orders CSV file.",
    )
    parser.add_argument(
        "--lakehouse-root",
        type=Path,
        default=Path(".lakehouse"),
        help="Directory used to persist bronze/silver/gold tables.",
    )
    parser.add_argument("--min-support", type=float, default=0.01)
    parser.add_argument("--min-confidence", type=float, default=0.3)
    parser.add_argument("--min-lift", type=float, default=1.0)
    parser.add_argument("--max-per-product", type=int, default=3)
    parser.add_argument("--max-level", type=int, default=10, help="Largest itemset size to search.")
    parser.add_argument("--lookback-days", type=int, default=90)
    parser.add_argument("--max-orders", type=int, default=10000)
    parser.add_argument("--max-basket-size", type=int, default=50)
    parser.add_argument("--min-transactions", type=int, default=10)
    parser.add_argument(
        "--evaluate-holdout",
        type=float,
        default=0.0,
        help="Fraction of the newest baskets held out to score the suggestions.",
    )
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    config = PipelineConfig(
        lakehouse_root=args.lakehouse_root,
        orders_source=args.orders,
        mining=MiningConfig(
            min_support=args.min_support,
            min_confidence=args.min_confidence,
            min_lift=args.min_lift,
            max_per_product=args.max_per_product,
            max_level=args.max_level,
        ),
        loader=LoaderConfig(
            lookback_days=args.lookback_days,
            max_orders=args.max_orders,
            max_basket_size=args.max_basket_size,
            min_transactions=args.min_transactions,
        ),
    )

    try:
        artifacts = run_pipeline(config)
    except (InvalidParameter, InsufficientData) as exc:
        logging.getLogger(__name__).error("%s", exc)
        return 2

    print("Pipeline completed successfully. Gold tables saved under:", config.lakehouse_root / "gold")
    print(
        f"{len(artifacts.transactions)} transactions, {artifacts.itemset_count} itemsets, "
        f"{len(artifacts.assoc_rules)} rules, {len(artifacts.fbt_suggestions)} suggestions"
    )
    print("Sample suggestions:")
    for row in artifacts.fbt_suggestions[:5]:
        print(row)

    if args.evaluate_holdout > 0:
        train, holdout = split_holdout(artifacts.transactions, args.evaluate_holdout)
        result = AprioriEngine(config.mining).suggestions(train)
        report = evaluate_suggestions(result.suggestions, holdout, config.mining.max_per_product)
        print(
            f"Holdout evaluation over {report.queries} queries: "
            f"precision={report.precision:.3f} recall={report.recall:.3f} map={report.map_score:.3f}"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
