"""
Offline evaluation of the screening engine against a labelled CSV.

The CSV needs `text` and `label` columns (1 = injection, 0 = benign).
A sample counts as flagged when the engine does not ALLOW it.

    python scripts/run_eval.py data/eval.csv --no-cache
"""
import argparse
import time

import pandas as pd
from sklearn.metrics import accuracy_score, classification_report, confusion_matrix

from transcript_guard.engine.models import Action, SanitizationConfig
from transcript_guard.engine.orchestrator import ThreatAnalyzer


def run_evaluation(dataset_path: str, use_cache: bool = False) -> None:
    print(f"Loading dataset from {dataset_path}...")
    df = pd.read_csv(dataset_path)

    if 'text' not in df.columns or 'label' not in df.columns:
        raise SystemExit("Dataset must have 'text' and 'label' columns.")

    analyzer = ThreatAnalyzer(config=SanitizationConfig(cache_enabled=use_cache))
    print(f"Running evaluation on {len(df)} samples (patterns {analyzer.pattern_generation})...")

    y_true = df['label'].astype(int).tolist()
    y_pred = []
    latencies = []

    for text in df['text'].fillna('').astype(str):
        start = time.perf_counter()
        result = analyzer.analyze(text)
        latencies.append((time.perf_counter() - start) * 1000)
        y_pred.append(0 if result.action is Action.ALLOW else 1)

    print("\n" + "=" * 40)
    print("EVALUATION METRICS")
    print("=" * 40)

    latencies.sort()
    print("\nPerformance:")
    print(f"   - Average Latency: {sum(latencies) / len(latencies):.2f} ms")
    print(f"   - 95th Percentile: {latencies[int(0.95 * (len(latencies) - 1))]:.2f} ms")

    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    print("\nAccuracy:")
    print(f"   - Accuracy: {accuracy_score(y_true, y_pred):.2%}")
    print(f"   - False Positives (benign flagged): {fp}")
    print(f"   - False Negatives (injection allowed): {fn}")
    print(f"   - True Positives: {tp}")
    print(f"   - True Negatives: {tn}")

    stats = analyzer.get_stats()
    print(f"\nActions: allow={stats.allowed_requests} sanitize={stats.sanitized_requests} "
          f"block={stats.blocked_requests}")

    print("\nDetailed Classification Report:")
    print(classification_report(y_true, y_pred, labels=[0, 1],
                                target_names=['Benign', 'Injection'], zero_division=0))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("dataset", help="CSV file with text,label columns")
    parser.add_argument("--no-cache", action="store_true", help="Disable the result cache")
    args = parser.parse_args()
    run_evaluation(args.dataset, use_cache=not args.no_cache)
