"""Mirror v1.0 — CLI entry point.

Usage: python main.py [state.json] [alerts.json]
"""

import logging
import sys

from mirror import evaluate, generate_report

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    state_path = sys.argv[1] if len(sys.argv) > 1 else "test_data.json"
    store_path = sys.argv[2] if len(sys.argv) > 2 else None
    result = evaluate(state_path, store_path=store_path)
    print(generate_report(result))
