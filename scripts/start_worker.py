#!/usr/bin/env python3
# =============================================================================
# scripts/start_worker.py - Notification Worker Launcher
# =============================================================================
# Runs a Celery worker on every queue declared in CeleryConfig.
#
# Usage:
#   python scripts/start_worker.py
#   python scripts/start_worker.py --concurrency 4 --loglevel debug
#
# Prerequisites:
#   - Redis reachable at REDIS_URL (.env file)
# =============================================================================

import argparse
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from workers.celery_app import broker_host, celery_app
from workers.config import CeleryConfig


def main():
    parser = argparse.ArgumentParser(description="Start the marketplace notification worker")
    parser.add_argument("--concurrency", type=int, default=2)
    parser.add_argument("--loglevel", default="info")
    args = parser.parse_args()

    queues = ",".join(CeleryConfig.task_queues)
    print(f"Notification worker -> {broker_host(CeleryConfig.broker_url)}")
    print(f"Queues: {queues} | concurrency: {args.concurrency}")

    celery_app.worker_main([
        "worker",
        f"--loglevel={args.loglevel}",
        f"--queues={queues}",
        f"--concurrency={args.concurrency}",
    ])


if __name__ == "__main__":
    main()
