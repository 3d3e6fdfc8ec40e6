#!/usr/bin/env python3
"""
Run the genetic optimizer convergence benchmark.

Usage:
    python scripts/run_benchmark.py
    python scripts/run_benchmark.py --size 20 --range 10 --seed 3
    python scripts/run_benchmark.py --mode experiment --num-runs 16 --num-jobs 4
"""

import argparse
import sys
from pathlib import Path

# Add the source directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from snnake import Config, ConvergenceBenchmark, BenchmarkExperiment


def main():
    parser = argparse.ArgumentParser(description='Run the NNGenetics convergence benchmark')
    parser.add_argument('--mode', choices=['single', 'experiment'], default='single',
                        help='Run a single benchmark or many independent ones')
    parser.add_argument('--config', default=None,
                        help='INI file with [GENETICS] parameters')
    parser.add_argument('--size', type=int, default=200,
                        help='Number of weights to evolve')
    parser.add_argument('--range', type=int, default=26, dest='value_range',
                        help='Number of buckets each weight is mapped to')
    parser.add_argument('--max-attempts', type=int, default=100_000_000,
                        help='Give up after this many fitness reports')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed of the (first) run')
    parser.add_argument('--num-runs', type=int, default=10,
                        help='Number of runs for experiment mode')
    parser.add_argument('--num-jobs', type=int, default=1,
                        help='Number of parallel jobs for experiment mode')

    args = parser.parse_args()

    config = Config(args.config) if args.config else Config()
    seed   = args.seed if args.seed is not None else config.seed

    if args.mode == 'single':
        benchmark = ConvergenceBenchmark(args.size, args.value_range, args.max_attempts,
                                         config=config, seed=seed)
        benchmark.run()
    else:
        experiment = BenchmarkExperiment(args.num_runs, args.size, args.value_range, args.max_attempts,
                                         config=config, base_seed=seed)
        experiment.run(num_jobs=args.num_jobs)
        experiment.final_report()


if __name__ == '__main__':
    main()
