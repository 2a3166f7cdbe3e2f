# run_experiments.py

import argparse
import json
import logging
import os
import time
from typing import List, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from tqdm import tqdm

from splay_tree import SplayTree, Node

# ==========================
# 1. Logging and Configuration
# ==========================

logger = logging.getLogger('ExperimentLogger')


def setup_logging(log_file: str):
    """
    Sets up logging to both console and file with detailed formatting.

    Parameters:
        log_file (str): Path to the log file.
    """
    logger.setLevel(logging.DEBUG)  # Capture all levels

    # Avoid duplicate logs
    if logger.handlers:
        return logger

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

    # Console handler for INFO level and above
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)

    # File handler for DEBUG level and above
    fh = logging.FileHandler(log_file)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)

    logger.addHandler(ch)
    logger.addHandler(fh)
    return logger


DEFAULT_CONFIG = {
    'n_keys': 1000,
    'n_accesses': 5000,
    'patterns': ['uniform', 'skewed', 'temporal', 'cluster-based', 'random_walk', 'bursty'],
    'seed': 0,
    'output_dir': 'results',
    'show_progress': True,
    'drain_check': True,
}


def load_config(path: Optional[str] = None) -> dict:
    """
    Loads the experiment configuration, overriding defaults with a JSON file.

    Parameters:
        path (str): Optional path to a JSON configuration file.

    Returns:
        dict: The merged configuration.
    """
    config = DEFAULT_CONFIG.copy()
    if path is None:
        return config
    try:
        with open(path, 'r') as f:
            overrides = json.load(f)
        logger.info(f"Configuration loaded from '{path}'.")
    except Exception as e:
        logger.error(f"Failed to load configuration from '{path}': {e}")
        raise e
    unknown = set(overrides) - set(DEFAULT_CONFIG)
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {sorted(unknown)}")
    config.update({k: v for k, v in overrides.items() if k in DEFAULT_CONFIG})
    return config


def save_results(data, filepath: str):
    """
    Saves data to a JSON file.

    Parameters:
        data (dict): The data to save.
        filepath (str): The path to the JSON file.
    """
    try:
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=4)
        logger.info(f"Results saved successfully to '{filepath}'.")
    except Exception as e:
        logger.error(f"Failed to save results to '{filepath}': {e}")

# ==========================
# 2. Access Patterns
# ==========================

def generate_access_pattern(pattern_type: str, size: int, n: int) -> List[int]:
    """
    Generates different types of access patterns for experimentation.

    Parameters:
        pattern_type (str): Type of access pattern to generate.
        size (int): Range of keys (0 to size-1).
        n (int): Number of accesses to generate.

    Returns:
        List[int]: List of access keys.
    """
    logger.debug(f"Generating access pattern: {pattern_type}, Size: {size}, Number of accesses: {n}")
    if pattern_type == 'uniform':
        pattern = np.random.randint(0, size, n)
    elif pattern_type in ('skewed', 'zipfian'):
        weights = np.random.zipf(2, size).astype(float)
        probabilities = weights / weights.sum()
        pattern = np.random.choice(size, n, p=probabilities)
    elif pattern_type == 'temporal':
        access_pattern = []
        recent_items = []
        for _ in range(n):
            if recent_items and np.random.rand() < 0.7:
                access_pattern.append(recent_items[np.random.randint(len(recent_items))])
            else:
                key = int(np.random.randint(0, size))
                access_pattern.append(key)
                recent_items.append(key)
                if len(recent_items) > 100:
                    recent_items.pop(0)
        pattern = np.array(access_pattern)
    elif pattern_type == 'cluster-based':
        cluster_center = np.random.randint(0, size)
        low, high = max(0, cluster_center - 10), min(size, cluster_center + 10)
        pattern = np.random.randint(low, high, n)
    elif pattern_type == 'random_walk':
        steps = np.random.choice([-1, 1], n - 1) if n > 1 else np.array([], dtype=int)
        access_pattern = [int(np.random.randint(0, size))]
        for step in steps:
            access_pattern.append(max(0, min(size - 1, access_pattern[-1] + int(step))))
        pattern = np.array(access_pattern[:n])
    elif pattern_type == 'bursty':
        burst_prob = 0.8
        access_pattern = []
        last_accessed = None
        for _ in range(n):
            if last_accessed is not None and np.random.rand() < burst_prob:
                access_pattern.append(last_accessed)
            else:
                last_accessed = int(np.random.randint(0, size))
                access_pattern.append(last_accessed)
        pattern = np.array(access_pattern)
    else:
        logger.warning(f"Unknown pattern type: {pattern_type}. Defaulting to uniform pattern.")
        pattern = np.random.randint(0, size, n)
    logger.debug(f"Access pattern generated with {len(pattern)} accesses.")
    return [int(k) for k in pattern]

# ==========================
# 3. Tree Construction and Measurement
# ==========================

def build_tree(keys: List[int], show_progress: bool = True) -> SplayTree:
    """
    Inserts every key into a fresh splay tree.

    Parameters:
        keys (List[int]): Keys to insert, in insertion order.
        show_progress (bool): Whether to display a progress bar.

    Returns:
        SplayTree: The populated tree.
    """
    tree = SplayTree()
    for key in tqdm(keys, desc="Building Tree", disable=not show_progress):
        tree.insert(Node(key))
    logger.debug(f"Tree built with {len(keys)} keys, {tree.total_rotations} rotations.")
    return tree


def measure_access_pattern(tree: SplayTree, access_pattern: List[int], show_progress: bool = True) -> dict:
    """
    Splays every key of the access pattern and records how deep it was found.

    Parameters:
        tree (SplayTree): The tree to access.
        access_pattern (List[int]): The sequence of keys to access.
        show_progress (bool): Whether to display a progress bar.

    Returns:
        dict: Average and maximum access depth, root hit rate, rotations and runtime.
    """
    depths = []
    root_hits = 0
    rotations_before = tree.total_rotations
    start_time = time.time()
    for key in tqdm(access_pattern, desc="Accessing Keys", disable=not show_progress):
        depth = tree.depth_of(key)
        if depth is not None:
            depths.append(depth)
            if depth == 0:
                root_hits += 1
        tree.splay(key)
    runtime = time.time() - start_time
    accesses = len(access_pattern)
    metrics = {
        'accesses': accesses,
        'avg_depth': float(np.mean(depths)) if depths else 0.0,
        'max_depth': int(np.max(depths)) if depths else 0,
        'root_hit_rate': root_hits / accesses if accesses else 0.0,
        'total_rotations': tree.total_rotations - rotations_before,
        'runtime_seconds': runtime,
    }
    logger.debug(f"Access metrics: {metrics}")
    return metrics


def verify_sorted_drain(tree: SplayTree) -> int:
    """
    Drains the tree and checks that keys come out in non-decreasing order.

    Parameters:
        tree (SplayTree): The tree to drain. It is empty afterwards.

    Returns:
        int: Number of drained nodes.
    """
    count = 0
    previous = None
    for node in tree.drain():
        if previous is not None and node.key < previous:
            raise ValueError(f"Drain out of order: {node.key!r} after {previous!r}")
        previous = node.key
        count += 1
    return count

# ==========================
# 4. Pattern Study
# ==========================

def run_pattern_study(config: dict) -> pd.DataFrame:
    """
    Measures the splay tree against each configured access pattern.

    Parameters:
        config (dict): Experiment configuration.

    Returns:
        pd.DataFrame: One row of metrics per access pattern.
    """
    n_keys = config.get('n_keys', 1000)
    n_accesses = config.get('n_accesses', 5000)
    show_progress = config.get('show_progress', True)
    np.random.seed(config.get('seed', 0))

    rows = []
    patterns = config.get('patterns', [])
    for idx, pattern in enumerate(patterns):
        logger.info(f"Running pattern {idx+1}/{len(patterns)}: {pattern}")
        keys = np.random.permutation(n_keys).tolist()
        tree = build_tree(keys, show_progress)
        build_rotations = tree.total_rotations
        access_pattern = generate_access_pattern(pattern, n_keys, n_accesses)
        metrics = measure_access_pattern(tree, access_pattern, show_progress)
        metrics['pattern'] = pattern
        metrics['build_rotations'] = build_rotations
        if config.get('drain_check', True):
            drained = verify_sorted_drain(tree)
            if drained != n_keys:
                raise ValueError(f"Drained {drained} keys, expected {n_keys}")
            metrics['drained'] = drained
        logger.info(f"Pattern {pattern}: Avg Depth = {metrics['avg_depth']:.4f}, "
                    f"Root Hit Rate = {metrics['root_hit_rate']:.4f}, "
                    f"Total Rotations = {metrics['total_rotations']}")
        rows.append(metrics)

    columns = ['pattern', 'accesses', 'avg_depth', 'max_depth', 'root_hit_rate',
               'total_rotations', 'build_rotations', 'runtime_seconds']
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=columns)
    return df[columns + [c for c in df.columns if c not in columns]]


def plot_pattern_results(df: pd.DataFrame, filepath: str):
    """
    Plots the average access depth per pattern as a bar chart.

    Parameters:
        df (pd.DataFrame): Results of the pattern study.
        filepath (str): Where to save the figure.
    """
    plt.figure(figsize=(10,6))
    plt.bar(df['pattern'], df['avg_depth'], label='Average Access Depth')
    plt.title('Splay Tree Access Depth by Pattern')
    plt.xlabel('Access Pattern')
    plt.ylabel('Average Depth')
    plt.legend()
    plt.tight_layout()
    plt.savefig(filepath)
    plt.close()
    logger.info(f"Pattern results visualization saved as '{filepath}'.")

# ==========================
# 5. Main Execution Flow
# ==========================

def main(argv=None):
    """
    Main function to run the pattern study and write its results.
    """
    parser = argparse.ArgumentParser(description="Splay tree access pattern experiments")
    parser.add_argument('--config', help="JSON file overriding the default configuration")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    output_dir = config.get('output_dir', 'results')
    os.makedirs(os.path.join(output_dir, 'logs'), exist_ok=True)
    setup_logging(os.path.join(output_dir, 'logs', 'experiment.log'))

    logger.info("=== Starting Splay Tree Experiments ===")
    df = run_pattern_study(config)

    df.to_csv(os.path.join(output_dir, 'pattern_study.csv'), index=False)
    save_results(df.to_dict(orient='records'), os.path.join(output_dir, 'pattern_study.json'))
    if not df.empty:
        plot_pattern_results(df, os.path.join(output_dir, 'pattern_study.png'))

    logger.info("=== All experiments completed successfully! ===")
    return df


if __name__ == "__main__":
    main()
