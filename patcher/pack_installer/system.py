import os
import psutil


def optimal_threads(cap: int = 32) -> int:
    # one worker per logical core; work is network/disk bound
    cores = psutil.cpu_count(logical=True) or os.cpu_count() or 4
    return max(1, min(cores, cap))
