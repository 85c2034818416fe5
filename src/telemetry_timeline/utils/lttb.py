import numpy as np


def lttb_indices(x: np.ndarray, y: np.ndarray, target_points: int) -> np.ndarray:
    """
    Largest-Triangle-Three-Buckets selection over one series.

    Args:
        x: Ascending sample times
        y: Sample values, no NaN
        target_points: Number of points to keep

    Returns:
        Sorted indices of the kept samples (first and last always included)
    """
    n = len(x)
    if n <= target_points:
        return np.arange(n)

    if target_points < 3:
        return np.array(sorted({0, n - 1})[:max(target_points, 0)], dtype="int64")

    sampled = [0]
    bucket_size = (n - 2) / (target_points - 2)
    a = 0

    for i in range(target_points - 2):
        # Average of the next bucket is the third triangle vertex
        avg_start = int((i + 1) * bucket_size) + 1
        avg_end = min(int((i + 2) * bucket_size) + 1, n)
        if avg_end <= avg_start:
            avg_start, avg_end = n - 1, n
        avg_x = np.mean(x[avg_start:avg_end])
        avg_y = np.mean(y[avg_start:avg_end])

        range_start = int(i * bucket_size) + 1
        range_end = min(int((i + 1) * bucket_size) + 1, n - 1)
        if range_end <= range_start:
            continue

        candidates_x = x[range_start:range_end]
        candidates_y = y[range_start:range_end]
        areas = np.abs(
            (x[a] - avg_x) * (candidates_y - y[a]) - (x[a] - candidates_x) * (avg_y - y[a])
        ) * 0.5
        a = range_start + int(np.argmax(areas))
        sampled.append(a)

    sampled.append(n - 1)
    return np.array(sorted(set(sampled)), dtype="int64")
