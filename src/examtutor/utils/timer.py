import time


class Timer:
    """
    Context manager for timing provider calls. Measures wall-clock time in seconds.
    """

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self.start
