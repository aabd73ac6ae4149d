"""
Script contains functions for threading
"""

from concurrent import futures

from utils.logger import logger


class ThreadExecutor:
    """
    Class to handle threading with a bounded number of workers
    """

    def __init__(self, max_workers=None):
        self.max_workers = max_workers
        self.executor = futures.ThreadPoolExecutor(max_workers=max_workers)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.shutdown()

    def shutdown(self):
        self.executor.shutdown(wait=True)

    def wait_on_futures(self, futures_iter):
        futures_list = list(futures_iter)
        logger.info("ThreadExecutor: Waiting on %d futures", len(futures_list))
        futures.wait(futures_list)
        logger.info("ThreadExecutor: done waiting")
        return futures_list

    def submit(self, fn, *args, **kwargs):
        return self.executor.submit(fn, *args, **kwargs)
