from webworker.worker import WebWorker

__all__ = ["WebWorker"]
