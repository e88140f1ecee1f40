"""Workers package for background tasks."""

from zenarchive.workers.deposit_worker import DepositWorker, DepositThread
from zenarchive.workers.publication_data_worker import PublicationDataWorker

__all__ = ['DepositWorker', 'DepositThread', 'PublicationDataWorker']
