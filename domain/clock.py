"""Clock capability used for past-time validation"""
from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Current moment as a timezone-aware UTC datetime"""
        pass
