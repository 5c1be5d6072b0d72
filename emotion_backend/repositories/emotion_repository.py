# emotion_backend/repositories/emotion_repository.py
from abc import ABC, abstractmethod
from typing import List
from emotion_backend.models.emotion import EmotionRecord
from emotion_backend.models.filters import EmotionHistoryFilter


class EmotionRepository(ABC):
    @abstractmethod
    def create(self, record: EmotionRecord) -> EmotionRecord:
        """Append a record and return it with its generated id"""
        pass

    @abstractmethod
    def create_many(self, records: List[EmotionRecord]) -> List[EmotionRecord]:
        """Append records in order, each as an independent write"""
        pass

    @abstractmethod
    def list_history(self, history_filter: EmotionHistoryFilter) -> List[EmotionRecord]:
        """Matching records in insertion order"""
        pass

    @abstractmethod
    def count(self, history_filter: EmotionHistoryFilter) -> int:
        pass
