# emotion_backend/repositories/camera_repository.py
from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID
from emotion_backend.models.camera import Camera, CameraStatus
from emotion_backend.models.filters import GetListFilter

class CameraRepository(ABC):
    @abstractmethod
    def get_camera(self, camera_id: UUID) -> Optional[Camera]:
        pass

    @abstractmethod
    def list_all(self) -> List[Camera]:
        pass
    
    @abstractmethod
    def list(self, filters: GetListFilter) -> List[Camera]:
        pass
    
    @abstractmethod
    def create_camera(self, camera: Camera) -> Camera:
        pass
    
    @abstractmethod
    def set_status(self, camera_id: UUID, status: CameraStatus, stream_url: Optional[str] = None) -> Camera:
        """Transition a camera; a None stream_url leaves the stored URL untouched"""
        pass
    
    @abstractmethod
    def delete_camera(self, camera_id: UUID) -> bool:
        pass
