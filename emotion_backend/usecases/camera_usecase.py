# emotion_backend/usecases/camera_usecase.py
import logging
from typing import List, Optional
from uuid import UUID
from emotion_backend.errors import CameraNotFoundError
from emotion_backend.repositories.camera_repository import CameraRepository
from emotion_backend.models.camera import Camera, CameraStatus
from emotion_backend.models.filters import GetListFilter

logger = logging.getLogger(__name__)

class CameraUseCase:
    def __init__(self, camera_repository: CameraRepository):
        self.camera_repo = camera_repository
    
    def get_camera(self, camera_id: UUID) -> Camera:
        """Get camera by ID"""
        camera = self.camera_repo.get_camera(camera_id)
        if camera is None:
            raise CameraNotFoundError(camera_id)
        return camera
    
    def list_cameras(self, filters: Optional[GetListFilter] = None) -> List[Camera]:
        """List cameras, all of them when no filter is given"""
        try:
            if filters is None:
                return self.camera_repo.list_all()
            return self.camera_repo.list(filters)
        except Exception as e:
            logger.error(f"Error listing cameras: {e}")
            raise
    
    def create_camera(self, name: Optional[str] = None, stream_url: Optional[str] = None) -> Camera:
        """Register a new camera; it starts OFFLINE"""
        try:
            camera = self.camera_repo.create_camera(
                Camera(name=name, stream_url=stream_url, status=CameraStatus.OFFLINE)
            )
            logger.info(f"📹 Camera registered: {camera.guid}")
            return camera
        except Exception as e:
            logger.error(f"Error creating camera: {e}")
            raise
    
    def set_online(self, camera_id: UUID, stream_url: Optional[str] = None) -> Camera:
        """Mark camera ONLINE, recording the stream URL when one is given"""
        try:
            camera = self.camera_repo.set_status(camera_id, CameraStatus.ONLINE, stream_url=stream_url)
            logger.info(f"🟢 Camera {camera_id} ONLINE ({camera.stream_url})")
            return camera
        except Exception as e:
            logger.error(f"Error setting camera {camera_id} online: {e}")
            raise
    
    def set_offline(self, camera_id: UUID) -> Camera:
        """Mark camera OFFLINE; the stored stream URL is kept"""
        try:
            camera = self.camera_repo.set_status(camera_id, CameraStatus.OFFLINE)
            logger.info(f"🔴 Camera {camera_id} OFFLINE")
            return camera
        except Exception as e:
            logger.error(f"Error setting camera {camera_id} offline: {e}")
            raise
    
    def delete_camera(self, camera_id: UUID) -> bool:
        """Delete camera"""
        try:
            return self.camera_repo.delete_camera(camera_id)
        except Exception as e:
            logger.error(f"Error deleting camera: {e}")
            raise
