# emotion_backend/repositories/relational_db/camera_repository_impl.py
from typing import List, Optional
from uuid import UUID
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from emotion_backend.errors import CameraNotFoundError, StorageError
from emotion_backend.helpers.query_builder import apply_filters, apply_ordering, apply_pagination
from emotion_backend.helpers.time_utils import from_utc_naive, to_utc_naive, utc_now
from emotion_backend.models.camera import Camera, CameraStatus
from emotion_backend.repositories.camera_repository import CameraRepository
from emotion_backend.db.models import CameraModel
from emotion_backend.models.filters import GetListFilter
import logging

logger = logging.getLogger(__name__)

class CameraRepositoryImpl(CameraRepository):
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get_camera(self, camera_id: UUID) -> Optional[Camera]:
        try:
            with self.session_factory() as session:
                cam = session.query(CameraModel).filter_by(guid=camera_id).first()
                return self._to_domain(cam) if cam else None
        except SQLAlchemyError as e:
            logger.error(f"Error getting camera {camera_id}: {e}")
            raise StorageError(f"Failed to read camera {camera_id}: {e}") from e

    def list_all(self) -> List[Camera]:
        try:
            with self.session_factory() as session:
                cameras = session.query(CameraModel).order_by(CameraModel.created_at).all()
                return [self._to_domain(cam) for cam in cameras]
        except SQLAlchemyError as e:
            logger.error(f"Error listing all cameras: {e}")
            raise StorageError(f"Failed to list cameras: {e}") from e
    
    def list(self, filters: GetListFilter) -> List[Camera]:
        try:
            with self.session_factory() as session:
                query = session.query(CameraModel)
                
                if filters.filters:
                    query = apply_filters(query, CameraModel, filters.filters)
                
                if filters.order_by:
                    query = apply_ordering(query, CameraModel, filters.order_by)
                
                query = apply_pagination(query, filters.page, filters.limit)
                return [self._to_domain(cam) for cam in query.all()]
            
        except SQLAlchemyError as e:
            logger.error(f"Error listing cameras with filters: {e}")
            raise StorageError(f"Failed to list cameras: {e}") from e

    def create_camera(self, camera: Camera) -> Camera:
        with self.session_factory() as session:
            try:
                camera_model = CameraModel(
                    name=camera.name,
                    stream_url=camera.stream_url,
                    status=CameraStatus(camera.status).value,
                    created_at=to_utc_naive(camera.created_at or utc_now())
                )
                if camera.guid:
                    camera_model.guid = camera.guid
            
                session.add(camera_model)
                session.commit()
                session.refresh(camera_model)

                return self._to_domain(camera_model)
                
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Error creating camera: {e}")
                raise StorageError(f"Failed to create camera: {e}") from e
    
    def set_status(self, camera_id: UUID, status: CameraStatus, stream_url: Optional[str] = None) -> Camera:
        with self.session_factory() as session:
            try:
                camera_model = self._get_model_or_raise(session, camera_id)
                
                camera_model.status = CameraStatus(status).value
                if stream_url is not None:
                    camera_model.stream_url = stream_url
                
                session.commit()
                session.refresh(camera_model)
                
                return self._to_domain(camera_model)
                
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Error setting camera {camera_id} {status}: {e}")
                raise StorageError(f"Failed to update camera {camera_id}: {e}") from e
    
    def delete_camera(self, camera_id: UUID) -> bool:
        with self.session_factory() as session:
            try:
                camera_model = session.query(CameraModel).filter_by(guid=camera_id).first()
                if not camera_model:
                    return False
                
                session.delete(camera_model)
                session.commit()
                return True
                
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Error deleting camera: {e}")
                raise StorageError(f"Failed to delete camera {camera_id}: {e}") from e

    def _get_model_or_raise(self, session: Session, camera_id: UUID) -> CameraModel:
        camera_model = session.query(CameraModel).filter_by(guid=camera_id).first()
        if not camera_model:
            raise CameraNotFoundError(camera_id)
        return camera_model

    def _to_domain(self, model: CameraModel) -> Camera:
        """Convert SQLAlchemy model to domain model"""
        return Camera(
            guid=model.guid,
            name=model.name,
            stream_url=model.stream_url,
            status=CameraStatus(model.status),
            created_at=from_utc_naive(model.created_at)
        )
