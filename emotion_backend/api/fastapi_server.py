# emotion_backend/api/fastapi_server.py
from fastapi import FastAPI, File, Form, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import datetime
from http import HTTPStatus
from typing import Optional
from uuid import UUID
import asyncio
import logging
import uvicorn

from emotion_backend.api.schemas import (
    CameraCreateRequest,
    CameraOnlineRequest,
    EmotionDetectionRequest,
    StreamFrameRequest,
)
from emotion_backend.config import AppConfig
from emotion_backend.di.dependencies import DependencyContainer
from emotion_backend.errors import EmotionBackendError
from emotion_backend.helpers.time_utils import utc_now
from emotion_backend.models.emotion import Saved, records_to_dicts
from emotion_backend.models.filters import Filter, GetListFilter, OrderBy

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


class EmotionAPIServer:
    """FastAPI application exposing emotion ingestion, history and cameras"""

    def __init__(self, container: DependencyContainer):
        self.container = container
        self.config: AppConfig = container.config
        self.host = self.config.server.host
        self.port = self.config.server.port
        self.app = FastAPI(
            title="Emotion Recognition API",
            description="Frame/video ingestion, emotion classification and camera registry",
            version=API_VERSION,
            lifespan=self._lifespan
        )

        self.cleanup_task: Optional[asyncio.Task] = None
        self.server: Optional[uvicorn.Server] = None

        self._setup_middleware()
        self._setup_exception_handlers()
        self._setup_routes()
        self._setup_static_files()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        logger.info("🚀 Emotion Recognition API starting...")
        if self.config.media.cleanup_interval_seconds > 0:
            self.cleanup_task = asyncio.create_task(self._periodic_frame_cleanup())

        yield

        logger.info("🛑 Emotion Recognition API shutting down...")
        if self.cleanup_task:
            self.cleanup_task.cancel()
            try:
                await self.cleanup_task
            except asyncio.CancelledError:
                pass
            self.cleanup_task = None
        await self.container.close()

    async def _periodic_frame_cleanup(self):
        """Delete stale extracted frames on a fixed interval"""
        media = self.config.media
        while True:
            await asyncio.sleep(media.cleanup_interval_seconds)
            try:
                await self.container.frame_extractor.cleanup_older_than(media.frame_max_age_ms)
            except Exception as e:
                logger.error(f"Error in periodic frame cleanup: {e}")

    def _setup_middleware(self):
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=[self.config.server.frontend_url],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _setup_static_files(self):
        """Serve extracted frames and uploaded videos"""
        self.app.mount(
            "/uploads",
            StaticFiles(directory=self.config.media.uploads_dir, check_dir=False),
            name="uploads"
        )

    def _setup_exception_handlers(self):

        @self.app.exception_handler(EmotionBackendError)
        async def backend_error_handler(request: Request, exc: EmotionBackendError):
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
            return JSONResponse(
                status_code=exc.status_code,
                content={"success": False, "error": type(exc).__name__, "message": str(exc)}
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_error_handler(request: Request, exc: StarletteHTTPException):
            message = exc.detail
            if exc.status_code == 404 and exc.detail == "Not Found":
                message = f"Route {request.method} {request.url.path} not found"
            return JSONResponse(
                status_code=exc.status_code,
                content={"success": False, "error": HTTPStatus(exc.status_code).phrase, "message": message}
            )

    def _setup_routes(self):
        """Setup FastAPI routes"""
        container = self.container

        @self.app.get("/health")
        async def health():
            return {
                "status": "OK",
                "message": "Emotion Recognition API is running",
                "timestamp": utc_now().isoformat()
            }

        @self.app.get("/")
        async def root():
            return {
                "message": "Emotion Recognition API",
                "version": API_VERSION,
                "endpoints": {
                    "emotions": "/api/emotions",
                    "camera": "/api/camera",
                    "ml": "/api/ml",
                    "health": "/health"
                }
            }

        # ---------- Emotions ----------

        @self.app.post("/api/emotions")
        def save_emotion(body: EmotionDetectionRequest):
            """Store an AI-reported detection unless it is unreliable"""
            outcome = container.emotion_usecase.save_detection(
                label=body.label,
                confidence=body.confidence,
                box=body.box,
                metadata=body.metadata
            )
            return self._outcome_response(outcome)

        @self.app.get("/api/emotions")
        def get_emotions(camera_id: Optional[str] = None,
                         start: Optional[datetime] = None,
                         end: Optional[datetime] = None,
                         limit: Optional[int] = Query(default=None, ge=1),
                         offset: int = Query(default=0, ge=0)):
            """Emotion history for charts, in insertion order"""
            records = container.emotion_usecase.get_history(
                camera_id=camera_id, start=start, end=end, limit=limit, offset=offset
            )
            return {"success": True, "count": len(records), "data": records_to_dicts(records)}

        @self.app.get("/api/emotions/stats")
        def get_emotion_stats(camera_id: Optional[str] = None,
                              start: Optional[datetime] = None,
                              end: Optional[datetime] = None):
            stats = container.emotion_usecase.get_emotion_stats(camera_id=camera_id, start=start, end=end)
            return {"success": True, "data": stats.to_dict()}

        @self.app.post("/api/emotions/analyze/image", status_code=201)
        async def analyze_image(file: UploadFile = File(...), camera_id: Optional[str] = Form(None)):
            image_path = await container.media_storage.save_image(await file.read(), file.filename)
            record = await container.ingestion_pipeline.ingest_image(image_path, camera_id)
            saved = await container.ingestion_pipeline.persist([record])
            return {"success": True, "data": saved[0].to_dict()}

        @self.app.post("/api/emotions/analyze/video", status_code=201)
        async def analyze_video(file: UploadFile = File(...),
                                camera_id: Optional[str] = Form(None),
                                frame_rate: Optional[float] = Form(None, gt=0),
                                max_frames: Optional[int] = Form(None, ge=1)):
            video_path = await container.media_storage.save_video(await file.read(), file.filename)
            metadata = await container.frame_extractor.get_metadata(video_path)
            records = await container.ingestion_pipeline.ingest_video(
                video_path, camera_id, frame_rate=frame_rate, max_frames=max_frames
            )
            saved = await container.ingestion_pipeline.persist(records)
            return {
                "success": True,
                "count": len(saved),
                "metadata": metadata.to_dict(),
                "data": records_to_dicts(saved)
            }

        @self.app.post("/api/emotions/analyze/video/frame", status_code=201)
        async def analyze_video_frame(file: UploadFile = File(...),
                                      camera_id: Optional[str] = Form(None),
                                      timestamp: float = Form(0.0, ge=0)):
            video_path = await container.media_storage.save_video(await file.read(), file.filename)
            record = await container.ingestion_pipeline.ingest_video_frame(video_path, camera_id, timestamp)
            saved = await container.ingestion_pipeline.persist([record])
            return {"success": True, "data": saved[0].to_dict()}

        @self.app.post("/api/emotions/analyze/stream")
        async def analyze_stream(body: StreamFrameRequest):
            outcome = await container.ingestion_pipeline.ingest_stream_frame(body.image, body.camera_id)
            return self._outcome_response(outcome)

        # ---------- Cameras ----------

        @self.app.get("/api/camera")
        def get_all_cameras(status: Optional[str] = None,
                            name: Optional[str] = None,
                            page: Optional[int] = Query(default=None, ge=1),
                            limit: int = Query(default=10, ge=1, le=100)):
            """All cameras, or a filtered page (status may be a comma list, name is a substring)"""
            list_filter = None
            if status or name or page:
                filters = []
                if status:
                    filters.append(Filter(column="status", type="in", value=status.upper()))
                if name:
                    filters.append(Filter(column="name", type="like", value=name))
                list_filter = GetListFilter(
                    page=page or 1,
                    limit=limit,
                    filters=filters,
                    order_by=[OrderBy(column="created_at", order="asc")]
                )
            cameras = container.camera_usecase.list_cameras(list_filter)
            return {"success": True, "data": [camera.to_dict() for camera in cameras]}

        @self.app.post("/api/camera", status_code=201)
        def register_camera(body: CameraCreateRequest):
            camera = container.camera_usecase.create_camera(name=body.name, stream_url=body.stream_url)
            return {"success": True, "data": camera.to_dict()}

        @self.app.get("/api/camera/{camera_id}")
        def get_camera(camera_id: UUID):
            return {"success": True, "data": container.camera_usecase.get_camera(camera_id).to_dict()}

        @self.app.delete("/api/camera/{camera_id}")
        def delete_camera(camera_id: UUID):
            deleted = container.camera_usecase.delete_camera(camera_id)
            if not deleted:
                raise StarletteHTTPException(status_code=404, detail=f"Camera with ID {camera_id} not found")
            return {"success": True}

        @self.app.post("/api/camera/{camera_id}/online")
        def set_online(camera_id: UUID, body: Optional[CameraOnlineRequest] = None):
            stream_url = body.stream_url if body else None
            camera = container.camera_usecase.set_online(camera_id, stream_url)
            return {"success": True, "status": camera.status.value, "data": camera.to_dict()}

        @self.app.post("/api/camera/{camera_id}/offline")
        def set_offline(camera_id: UUID):
            camera = container.camera_usecase.set_offline(camera_id)
            return {"success": True, "status": camera.status.value, "data": camera.to_dict()}

        # ---------- ML service / maintenance ----------

        @self.app.get("/api/ml/health")
        async def ml_health():
            return {"success": True, "available": await container.classifier.health_check()}

        @self.app.get("/api/ml/model-info")
        async def ml_model_info():
            info = await container.classifier.get_model_info()
            if info is None:
                return JSONResponse(
                    status_code=503,
                    content={"success": False, "error": "Service Unavailable",
                             "message": "ML service did not return model info"}
                )
            return {"success": True, "data": info}

        @self.app.post("/api/media/cleanup")
        async def cleanup_frames(max_age_hours: Optional[float] = Query(default=None, ge=0)):
            max_age_ms = (int(max_age_hours * 60 * 60 * 1000) if max_age_hours is not None
                          else self.config.media.frame_max_age_ms)
            deleted = await container.frame_extractor.cleanup_older_than(max_age_ms)
            return {"success": True, "deleted": deleted}

    @staticmethod
    def _outcome_response(outcome) -> JSONResponse:
        if isinstance(outcome, Saved):
            return JSONResponse(status_code=201, content={"success": True, "data": outcome.record.to_dict()})
        return JSONResponse(
            status_code=200,
            content={"success": False, "message": outcome.reason, "confidence": outcome.confidence}
        )

    async def start_server(self):
        """Run uvicorn until the server exits"""
        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            log_level=self.config.log_level.lower(),
            access_log=self.config.debug
        )
        self.server = uvicorn.Server(config)

        logger.info(f"🌐 Emotion Recognition API on http://{self.host}:{self.port}")
        logger.info(f"📡 Health check: http://{self.host}:{self.port}/health")
        logger.info(f"📚 API documentation: http://{self.host}:{self.port}/docs")
        await self.server.serve()

    async def stop_server(self):
        if self.server:
            self.server.should_exit = True


def create_app(container: Optional[DependencyContainer] = None) -> FastAPI:
    """App factory (``uvicorn --factory emotion_backend.api.fastapi_server:create_app``)"""
    if container is None:
        container = DependencyContainer(AppConfig.from_env())
        container.startup()
    return EmotionAPIServer(container).app
