"""API v1 routes."""

from fastapi import APIRouter

from greencdn.api.v1 import auth, folders, health, images, pod, stats, upload, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(folders.router, prefix="/folders", tags=["folders"])
router.include_router(images.router, prefix="/images", tags=["images"])
router.include_router(upload.router, prefix="/upload", tags=["upload"])
router.include_router(stats.router, prefix="/stats", tags=["stats"])
router.include_router(pod.router, prefix="/pod", tags=["pod"])
