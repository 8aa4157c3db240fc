"""
FastAPI dependencies that hand out the services built in create_app
"""
from fastapi import Request

from config.settings import Settings
from jobs.form_drafts import DraftRegistry
from services.admin_service import AdminService
from services.analytics_service import AnalyticsService
from services.content_service import ContentService
from services.upload_service import UploadWorkflow
from utils.session_manager import SessionStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session


def get_content_service(request: Request) -> ContentService:
    return request.app.state.content


def get_admin_service(request: Request) -> AdminService:
    return request.app.state.admin


def get_upload_workflow(request: Request) -> UploadWorkflow:
    return request.app.state.uploads


def get_analytics_service(request: Request) -> AnalyticsService:
    return request.app.state.analytics


def get_drafts(request: Request) -> DraftRegistry:
    return request.app.state.drafts
