from fastapi import Request

from logistics_pro.core.config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
