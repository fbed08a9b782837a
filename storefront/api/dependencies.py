from fastapi import Request

from storefront.config import Settings

def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with"""
    return request.app.state.settings
