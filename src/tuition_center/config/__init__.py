import os


def get_settings_module() -> str:
    # Environment comes from APP_ENV, default is 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "tuition_center.config.production"

    if env in {"test", "testing"}:
        return "tuition_center.config.testing"

    return "tuition_center.config.development"
