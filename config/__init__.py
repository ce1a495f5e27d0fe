import os


def get_settings_module() -> str:
    # SETTINGS_MODULE trỏ thẳng tới một module cấu hình (vd: config.staging)
    explicit = os.getenv("SETTINGS_MODULE", "").strip()
    if explicit:
        return explicit

    # Lấy giá trị môi trường từ biến APP_ENV, mặc định là 'development'
    env = os.getenv("APP_ENV", "development").lower()
    if env in {"prod", "production"}:
        return "config.production"
    if env in {"test", "testing"}:
        return "config.testing"
    return "config.development"
