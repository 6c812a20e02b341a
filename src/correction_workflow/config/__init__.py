import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module; defaults to development
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "correction_workflow.config.production"

    if env in {"test", "testing"}:
        return "correction_workflow.config.testing"

    return "correction_workflow.config.development"
