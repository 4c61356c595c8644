from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    PRODUCTION = "production"
    STAGING = "staging"
    TESTING = "testing"
    DEVELOPMENT = "development"

    @classmethod
    def is_development(cls, env: str) -> bool:
        """Check if environment is development (plain-text logs)."""
        return env.lower() == cls.DEVELOPMENT.value

    @classmethod
    def wants_json_logs(cls, env: str) -> bool:
        return not cls.is_development(env)
