"""Settings shared by every environment; read from the process environment (.env via python-dotenv)."""
import os


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


def db_config_from_env(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "campus_attendance"),
    }


# Device admission limits (admins are never tracked; subscribed students are unlimited).
INSTRUCTOR_MAX_DEVICES = int(os.getenv("INSTRUCTOR_MAX_DEVICES", "2"))
STUDENT_MAX_DEVICES = int(os.getenv("STUDENT_MAX_DEVICES", "1"))
