import os

from config.config import INSTRUCTOR_MAX_DEVICES, STUDENT_MAX_DEVICES, db_config_from_env, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config_from_env()

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
