import os
from datetime import date


class Config:
    SECRET_KEY = os.environ.get("SESSION_SECRET", "dev-secret-key-change-in-production")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")

    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "uploads")
    EXPORT_FOLDER = os.environ.get("EXPORT_FOLDER", "exports")
    ALLOWED_EXTENSIONS = {'xlsx', 'xls'}
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max file size

    # Hall form defaults
    DEFAULT_HALL_NAME = "Hall 1"
    DEFAULT_HALL_ROWS = 5
    DEFAULT_HALL_COLS = 4
    DEFAULT_DESK_CAPACITY = 2
    MAX_DESK_CAPACITY = int(os.environ.get("MAX_DESK_CAPACITY", 4))

    # Printed on every exported sheet
    COLLEGE_NAME = os.environ.get("COLLEGE_NAME", "A.V.C. COLLEGE OF ENGINEERING")
    DEPARTMENT_NAME = os.environ.get(
        "DEPARTMENT_NAME", "DEPARTMENT OF COMPUTER SCIENCE AND ENGINEERING"
    )
    EXAM_DATE = os.environ.get("EXAM_DATE") or date.today().isoformat()
