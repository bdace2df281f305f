import os
from dotenv import load_dotenv
load_dotenv()

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///cvflow.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # CV uploads are capped at 10MB, internship reports at 20MB
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(20 * 1024 * 1024)))
    MAX_CV_BYTES = int(os.getenv("MAX_CV_BYTES", str(10 * 1024 * 1024)))

    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
    LOCAL_STORAGE_DIR = os.getenv("LOCAL_STORAGE_DIR", "./storage")
    S3_ENDPOINT = os.getenv("S3_ENDPOINT", "http://minio:9000")
    S3_PUBLIC_ENDPOINT = os.getenv("S3_PUBLIC_ENDPOINT", "http://localhost:9000")
    S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY", "minioadmin")
    S3_SECRET_KEY = os.getenv("S3_SECRET_KEY", "minioadmin")
    S3_REGION = os.getenv("S3_REGION", "us-east-1")
    S3_ADDRESSING_STYLE = os.getenv("S3_ADDRESSING_STYLE", "path")
    CV_BUCKET = os.getenv("CV_BUCKET", "cvs")
    ARTIFACT_BUCKET = os.getenv("ARTIFACT_BUCKET", "qualified-candidats")
    REPORT_BUCKET = os.getenv("REPORT_BUCKET", "rapports-stage")

    OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://ollama:11434")
    OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "qwen2.5:latest")
    OLLAMA_TIMEOUT = float(os.getenv("OLLAMA_TIMEOUT", "300"))

    FORM_MARKER = os.getenv("FORM_MARKER", "QUESTIONNAIRE DE RECRUTEMENT")
    FORM_WINDOW_CHARS = int(os.getenv("FORM_WINDOW_CHARS", "6000"))
