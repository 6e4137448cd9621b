import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# ----------------------
# Backend selection
# ----------------------
LOCAL_HOSTS = ("localhost", "127.0.0.1")
HOSTNAME = os.getenv("EDU_HOSTNAME", "localhost")
LOCAL_API_URL = os.getenv("EDU_LOCAL_API_URL", "http://localhost:5000/api")
DEPLOYED_API_URL = os.getenv("EDU_DEPLOYED_API_URL", "https://eduplatform-backend-k9fr.onrender.com/api")
API_URL = os.getenv("EDU_API_URL")

# ----------------------
# Client state
# ----------------------
STORAGE_PATH = os.path.expanduser(os.getenv("EDU_STORAGE_PATH", "~/.eduplatform/storage.json"))
DOWNLOAD_DIR = os.path.expanduser(os.getenv("EDU_DOWNLOAD_DIR", "~/Downloads"))

# ----------------------
# Timing
# ----------------------
REQUEST_TIMEOUT = float(os.getenv("EDU_REQUEST_TIMEOUT", "30"))
UNREAD_POLL_SECONDS = float(os.getenv("EDU_UNREAD_POLL_SECONDS", "30"))
SEARCH_DEBOUNCE_SECONDS = float(os.getenv("EDU_SEARCH_DEBOUNCE_SECONDS", "0.3"))
NOTIFICATION_SECONDS = float(os.getenv("EDU_NOTIFICATION_SECONDS", "5"))


def select_base_url(hostname: Optional[str] = None) -> str:
    """Loopback hosts talk to the local backend, everything else to the deployed one."""
    if API_URL:
        return API_URL.rstrip("/")
    host = hostname if hostname is not None else HOSTNAME
    url = LOCAL_API_URL if host in LOCAL_HOSTS else DEPLOYED_API_URL
    return url.rstrip("/")
